"""
Content Factory 内容工厂 - 小红书笔记搜索（极致了 xhs）

功能：
- 关键词搜索图文笔记
- 互动数解析（支持 "1.2万" / "3w" 格式）
- 按互动量排序获取热门笔记

使用方法：
    from content_factory.intel.xiaohongshu_search import XiaohongshuSearchClient

    client = XiaohongshuSearchClient()
    notes = await client.get_hot_notes("AI工具", count=10)
"""

from dataclasses import dataclass, field

import httpx

from content_factory.config import XiaohongshuConfig, get_settings
from content_factory.intel.utils import create_async_http_client, retry_async
from content_factory.utils.errors import ConfigError, SearchAPIError, ValidationError
from content_factory.utils.logger import get_intel_logger

logger = get_intel_logger()


@dataclass
class XhsNote:
    """小红书笔记数据"""
    note_id: str                                     # 笔记 ID
    title: str                                       # 标题
    desc: str = ""                                   # 描述/正文
    author: str = ""                                 # 作者昵称
    author_id: str = ""                              # 作者 ID
    likes: int = 0                                   # 点赞数
    collects: int = 0                                # 收藏数
    comments: int = 0                                # 评论数
    images: list[str] = field(default_factory=list)  # 图片列表
    tags: list[str] = field(default_factory=list)    # 标签列表
    url: str = ""                                    # 笔记链接

    @property
    def engagement(self) -> int:
        """互动总量（点赞 + 收藏 + 评论）"""
        return self.likes + self.collects + self.comments

    def to_dict(self) -> dict:
        return {
            "note_id": self.note_id,
            "title": self.title,
            "desc": self.desc,
            "author": self.author,
            "author_id": self.author_id,
            "likes": self.likes,
            "collects": self.collects,
            "comments": self.comments,
            "images": self.images,
            "tags": self.tags,
            "url": self.url,
        }


def parse_count(value) -> int:
    """解析数量字符串（如 '1.2万'、'3w'、'856'）"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value

    text = str(value or "").strip()
    if not text:
        return 0

    try:
        if "万" in text:
            return int(float(text.replace("万", "")) * 10000)
        if "w" in text.lower():
            return int(float(text.lower().replace("w", "")) * 10000)
        return int(float(text))
    except ValueError:
        return 0


def _extract_items(data) -> list[dict]:
    """兼容 data 为列表或 {items|notes: [...]} 两种结构"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "notes", "list"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


def parse_note(item: dict) -> XhsNote:
    """将接口条目转为 XhsNote"""
    card = item.get("note_card") or item
    user = card.get("user") or {}
    interact = card.get("interact_info") or {}
    note_id = item.get("note_id") or item.get("id") or card.get("id") or ""

    images = []
    for image in card.get("image_list") or card.get("images_list") or []:
        if isinstance(image, dict):
            url = image.get("url") or image.get("url_default") or ""
        else:
            url = str(image)
        if url:
            images.append(url)

    tags = []
    for tag in card.get("tag_list") or []:
        name = tag.get("name") if isinstance(tag, dict) else str(tag)
        if name:
            tags.append(name)

    return XhsNote(
        note_id=note_id,
        title=card.get("title") or card.get("display_title") or "",
        desc=card.get("desc") or "",
        author=user.get("nickname") or card.get("nickname") or "",
        author_id=user.get("user_id") or card.get("user_id") or "",
        likes=parse_count(interact.get("liked_count", card.get("liked_count", 0))),
        collects=parse_count(interact.get("collected_count", card.get("collected_count", 0))),
        comments=parse_count(interact.get("comment_count", card.get("comments_count", 0))),
        images=images,
        tags=tags,
        url=f"https://www.xiaohongshu.com/explore/{note_id}" if note_id else "",
    )


class XiaohongshuSearchClient:
    """极致了小红书搜索客户端"""

    def __init__(
        self,
        config: XiaohongshuConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.config = config or get_settings().xiaohongshu
        self.transport = transport
        self.timeout = timeout

    @retry_async(max_attempts=3, min_wait=1, max_wait=10)
    async def _post(self, payload: dict) -> httpx.Response:
        async with create_async_http_client(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(self.config.search_url, json=payload)

    async def search_raw(
        self,
        keyword: str,
        page: int = 1,
        sort: str = "general",
        note_type: str = "image",
    ) -> dict:
        """调用搜索接口并返回原始 JSON（不校验 code）"""
        if not self.config.api_key:
            raise ConfigError("小红书搜索API密钥未配置，请在设置中配置API密钥")

        response = await self._post({
            "key": self.config.api_key,
            "keyword": keyword,
            "page": page,
            "sort": sort,
            "note_type": note_type,
        })
        if not response.is_success:
            raise SearchAPIError(f"HTTP错误 ({response.status_code}): {response.reason_phrase}")
        try:
            return response.json()
        except ValueError as e:
            raise SearchAPIError("小红书搜索API响应不是有效JSON") from e

    async def search_notes(
        self,
        keyword: str,
        page: int = 1,
        sort: str = "general",
        note_type: str = "image",
    ) -> list[XhsNote]:
        """
        搜索小红书笔记

        Args:
            keyword: 搜索关键词
            page: 页码
            sort: 排序方式（general / popularity_descending / time_descending）
            note_type: 笔记类型（image / video）

        Returns:
            list[XhsNote]: 笔记列表
        """
        if not keyword:
            raise ValidationError("关键词不能为空")

        data = await self.search_raw(keyword, page, sort, note_type)
        if data.get("code") != 0:
            raise SearchAPIError(f"API错误: {data.get('msg') or '未知错误'}")

        notes = [parse_note(item) for item in _extract_items(data.get("data"))]
        logger.info(f"小红书搜索 [{keyword}] 第 {page} 页: {len(notes)} 条笔记")
        return notes

    async def get_hot_notes(self, keyword: str, count: int = 10) -> list[XhsNote]:
        """
        获取热门笔记（按点赞 + 收藏 + 评论降序）

        Args:
            keyword: 搜索关键词
            count: 获取数量

        Returns:
            list[XhsNote]: 热门笔记
        """
        notes = await self.search_notes(keyword, sort="popularity_descending")
        notes.sort(key=lambda n: n.engagement, reverse=True)
        return notes[:count]


__all__ = [
    "XhsNote",
    "XiaohongshuSearchClient",
    "parse_count",
    "parse_note",
]
