"""
Content Factory 内容工厂 - 公众号文章详情（极致了 article_html）

功能：
- 获取文章完整正文（HTML + 纯文本）和公众号信息
- 批量获取（固定并发 + 批间延迟，失败项丢弃）
- 微信文章链接校验与提取
"""

import re
from dataclasses import asdict, dataclass

import httpx

from content_factory.config import WechatSearchConfig, get_settings
from content_factory.intel.utils import create_async_http_client, retry_async, run_in_batches
from content_factory.utils.errors import ConfigError, SearchAPIError, ValidationError
from content_factory.utils.logger import get_intel_logger

logger = get_intel_logger()

# 微信文章链接特征
WECHAT_URL_PATTERNS = [
    re.compile(r"mp\.weixin\.qq\.com"),
    re.compile(r"weixin\.qq\.com"),
]

# 需要还原的 HTML 实体（仅处理常见几种）
_HTML_ENTITIES = [
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
]


@dataclass
class ArticleDetail:
    """文章详情（应用层格式）"""
    title: str
    content: str          # 纯文本正文
    html: str             # HTML 正文
    description: str
    author: str
    nickname: str         # 公众号昵称
    avatar: str           # 公众号头像
    signature: str        # 公众号简介
    wxid: str
    gh_id: str
    coverUrl: str
    isOriginal: bool
    publishTime: int      # 毫秒时间戳
    postTimeStr: str
    articleUrl: str
    sourceUrl: str

    def to_dict(self) -> dict:
        return asdict(self)


def html_to_text(html: str) -> str:
    """
    HTML 转纯文本：去标签、还原常见实体、合并空白

    Args:
        html: HTML 字符串

    Returns:
        str: 纯文本
    """
    if not html:
        return ""
    text = re.sub(r"<[^>]*>", "", html)
    for entity, char in _HTML_ENTITIES:
        text = text.replace(entity, char)
    return re.sub(r"\s+", " ", text).strip()


def is_valid_article_url(url: str | None) -> bool:
    """是否为微信文章链接"""
    if not url:
        return False
    return any(pattern.search(url) for pattern in WECHAT_URL_PATTERNS)


def extract_valid_url(article: dict) -> str | None:
    """
    从搜索结果中提取可用的文章链接

    依次尝试 url、short_link、article_url。

    Returns:
        str | None: 第一个有效的微信链接
    """
    for key in ("url", "short_link", "article_url"):
        candidate = article.get(key)
        if is_valid_article_url(candidate):
            return candidate
    return None


class WechatDetailClient:
    """文章详情客户端"""

    # 批次之间的间隔（秒）
    batch_delay: float = 1.0

    def __init__(
        self,
        config: WechatSearchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.config = config or get_settings().wechat_search
        self.transport = transport
        self.timeout = timeout

    @retry_async(max_attempts=3, min_wait=1, max_wait=10)
    async def _post(self, payload: dict) -> httpx.Response:
        async with create_async_http_client(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(self.config.detail_url, json=payload)

    async def get_article_detail(self, article_url: str) -> ArticleDetail:
        """
        获取单篇文章详情

        Args:
            article_url: 文章链接（url 或 short_link）

        Returns:
            ArticleDetail: 文章详情

        Raises:
            ValidationError: 链接为空
            SearchAPIError: 请求或接口失败（消息前缀 "获取文章详情失败: "）
        """
        if not article_url:
            raise ValidationError("文章URL不能为空")
        if not self.config.api_key:
            raise ConfigError("微信搜索API密钥未配置，请在设置中配置API密钥")

        try:
            response = await self._post({"url": article_url, "key": self.config.api_key, "verifycode": ""})
            if not response.is_success:
                raise SearchAPIError(f"HTTP错误: {response.status_code}")

            result = response.json()
            if result.get("code") != 0:
                raise SearchAPIError(f"API错误: {result.get('msg') or '未知错误'}")
        except (SearchAPIError, httpx.HTTPError, ValueError) as e:
            raise SearchAPIError(f"获取文章详情失败: {e}") from e

        data = result.get("data") or {}
        html = data.get("html") or ""
        return ArticleDetail(
            title=data.get("title") or "",
            content=html_to_text(html),
            html=html,
            description=data.get("desc") or "",
            author=data.get("author") or "",
            nickname=data.get("nickname") or "",
            avatar=data.get("mp_head_img") or "",
            signature=data.get("signature") or "",
            wxid=data.get("wxid") or "",
            gh_id=data.get("gh_id") or "",
            coverUrl=data.get("cover_url") or "",
            isOriginal=data.get("copyright") == 1,
            publishTime=int(data.get("post_time") or 0) * 1000,
            postTimeStr=data.get("post_time_str") or "",
            articleUrl=data.get("article_url") or article_url,
            sourceUrl=data.get("source_url") or "",
        )

    async def batch_get_article_details(self, urls: list[str], concurrency: int = 3) -> list[ArticleDetail]:
        """
        批量获取文章详情，失败项直接丢弃

        Args:
            urls: 文章链接列表
            concurrency: 每批并发数

        Returns:
            list[ArticleDetail]: 成功获取的详情
        """
        details = await run_in_batches(urls, self.get_article_detail, concurrency, self.batch_delay)
        logger.info(f"文章详情获取完成: {len(details)}/{len(urls)}")
        return details


__all__ = [
    "ArticleDetail",
    "WechatDetailClient",
    "html_to_text",
    "is_valid_article_url",
    "extract_valid_url",
]
