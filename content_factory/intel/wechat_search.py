"""
Content Factory 内容工厂 - 公众号文章搜索（极致了 kw_search）

功能：
- 关键词搜索公众号文章（单页 / 多页并发）
- 按作者精确搜索近一年文章
- 作者爆款统计（1w+ / 5w+ / 10w+ 阅读）
- 指定公众号文章采集与统计（全部 / 近半年）

使用方法：
    from content_factory.intel.wechat_search import WechatSearchClient

    client = WechatSearchClient()
    result = await client.search_articles("AI写作", period=7)
    for article in result.articles:
        print(article.title, article.reads)
"""

import asyncio
from dataclasses import asdict, dataclass, field

import httpx

from content_factory.config import WechatSearchConfig, get_settings
from content_factory.intel.utils import create_async_http_client, now_ms, retry_async
from content_factory.utils.errors import ConfigError, SearchAPIError, ValidationError
from content_factory.utils.logger import get_intel_logger

logger = get_intel_logger()

# 余额不足：说明 Key 本身有效（连接测试时视为成功）
CODE_INSUFFICIENT_BALANCE = 20001

# 近半年（约 6 个月）的毫秒数
SIX_MONTHS_MS = 6 * 30 * 24 * 60 * 60 * 1000


def _to_int(value) -> int:
    """将接口返回的数字字段转为 int（兼容字符串、None）"""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


@dataclass
class WechatArticle:
    """极致了返回的公众号文章"""
    title: str                      # 标题
    url: str = ""                   # 文章链接
    short_link: str = ""            # 短链接
    content: str = ""               # 正文（部分接口返回）
    digest: str = ""                # 摘要
    wx_name: str = ""               # 公众号名称
    wx_id: str = ""                 # 公众号 ID
    reads: int = 0                  # 阅读数（read）
    likes: int = 0                  # 点赞数（praise）
    looking: int = 0                # 在看数
    forwards: int = 0               # 转发数（repost）
    comments: int = 0               # 评论数
    publish_time: int = 0           # 发布时间（秒级时间戳）
    publish_time_str: str = ""      # 发布时间字符串
    cover: str = ""                 # 封面图

    @classmethod
    def from_api(cls, item: dict) -> "WechatArticle":
        return cls(
            title=item.get("title") or "",
            url=item.get("url") or "",
            short_link=item.get("short_link") or "",
            content=item.get("content") or "",
            digest=item.get("digest") or "",
            wx_name=item.get("wx_name") or "",
            wx_id=item.get("wx_id") or "",
            reads=_to_int(item.get("read")),
            likes=_to_int(item.get("praise")),
            looking=_to_int(item.get("looking")),
            forwards=_to_int(item.get("repost")),
            comments=_to_int(item.get("comment")),
            publish_time=_to_int(item.get("timestamp") or item.get("publish_time")),
            publish_time_str=item.get("publish_time_str") or "",
            cover=item.get("pic_url") or item.get("cover") or item.get("avatar") or "",
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SearchResult:
    """单页搜索结果"""
    code: int                                                   # 接口状态码
    msg: str = ""                                               # 接口消息
    total: int = 0                                              # 结果总数
    articles: list[WechatArticle] = field(default_factory=list)  # 文章列表


@dataclass
class AccountArticle:
    """公众号采集文章（对标库格式）"""
    title: str
    url: str
    publishTime: int       # 毫秒时间戳
    reads: int
    likes: int
    forwards: int
    comments: int
    authorName: str
    collectedAt: int = 0   # 采集时间（毫秒）

    def to_dict(self) -> dict:
        return asdict(self)


class WechatSearchClient:
    """极致了公众号搜索客户端"""

    # 按作者翻页之间的间隔（秒）
    page_delay: float = 1.0

    def __init__(
        self,
        config: WechatSearchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.config = config or get_settings().wechat_search
        self.transport = transport
        self.timeout = timeout

    def _require_key(self) -> str:
        if not self.config.api_key:
            raise ConfigError("微信搜索API密钥未配置，请在设置中配置API密钥")
        return self.config.api_key

    @retry_async(max_attempts=3, min_wait=1, max_wait=10)
    async def _post(self, payload: dict) -> dict:
        async with create_async_http_client(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.config.search_url, json=payload)
        if not response.is_success:
            raise SearchAPIError(f"HTTP error! status: {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise SearchAPIError("搜索API响应不是有效JSON") from e

    def build_payload(
        self,
        kw: str,
        sort_type: int = 1,
        mode: int = 1,
        period: int = 7,
        page: int = 1,
        any_kw: str = "",
        ex_kw: str = "",
        verifycode: str = "",
        type: int = 1,
        limit: int | None = None,
    ) -> dict:
        """构建 kw_search 请求体"""
        payload = {
            "kw": kw,
            "sort_type": sort_type or 1,
            "mode": mode or 1,
            "period": period or 7,
            "page": page or 1,
            "key": self._require_key(),
            "any_kw": any_kw or "",
            "ex_kw": ex_kw or "",
            "verifycode": verifycode or "",
            "type": type or 1,
        }
        if limit:
            payload["limit"] = limit
        return payload

    async def search_raw(self, kw: str, **params) -> dict:
        """
        调用搜索接口并返回原始响应（不校验 code）

        Returns:
            dict: 接口原始 JSON
        """
        return await self._post(self.build_payload(kw, **params))

    async def search_articles(self, kw: str, **params) -> SearchResult:
        """
        关键词搜索公众号文章

        Args:
            kw: 搜索关键词
            **params: sort_type / mode / period / page / any_kw / ex_kw / verifycode / type / limit

        Returns:
            SearchResult: 搜索结果

        Raises:
            ConfigError: 未配置 Key
            SearchAPIError: 接口返回 code != 0
        """
        data = await self.search_raw(kw, **params)

        if data.get("code") != 0:
            raise SearchAPIError(data.get("msg") or "API请求失败")

        items = data.get("data") or []
        return SearchResult(
            code=0,
            msg=data.get("msg") or "",
            total=_to_int(data.get("total")) or len(items),
            articles=[WechatArticle.from_api(item) for item in items],
        )

    async def search_multiple_pages(self, keyword: str, total_pages: int = 1) -> list[SearchResult]:
        """
        并发搜索多页

        Args:
            keyword: 关键词
            total_pages: 页数

        Returns:
            list[SearchResult]: 每页结果（按页码顺序）
        """
        tasks = [self.search_articles(keyword, page=page) for page in range(1, total_pages + 1)]
        return list(await asyncio.gather(*tasks))

    async def search_articles_by_author(self, author_name: str, max_pages: int = 10) -> list[WechatArticle]:
        """
        按作者（公众号名称）搜索近一年文章

        逐页搜索，只保留 wx_name 精确匹配的文章；遇到空页或本页无匹配时停止。

        Args:
            author_name: 公众号名称
            max_pages: 最大搜索页数

        Returns:
            list[WechatArticle]: 该作者的文章
        """
        if not author_name:
            raise ValidationError("作者名称不能为空")

        collected: list[WechatArticle] = []
        try:
            for page in range(1, max_pages + 1):
                result = await self.search_articles(author_name, page=page, period=365, sort_type=1)
                if not result.articles:
                    break

                matched = [a for a in result.articles if a.wx_name == author_name]
                if not matched:
                    break
                collected.extend(matched)

                if page < max_pages and self.page_delay > 0:
                    await asyncio.sleep(self.page_delay)
        except (SearchAPIError, ConfigError, httpx.HTTPError) as e:
            logger.error(f"按作者搜索文章失败: {e}")
            raise SearchAPIError(f"按作者搜索文章失败: {e}") from e

        logger.info(f"作者 {author_name} 共找到 {len(collected)} 篇文章")
        return collected

    async def analyze_author_viral_stats(self, author_name: str) -> dict:
        """
        统计作者爆款文章数量

        Returns:
            dict: totalArticles / viralStats{reads10k, reads50k, reads100k} / articles
        """
        articles = await self.search_articles_by_author(author_name)
        viral = {"reads10k": 0, "reads50k": 0, "reads100k": 0}
        for article in articles:
            if article.reads >= 10000:
                viral["reads10k"] += 1
            if article.reads >= 50000:
                viral["reads50k"] += 1
            if article.reads >= 100000:
                viral["reads100k"] += 1

        return {
            "totalArticles": len(articles),
            "viralStats": viral,
            "articles": [a.to_dict() for a in articles],
        }

    async def search_account_articles(
        self,
        account_name: str,
        time_range: str = "all",
        max_pages: int = 10,
    ) -> list[AccountArticle]:
        """
        采集指定公众号的文章

        Args:
            account_name: 公众号名称
            time_range: all=全部 / recent=近半年
            max_pages: 最大搜索页数

        Returns:
            list[AccountArticle]: 文章列表
        """
        self._require_key()
        articles = await self.search_articles_by_author(account_name, max_pages)

        now = now_ms()
        cutoff = now - SIX_MONTHS_MS
        collected = []
        for article in articles:
            publish_ms = article.publish_time * 1000
            if time_range == "recent" and publish_ms < cutoff:
                continue
            collected.append(AccountArticle(
                title=article.title,
                url=article.url or article.short_link or "",
                publishTime=publish_ms,
                reads=article.reads,
                likes=article.likes,
                forwards=article.forwards,
                comments=article.comments,
                authorName=account_name,
                collectedAt=now,
            ))
        return collected

    async def get_account_article_stats(self, account_name: str, max_pages: int = 10) -> dict:
        """
        公众号文章统计

        Returns:
            dict: totalArticles / recentArticles / avgReads / maxReads / totalReads
        """
        all_articles = await self.search_account_articles(account_name, "all", max_pages)
        cutoff = now_ms() - SIX_MONTHS_MS
        recent = [a for a in all_articles if a.publishTime >= cutoff]

        total_reads = sum(a.reads for a in all_articles)
        return {
            "totalArticles": len(all_articles),
            "recentArticles": len(recent),
            "avgReads": round(total_reads / len(all_articles)) if all_articles else 0,
            "maxReads": max((a.reads for a in all_articles), default=0),
            "totalReads": total_reads,
        }

    async def test_connection(self) -> tuple[bool, str, dict]:
        """
        连接测试：搜索 "test" 一条

        code=0 或 code=20001（余额不足，Key 有效）均视为成功。

        Returns:
            tuple: (是否成功, 消息, 原始响应)
        """
        data = await self.search_raw("test", limit=1)
        code = data.get("code")
        logger.debug(f"搜索连接测试 code={code}")

        if code == 0 and isinstance(data.get("data"), list):
            return True, "微信公众号搜索API连接成功", data
        if code == CODE_INSUFFICIENT_BALANCE:
            return True, f"微信公众号搜索API连接成功 ({data.get('msg', '')})", data
        return False, f"API错误: {data.get('msg') or '未知错误'}", data


__all__ = [
    "WechatArticle",
    "SearchResult",
    "AccountArticle",
    "WechatSearchClient",
]
