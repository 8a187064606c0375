"""
Content Factory 内容工厂 - 公众号账号信息与对标评分

功能：
- 获取公众号粉丝、头条阅读、周发文等数据（极致了 Keyverifycode）
- 计算互动率与活跃度
- 对标适合度评分（0-100）与推荐等级

使用方法：
    from content_factory.intel.wechat_account import WechatAccountClient, calculate_suitability_score

    client = WechatAccountClient()
    info = await client.get_account_info("某某公众号")
    score = calculate_suitability_score(info)
"""

import datetime
from dataclasses import asdict, dataclass

import httpx

from content_factory.config import WechatSearchConfig, get_settings
from content_factory.intel.utils import create_async_http_client, retry_async, run_in_batches
from content_factory.utils.errors import ConfigError, SearchAPIError, ValidationError
from content_factory.utils.logger import get_intel_logger

logger = get_intel_logger()

# 超过该天数未发文视为不活跃
INACTIVE_DAYS = 30


@dataclass
class AccountInfo:
    """公众号账号信息"""
    name: str
    wxid: str = ""
    ghid: str = ""
    avatar: str = ""
    qrcode: str = ""
    fans: int = 0                   # 粉丝数
    jzlIndex: float = 0             # 极致了指数
    avgTopRead: int = 0             # 头条平均阅读
    avgTopZan: int = 0              # 头条平均点赞
    weekArticles: int = 0           # 近一周发文数
    latestPublishTime: str = ""     # 最新发文时间（原始字符串）
    latestPublishDate: str = ""     # 最新发文时间（ISO 格式）
    engagementRate: float = 0.0     # 互动率（%，保留两位小数）
    isActive: bool = True           # 是否活跃
    activityLevel: str = "medium"   # high / medium / low

    def to_dict(self) -> dict:
        return asdict(self)


def _parse_publish_time(value: str | None, now: datetime.datetime) -> datetime.datetime:
    """解析最新发文时间，失败时使用当前时间"""
    if not value:
        return now
    try:
        return datetime.datetime.fromisoformat(str(value).strip())
    except ValueError:
        return now


def build_account_info(name: str, data: dict, now: datetime.datetime | None = None) -> AccountInfo:
    """
    由接口数据构建账号信息（含互动率和活跃度计算）

    Args:
        name: 查询的公众号名称
        data: 接口 data 字段
        now: 当前时间（测试注入）

    Returns:
        AccountInfo: 账号信息
    """
    now = now or datetime.datetime.now()
    latest = _parse_publish_time(data.get("latest_publish_time"), now)
    if latest.tzinfo is not None:
        latest = latest.astimezone().replace(tzinfo=None)

    avg_read = data.get("avg_top_read") or 0
    avg_zan = data.get("avg_top_zan") or 0
    week_articles = data.get("week_articles") or 0
    engagement = (avg_zan / avg_read) * 100 if avg_read > 0 else 0

    days_since_last_post = (now - latest).days
    is_active = True
    if days_since_last_post > INACTIVE_DAYS:
        is_active = False
        level = "low"
    elif week_articles >= 7:
        level = "high"
    elif week_articles >= 3:
        level = "medium"
    else:
        level = "low"

    return AccountInfo(
        name=data.get("name") or name,
        wxid=data.get("wxid") or "",
        ghid=data.get("ghid") or "",
        avatar=data.get("avatar") or "",
        qrcode=data.get("qrcode") or "",
        fans=data.get("fans") or 0,
        jzlIndex=data.get("jzl_index") or 0,
        avgTopRead=avg_read,
        avgTopZan=avg_zan,
        weekArticles=week_articles,
        latestPublishTime=data.get("latest_publish_time") or "",
        latestPublishDate=latest.isoformat(),
        engagementRate=round(engagement, 2),
        isActive=is_active,
        activityLevel=level,
    )


def calculate_suitability_score(info: AccountInfo) -> int:
    """
    计算对标适合度评分

    粉丝 25 + 头条阅读 25 + 活跃度 20 + 产出 15 + 互动率 15，上限 100。

    Args:
        info: 公众号信息

    Returns:
        int: 评分（0-100）
    """
    score = 0

    # 粉丝数量
    if info.fans >= 100000:
        score += 25
    elif info.fans >= 50000:
        score += 20
    elif info.fans >= 10000:
        score += 15
    elif info.fans >= 1000:
        score += 10
    else:
        score += 5

    # 头条平均阅读
    if info.avgTopRead >= 50000:
        score += 25
    elif info.avgTopRead >= 20000:
        score += 20
    elif info.avgTopRead >= 10000:
        score += 15
    elif info.avgTopRead >= 5000:
        score += 10
    else:
        score += 5

    # 活跃度
    if info.activityLevel == "high" and info.isActive:
        score += 20
    elif info.activityLevel == "medium" and info.isActive:
        score += 15
    elif info.isActive:
        score += 10
    else:
        score += 5

    # 内容产出
    if info.weekArticles >= 7:
        score += 15
    elif info.weekArticles >= 5:
        score += 12
    elif info.weekArticles >= 3:
        score += 10
    elif info.weekArticles >= 1:
        score += 7
    else:
        score += 3

    # 互动率
    if info.engagementRate >= 10:
        score += 15
    elif info.engagementRate >= 7:
        score += 12
    elif info.engagementRate >= 5:
        score += 10
    elif info.engagementRate >= 3:
        score += 7
    else:
        score += 3

    return min(score, 100)


def get_suitability_level(score: int) -> dict:
    """
    评分对应的推荐等级

    Returns:
        dict: level / description / color
    """
    if score >= 85:
        return {"level": "强烈推荐", "description": "优质对标账号，非常适合新手学习", "color": "green"}
    if score >= 70:
        return {"level": "推荐对标", "description": "不错的对标账号，值得学习参考", "color": "blue"}
    if score >= 50:
        return {"level": "可以参考", "description": "有一定参考价值，但要选择性学习", "color": "yellow"}
    return {"level": "谨慎参考", "description": "对标价值有限，建议寻找更好选择", "color": "red"}


class WechatAccountClient:
    """公众号信息客户端"""

    # 批次之间的间隔（秒）
    batch_delay: float = 2.0

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
            return await client.post(self.config.account_url, json=payload)

    async def get_account_info(self, account_name: str) -> AccountInfo:
        """
        获取公众号详细信息

        Raises:
            ValidationError: 名称为空
            SearchAPIError: 请求或接口失败（消息前缀 "获取公众号信息失败: "）
        """
        if not account_name:
            raise ValidationError("公众号名称不能为空")
        if not self.config.api_key:
            raise ConfigError("微信搜索API密钥未配置，请在设置中配置API密钥")

        try:
            response = await self._post({
                "url": "",
                "name": account_name,
                "key": self.config.api_key,
                "verifycode": "",
            })
            if not response.is_success:
                raise SearchAPIError(f"HTTP错误: {response.status_code}")

            result = response.json()
            if result.get("code") != 0:
                raise SearchAPIError(f"API错误: {result.get('msg') or '未知错误'}")
        except (SearchAPIError, httpx.HTTPError, ValueError) as e:
            raise SearchAPIError(f"获取公众号信息失败: {e}") from e

        return build_account_info(account_name, result.get("data") or {})

    async def batch_get_account_infos(self, names: list[str], concurrency: int = 2) -> list[AccountInfo]:
        """
        批量获取公众号信息，失败项直接丢弃

        Args:
            names: 公众号名称列表
            concurrency: 每批并发数

        Returns:
            list[AccountInfo]: 成功获取的信息
        """
        return await run_in_batches(names, self.get_account_info, concurrency, self.batch_delay)


__all__ = [
    "AccountInfo",
    "WechatAccountClient",
    "build_account_info",
    "calculate_suitability_score",
    "get_suitability_level",
]
