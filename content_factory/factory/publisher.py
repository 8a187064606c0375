"""
Content Factory 内容工厂 - 公众号发布

通过发布网关（X-API-Key 认证）把草稿发布到已授权的公众号：
- 获取公众号列表
- 发布图文（news）或小绿书（newspic）
- 查询发布状态
- 单篇 / 批量发布草稿，成功后标记草稿已发布

使用方法：
    from content_factory.factory.publisher import WechatPublisher

    publisher = WechatPublisher()
    accounts = await publisher.get_wechat_accounts()
    result = await publisher.publish_draft(draft_id, appid=accounts[0]["wechatAppid"])
"""

import re

import httpx

from content_factory.config import WechatPublishConfig, get_settings
from content_factory.factory.draft_store import DraftStore
from content_factory.intel.utils import create_async_http_client, retry_async
from content_factory.utils.errors import ConfigError, PublishError, ValidationError
from content_factory.utils.logger import get_publish_logger

logger = get_publish_logger()

ARTICLE_TYPES = ("news", "newspic")

MAX_TITLE_LENGTH = 64
MAX_SUMMARY_LENGTH = 120
SUMMARY_PREVIEW_LENGTH = 100
NEWSPIC_MAX_IMAGES = 20
NEWSPIC_MAX_TEXT = 1000

_MARKDOWN_IMAGE = re.compile(r"!\[.*?\]\(.*?\)")
_MARKDOWN_SYMBOLS = re.compile(r"[#*`>]")

# HTTP 状态码 → 用户提示
_STATUS_MESSAGES = {
    401: "API密钥无效或已过期",
    403: "API访问被拒绝",
    404: "公众号不存在或未授权",
    429: "请求频率过高，请稍后重试",
}


# ═══════════════════════════════════════════════════════════════════════════════
# 参数校验与格式化
# ═══════════════════════════════════════════════════════════════════════════════


def validate_publish_params(params: dict) -> tuple[bool, list[str]]:
    """
    校验发布参数

    Args:
        params: format_publish_params 的结果

    Returns:
        tuple[bool, list[str]]: (是否通过, 错误列表)
    """
    errors = []
    title = params.get("title") or ""
    content = params.get("content") or ""

    if not params.get("wechatAppid"):
        errors.append("请选择要发布的公众号")
    if not title.strip():
        errors.append("文章标题不能为空")
    if len(title) > MAX_TITLE_LENGTH:
        errors.append("文章标题不能超过64个字符")
    if not content.strip():
        errors.append("文章内容不能为空")
    if params.get("summary") and len(params["summary"]) > MAX_SUMMARY_LENGTH:
        errors.append("文章摘要不能超过120个字符")

    # 小绿书：图片数量和纯文字长度
    if params.get("articleType") == "newspic":
        images = _MARKDOWN_IMAGE.findall(content)
        if not images:
            errors.append("小绿书发布必须包含至少1张图片")
        if len(images) > NEWSPIC_MAX_IMAGES:
            errors.append("小绿书发布最多支持20张图片")
        if len(_MARKDOWN_IMAGE.sub("", content).strip()) > NEWSPIC_MAX_TEXT:
            errors.append("小绿书文字内容不能超过1000个字符")

    return not errors, errors


def _summary_from_content(content: str) -> str:
    plain = _MARKDOWN_SYMBOLS.sub("", content)
    plain = re.sub(r"\n+", " ", plain).strip()
    suffix = "..." if len(plain) > SUMMARY_PREVIEW_LENGTH else ""
    return plain[:SUMMARY_PREVIEW_LENGTH] + suffix


def _cover_image(draft: dict) -> str | None:
    """封面优先，其次第一张正文图片"""
    cover = draft.get("cover")
    if cover:
        if isinstance(cover, dict):
            return cover.get("url")
        if isinstance(cover, str):
            return cover
        return None

    images = draft.get("images") or []
    if images:
        first = images[0]
        return first.get("url") if isinstance(first, dict) else first
    return None


def format_publish_params(draft: dict, appid: str, article_type: str = "news") -> dict:
    """
    草稿 → 发布网关请求体

    Args:
        draft: 草稿数据（DraftModel.to_dict() 或同结构 dict）
        appid: 公众号 AppID
        article_type: news / newspic

    Returns:
        dict: 发布参数（Markdown 格式）
    """
    params = {
        "wechatAppid": appid,
        "title": draft.get("title") or "",
        "content": draft.get("content") or "",
        "articleType": article_type,
        "contentFormat": "markdown",
    }

    if params["content"]:
        params["summary"] = _summary_from_content(params["content"])

    cover = _cover_image(draft)
    if cover:
        params["coverImage"] = cover

    if draft.get("author"):
        params["author"] = draft["author"]

    return params


def map_publish_error(exc: Exception) -> tuple[int, str]:
    """
    发布异常 → (状态码, 用户提示)

    Returns:
        tuple[int, str]: 网关 HTTP 错误映射到对应状态码，其余为 500 + 原始消息
    """
    message = str(exc)
    status_code = exc.status_code if isinstance(exc, PublishError) else None

    if status_code in _STATUS_MESSAGES:
        return status_code, _STATUS_MESSAGES[status_code]
    if "公众号授权已过期" in message:
        return 401, "公众号授权已过期，请重新授权"
    if status_code is not None or isinstance(exc, httpx.HTTPError):
        return 502, "外部API服务不可用"
    return 500, message or "发布文章失败"


# ═══════════════════════════════════════════════════════════════════════════════
# 发布客户端
# ═══════════════════════════════════════════════════════════════════════════════


class WechatPublisher:
    """公众号发布客户端"""

    def __init__(
        self,
        config: WechatPublishConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        draft_store: DraftStore | None = None,
    ):
        self.config = config or get_settings().wechat_publish
        self.transport = transport
        self.timeout = timeout
        self._draft_store = draft_store

    @property
    def draft_store(self) -> DraftStore:
        if self._draft_store is None:
            self._draft_store = DraftStore()
        return self._draft_store

    def _headers(self) -> dict:
        if not self.config.api_key:
            raise ConfigError("公众号发布API密钥未配置，请在设置中配置API密钥")
        return {"X-API-Key": self.config.api_key, "Content-Type": "application/json"}

    async def _send(self, path: str, payload: dict | None) -> dict:
        headers = self._headers()
        async with create_async_http_client(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(f"{self.config.api_base.rstrip('/')}{path}", json=payload, headers=headers)

        if not response.is_success:
            raise PublishError(f"HTTP error! status: {response.status_code}", status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise PublishError("发布API响应不是有效JSON", status_code=response.status_code) from e

    @retry_async(max_attempts=3, min_wait=1, max_wait=10)
    async def _post(self, path: str, payload: dict | None = None) -> dict:
        return await self._send(path, payload)

    async def get_wechat_accounts(self) -> list[dict]:
        """
        获取已授权的公众号列表

        Returns:
            list[dict]: 公众号（wechatAppid、name、avatar 等）

        Raises:
            PublishError: 网关失败
        """
        data = await self._post("/wechat-accounts")
        if not data.get("success"):
            raise PublishError("获取公众号列表失败")
        accounts = (data.get("data") or {}).get("accounts") or []
        logger.info(f"获取到 {len(accounts)} 个公众号")
        return accounts

    async def publish_to_wechat(self, params: dict) -> dict:
        """
        发布文章（不重试，避免重复发文）

        Args:
            params: format_publish_params 的结果

        Returns:
            dict: 发布结果（publicationId、mediaId、status 等）
        """
        data = await self._send("/wechat-publish", params)
        if not data.get("success"):
            raise PublishError(data.get("error") or "发布失败")
        if not data.get("data"):
            raise PublishError("发布响应数据异常")
        return data["data"]

    async def get_publish_status(self, publication_id: str) -> dict:
        data = await self._post("/wechat-publish/status", {"publicationId": publication_id})
        if not data.get("success"):
            raise PublishError(data.get("error") or "获取发布状态失败")
        if not data.get("data"):
            raise PublishError("状态响应数据异常")
        return data["data"]

    async def publish_draft(
        self,
        draft_id: str | None = None,
        appid: str = "",
        article_type: str = "news",
        draft_data: dict | None = None,
    ) -> dict:
        """
        发布单个草稿

        草稿数据优先使用 draft_data，否则按 draft_id 从草稿库读取。

        Returns:
            dict: {success, data | error, message, status}
        """
        if not draft_id and not draft_data:
            return {"success": False, "error": "缺少草稿ID或草稿数据", "status": 400}
        if not appid:
            return {"success": False, "error": "缺少公众号AppID", "status": 400}
        if article_type not in ARTICLE_TYPES:
            return {"success": False, "error": "文章类型无效，必须是 news 或 newspic", "status": 400}

        draft = draft_data
        if draft is None:
            model = self.draft_store.get_draft(draft_id)
            draft = model.to_dict() if model else None
        if not draft:
            return {"success": False, "error": "草稿不存在，请确保传递了完整的草稿数据", "status": 404}

        params = format_publish_params(draft, appid, article_type)
        valid, errors = validate_publish_params(params)
        if not valid:
            return {"success": False, "error": "参数验证失败", "details": errors, "status": 400}

        logger.info(f"开始发布文章到公众号: {params['title'][:50]}")
        try:
            result = await self.publish_to_wechat(params)
        except (PublishError, ConfigError, httpx.HTTPError, ValueError) as e:
            logger.error(f"发布文章失败: {e}")
            status, message = map_publish_error(e)
            return {"success": False, "error": message, "message": str(e), "status": status}

        target_id = draft_id or draft.get("id")
        if target_id:
            self.draft_store.mark_published(
                target_id, appid, article_type, result.get("publicationId"), result.get("mediaId")
            )

        logger.info(f"文章发布成功: {result.get('publicationId')}")
        return {"success": True, "data": result, "message": "文章发布成功", "status": 200}

    async def batch_publish(
        self,
        draft_ids: list[str],
        appid: str,
        article_type: str = "news",
        drafts: list[dict] | None = None,
    ) -> dict:
        """
        逐个发布草稿

        Args:
            draft_ids: 草稿 ID 列表
            appid: 公众号 AppID
            article_type: news / newspic
            drafts: 草稿数据（按 id 匹配；不传时从草稿库读取）

        Returns:
            dict: {total, successCount, failedCount, results}
        """
        if not draft_ids:
            raise ValidationError("请提供要发布的草稿ID列表")
        if not appid:
            raise ValidationError("请选择要发布的公众号")
        if not self.config.api_key or not self.config.api_base:
            raise ConfigError("微信公众号发布配置未找到或配置不完整")

        results = []
        success_count = 0
        for draft_id in draft_ids:
            try:
                draft = self._find_draft(draft_id, drafts)
                result = await self.publish_to_wechat(format_publish_params(draft, appid, article_type))
            except (PublishError, ValidationError, httpx.HTTPError, ValueError) as e:
                logger.error(f"发布草稿 {draft_id} 失败: {e}")
                results.append({"draftId": draft_id, "status": "failed", "error": str(e)})
                continue

            if self.draft_store.get_draft(draft_id) is not None:
                self.draft_store.mark_published(
                    draft_id, appid, article_type, result.get("publicationId"), result.get("mediaId")
                )
            success_count += 1
            results.append({
                "draftId": draft_id,
                "status": "success",
                "publicationId": result.get("publicationId"),
                "message": "发布成功",
            })

        failed_count = len(draft_ids) - success_count
        logger.info(f"批量发布完成：成功 {success_count} 个，失败 {failed_count} 个")
        return {
            "total": len(draft_ids),
            "successCount": success_count,
            "failedCount": failed_count,
            "results": results,
        }

    def _find_draft(self, draft_id: str, drafts: list[dict] | None) -> dict:
        if drafts is not None:
            for draft in drafts:
                if draft.get("id") == draft_id:
                    return draft
        else:
            model = self.draft_store.get_draft(draft_id)
            if model is not None:
                return model.to_dict()
        raise ValidationError("无法找到草稿信息")


__all__ = [
    "ARTICLE_TYPES",
    "WechatPublisher",
    "format_publish_params",
    "map_publish_error",
    "validate_publish_params",
]
