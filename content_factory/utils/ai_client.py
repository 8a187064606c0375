"""
Content Factory 内容工厂 - 统一 AI 客户端

功能：
- OpenAI 兼容对话接口（默认 OpenRouter）
- 硅基流动图片生成接口（文章配图）
- DALL-E 风格图片接口（文章封面，走对话服务商）
- 统一的异步调用接口，可注入传输层便于测试

使用方法：
    from content_factory.utils.ai_client import get_ai_client

    client = get_ai_client()
    text = await client.complete("你是内容专家", "分析这篇文章")
"""

from dataclasses import dataclass

import httpx

from content_factory.config import OpenRouterConfig, SiliconFlowConfig, get_settings
from content_factory.intel.utils import create_async_http_client, retry_async
from content_factory.utils.errors import AIServiceError, ConfigError, ImageGenerationError
from content_factory.utils.logger import get_logger

logger = get_logger("content_factory.ai")

# AI 请求超时配置（秒）
AI_TIMEOUT = 300  # 生成长文章需要较长时间
IMAGE_TIMEOUT = 120


@dataclass
class AIResponse:
    """AI 响应结构"""
    text: str                          # 生成的文本
    model: str                         # 使用的模型
    usage: dict | None = None          # Token 使用情况


def _error_message(response: httpx.Response) -> str:
    """提取 OpenAI 风格错误消息，解析失败时使用状态描述"""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or "Unknown error"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str) and error:
            return error
    return response.reason_phrase or "Unknown error"


class ChatClient:
    """OpenAI 兼容对话客户端"""

    def __init__(
        self,
        config: OpenRouterConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = AI_TIMEOUT,
    ):
        self.config = config or get_settings().openrouter
        self.transport = transport
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return self.config.api_base.rstrip("/")

    @property
    def model(self) -> str:
        return self.config.model

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }
        # OpenRouter 需要额外的来源标识
        if self.config.is_openrouter:
            headers["HTTP-Referer"] = self.config.referer
            headers["X-Title"] = "Content Factory"
        return headers

    @retry_async(max_attempts=3, min_wait=2, max_wait=20)
    async def _post(self, path: str, payload: dict) -> httpx.Response:
        async with create_async_http_client(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(f"{self.base_url}{path}", headers=self._headers(), json=payload)

    async def chat(self, messages: list[dict], temperature: float = 0.7, **kwargs) -> AIResponse:
        """
        调用 chat/completions 接口

        Args:
            messages: 对话消息列表
            temperature: 采样温度
            **kwargs: 额外请求字段（如 max_tokens）

        Returns:
            AIResponse: 响应文本（choices 为空时为空串）

        Raises:
            ConfigError: 未配置 API 密钥
            AIServiceError: 接口返回非 2xx
        """
        if not self.config.api_key:
            raise ConfigError("API密钥未配置，请在设置中配置OpenRouter API密钥")

        payload = {
            "model": kwargs.pop("model", None) or self.model,
            "messages": messages,
            "temperature": temperature,
            "response_format": {"type": "text"},
            **kwargs,
        }

        response = await self._post("/chat/completions", payload)
        if not response.is_success:
            raise AIServiceError(f"OpenAI API错误: {_error_message(response)}")

        try:
            data = response.json()
        except ValueError as e:
            raise AIServiceError("OpenAI API错误: 响应不是有效JSON") from e

        choices = data.get("choices") or []
        text = ""
        if choices:
            text = (choices[0].get("message") or {}).get("content") or ""

        return AIResponse(text=text, model=payload["model"], usage=data.get("usage"))

    async def complete(self, system: str, user: str, temperature: float = 0.7, **kwargs) -> str:
        """
        便捷方法：一条系统消息 + 一条用户消息

        Returns:
            str: 生成的文本
        """
        response = await self.chat(
            [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            **kwargs,
        )
        return response.text

    async def generate_cover_image(self, prompt: str) -> str | None:
        """
        调用 DALL-E 风格 images/generations 接口生成封面

        Args:
            prompt: 封面描述（英文）

        Returns:
            str | None: 图片 URL；未配置密钥、接口失败或数据异常时返回 None
        """
        if not self.config.api_key:
            logger.warning("对话服务 API Key 未配置，封面使用占位图片")
            return None

        response = await self._post("/images/generations", {
            "model": "dall-e-3",
            "prompt": prompt,
            "n": 1,
            "size": "1024x1792",  # 接近 2.35:1 的竖向裁切源
            "quality": "standard",
            "response_format": "url",
        })
        if not response.is_success:
            logger.warning(f"封面生成接口错误 ({response.status_code}): {response.reason_phrase}，使用占位图片")
            return None

        try:
            items = response.json().get("data") or []
        except ValueError:
            items = []
        if not items or not items[0].get("url"):
            logger.warning("封面生成接口返回数据格式错误，使用占位图片")
            return None
        return items[0]["url"]


class ImageClient:
    """硅基流动图片生成客户端"""

    def __init__(
        self,
        config: SiliconFlowConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = IMAGE_TIMEOUT,
    ):
        self.config = config or get_settings().siliconflow
        self.transport = transport
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    async def generate(self, prompt: str) -> str:
        """
        生成单张 1024x1024 配图

        Args:
            prompt: 已应用风格的提示词

        Returns:
            str: 图片 URL（接口未返回时为空串）

        Raises:
            ImageGenerationError: 接口返回非 2xx
        """
        async with create_async_http_client(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.config.api_base.rstrip('/')}/images/generations",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.config.api_key}",
                },
                json={
                    "model": self.config.image_model,
                    "prompt": prompt + ", high quality, professional illustration style, no text",
                    "n": 1,
                    "size": "1024x1024",
                    "response_format": "url",
                },
            )

        if not response.is_success:
            raise ImageGenerationError(f"SiliconFlow API错误: {_error_message(response)}")

        try:
            items = response.json().get("data") or []
        except ValueError as e:
            raise ImageGenerationError("SiliconFlow API错误: 响应不是有效JSON") from e
        return (items[0].get("url") if items else "") or ""


# 客户端实例缓存
_chat_client: ChatClient | None = None


def get_ai_client() -> ChatClient:
    """
    获取全局对话客户端

    Returns:
        ChatClient: 客户端实例
    """
    global _chat_client
    if _chat_client is None:
        _chat_client = ChatClient()
    return _chat_client


__all__ = [
    "AIResponse",
    "ChatClient",
    "ImageClient",
    "get_ai_client",
]
