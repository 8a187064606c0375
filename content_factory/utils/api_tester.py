"""
Content Factory 内容工厂 - API 连接测试

对每个服务商发一次最小请求，返回是否连通、耗时和摘要信息：
- openrouter: chat/completions（max_tokens=10）
- siliconflow: chat/completions（图片地址会改写为对话地址）
- wechat_publish: wechat-accounts（10 秒超时）
- wechat_search: 关键词搜索 1 条
- xiaohongshu_search: 小红书搜索 1 页
"""

import time
from dataclasses import asdict, dataclass, field

import httpx

from content_factory.config import get_settings
from content_factory.intel.utils import create_async_http_client, now_ms
from content_factory.intel.wechat_search import WechatSearchClient
from content_factory.intel.xiaohongshu_search import XiaohongshuSearchClient
from content_factory.utils.errors import ContentFactoryError
from content_factory.utils.logger import get_logger

logger = get_logger("content_factory.api_tester")

# 服务商 → Settings 中的配置段
PROVIDER_SECTIONS = {
    "openrouter": "openrouter",
    "siliconflow": "siliconflow",
    "wechat_publish": "wechat_publish",
    "wechat_search": "wechat_search",
    "xiaohongshu_search": "xiaohongshu",
}

TEST_MESSAGE = 'Hello, this is a connection test. Please respond with "OK".'
PUBLISH_TEST_TIMEOUT = 10.0
DEFAULT_PUBLISH_HOST = "https://wx.limyai.com"


@dataclass
class ApiTestResult:
    """连接测试结果"""
    success: bool
    message: str
    response_time_ms: int = 0
    timestamp: int = field(default_factory=now_ms)
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class _HTTPStatusFailure(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code}: {response.reason_phrase}")
        self.status_code = response.status_code


def _test_payload(model: str) -> dict:
    return {
        "model": model,
        "messages": [{"role": "user", "content": TEST_MESSAGE}],
        "max_tokens": 10,
        "temperature": 0.1,
    }


def siliconflow_test_url(api_base: str) -> str:
    """对话测试地址：图片生成地址改写为 chat/completions"""
    if "/images/generations" in api_base:
        return api_base.replace("/images/generations", "/chat/completions")
    if "/chat/completions" in api_base:
        return api_base
    return f"{api_base.rstrip('/')}/chat/completions"


def wechat_publish_test_url(api_base: str) -> str:
    if "wechat-accounts" in api_base:
        return api_base
    host = api_base.replace("/api/openapi", "").rstrip("/") or DEFAULT_PUBLISH_HOST
    return f"{host}/api/openapi/wechat-accounts"


class ApiTester:
    """API 连接测试"""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.transport = transport

    async def test(self, provider: str, config=None) -> ApiTestResult:
        """
        测试指定服务商的连接

        Args:
            provider: openrouter / siliconflow / wechat_publish / wechat_search / xiaohongshu_search
            config: 对应的配置段（默认读取当前配置）

        Returns:
            ApiTestResult: 测试结果（不会抛出异常）
        """
        if provider not in PROVIDER_SECTIONS:
            return ApiTestResult(success=False, message=f"不支持的API提供商: {provider}")

        config = config or getattr(get_settings(), PROVIDER_SECTIONS[provider])
        if not getattr(config, "api_key", ""):
            return ApiTestResult(success=False, message="未找到API配置或API密钥为空")

        logger.info(f"开始测试API连接: {provider}")
        handler = getattr(self, f"_test_{provider}")
        started = time.perf_counter()
        result = await handler(config, started)
        logger.info(f"测试结果 [{provider}]: {'成功' if result.success else '失败'} {result.message}")
        return result

    @staticmethod
    def _elapsed(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)

    async def _chat_request(self, url: str, headers: dict, model: str, timeout: float = 30.0) -> dict:
        async with create_async_http_client(timeout=timeout, retries=0, transport=self.transport) as client:
            response = await client.post(url, headers=headers, json=_test_payload(model))
        if not response.is_success:
            raise _HTTPStatusFailure(response)
        data = response.json()
        if not data.get("choices"):
            raise ValueError("API响应格式异常")
        return data

    async def _test_openrouter(self, config, started: float) -> ApiTestResult:
        headers = {"Authorization": f"Bearer {config.api_key}", "Content-Type": "application/json"}
        if config.is_openrouter:
            headers["HTTP-Referer"] = config.referer
            headers["X-Title"] = "Content Factory"

        try:
            data = await self._chat_request(
                f"{config.api_base.rstrip('/')}/chat/completions", headers, config.model or "openai/gpt-4o"
            )
        except (_HTTPStatusFailure, httpx.HTTPError, ValueError) as e:
            return ApiTestResult(success=False, message=str(e) or "OpenRouter连接失败",
                                 response_time_ms=self._elapsed(started))

        return ApiTestResult(
            success=True,
            message="OpenRouter API连接成功",
            response_time_ms=self._elapsed(started),
            details={"model": data.get("model"), "usage": data.get("usage")},
        )

    async def _test_siliconflow(self, config, started: float) -> ApiTestResult:
        url = siliconflow_test_url(config.api_base)
        headers = {"Authorization": f"Bearer {config.api_key}", "Content-Type": "application/json"}

        try:
            data = await self._chat_request(url, headers, config.chat_model or "deepseek-ai/DeepSeek-V3")
        except (_HTTPStatusFailure, httpx.HTTPError, ValueError) as e:
            status = getattr(e, "status_code", None)
            if status == 404:
                message = "API端点不存在，请检查API地址配置是否正确"
            elif status == 401:
                message = "API密钥无效或已过期"
            elif isinstance(e, httpx.TransportError):
                message = "网络连接失败，请检查网络或API服务状态"
            else:
                message = str(e) or "SiliconFlow连接失败"
            return ApiTestResult(
                success=False,
                message=message,
                response_time_ms=self._elapsed(started),
                details={"originalError": str(e), "apiBase": config.api_base},
            )

        return ApiTestResult(
            success=True,
            message="SiliconFlow API连接成功",
            response_time_ms=self._elapsed(started),
            details={"model": data.get("model"), "usage": data.get("usage"), "testUrl": url},
        )

    async def _test_wechat_publish(self, config, started: float) -> ApiTestResult:
        url = wechat_publish_test_url(config.api_base)
        headers = {"X-API-Key": config.api_key, "Content-Type": "application/json", "Accept": "application/json"}

        try:
            async with create_async_http_client(
                timeout=PUBLISH_TEST_TIMEOUT, retries=0, transport=self.transport
            ) as client:
                response = await client.post(url, headers=headers, json={})
            if not response.is_success:
                raise _HTTPStatusFailure(response)
            data = response.json()
            if not data.get("success"):
                raise ValueError(data.get("error") or "API返回失败")
        except (_HTTPStatusFailure, httpx.HTTPError, ValueError) as e:
            if isinstance(e, httpx.TimeoutException):
                message = "连接超时，请检查网络或API服务状态"
            elif isinstance(e, httpx.TransportError):
                message = "网络连接失败，请检查网络或API服务状态"
            else:
                message = str(e) or "微信公众号发布API连接失败"
            return ApiTestResult(
                success=False,
                message=message,
                response_time_ms=self._elapsed(started),
                details={"originalError": str(e), "apiUrl": config.api_base},
            )

        accounts = (data.get("data") or {}).get("accounts") or []
        return ApiTestResult(
            success=True,
            message="微信公众号发布API连接成功",
            response_time_ms=self._elapsed(started),
            details={"accountsCount": len(accounts), "apiUrl": url},
        )

    async def _test_wechat_search(self, config, started: float) -> ApiTestResult:
        client = WechatSearchClient(config=config, transport=self.transport)
        try:
            success, message, data = await client.test_connection()
        except (ContentFactoryError, httpx.HTTPError, ValueError) as e:
            return ApiTestResult(success=False, message=str(e) or "微信公众号搜索API连接失败",
                                 response_time_ms=self._elapsed(started))

        results = data.get("data") if isinstance(data.get("data"), list) else []
        return ApiTestResult(
            success=success,
            message=message,
            response_time_ms=self._elapsed(started),
            details={"code": data.get("code"), "resultsCount": len(results)},
        )

    async def _test_xiaohongshu_search(self, config, started: float) -> ApiTestResult:
        client = XiaohongshuSearchClient(config=config, transport=self.transport)
        try:
            data = await client.search_raw("test")
        except (ContentFactoryError, httpx.HTTPError, ValueError) as e:
            return ApiTestResult(success=False, message=str(e) or "小红书搜索API连接失败",
                                 response_time_ms=self._elapsed(started))

        if data.get("code") != 0:
            return ApiTestResult(
                success=False,
                message=f"API错误: {data.get('msg') or '未知错误'}",
                response_time_ms=self._elapsed(started),
                details={"code": data.get("code")},
            )
        return ApiTestResult(
            success=True,
            message="小红书搜索API连接成功",
            response_time_ms=self._elapsed(started),
            details={"code": 0},
        )


__all__ = ["ApiTestResult", "ApiTester", "siliconflow_test_url", "wechat_publish_test_url"]
