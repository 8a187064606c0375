"""
API 连接测试模块测试
"""

import httpx
import pytest

from content_factory.config import OpenRouterConfig
from content_factory.utils.api_tester import (
    ApiTester,
    ApiTestResult,
    siliconflow_test_url,
    wechat_publish_test_url,
)
from tests.conftest import json_transport, request_json

CHAT_OK = {"model": "test-model", "usage": {"total_tokens": 12}, "choices": [{"message": {"content": "OK"}}]}


class TestUrlHelpers:
    """测试地址改写"""

    @pytest.mark.parametrize("api_base,expected", [
        ("https://sf.test/v1/images/generations", "https://sf.test/v1/chat/completions"),
        ("https://sf.test/v1/chat/completions", "https://sf.test/v1/chat/completions"),
        ("https://sf.test/v1/", "https://sf.test/v1/chat/completions"),
    ])
    def test_siliconflow_url(self, api_base, expected):
        assert siliconflow_test_url(api_base) == expected

    @pytest.mark.parametrize("api_base,expected", [
        ("https://wx.test/api/openapi", "https://wx.test/api/openapi/wechat-accounts"),
        ("https://wx.test/api/openapi/wechat-accounts", "https://wx.test/api/openapi/wechat-accounts"),
        ("", "https://wx.limyai.com/api/openapi/wechat-accounts"),
    ])
    def test_publish_url(self, api_base, expected):
        assert wechat_publish_test_url(api_base) == expected

    def test_result_to_dict(self):
        data = ApiTestResult(success=True, message="ok", response_time_ms=5).to_dict()
        assert set(data) == {"success", "message", "response_time_ms", "timestamp", "details"}
        assert data["timestamp"] > 0


class TestApiTester:
    """各服务商连接测试"""

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        result = await ApiTester().test("baidu", OpenRouterConfig(api_key="k" * 30))
        assert result.success is False
        assert result.message == "不支持的API提供商: baidu"

    @pytest.mark.asyncio
    async def test_missing_key(self):
        result = await ApiTester().test("openrouter", OpenRouterConfig(api_key=""))
        assert result.success is False
        assert result.message == "未找到API配置或API密钥为空"

    @pytest.mark.asyncio
    async def test_openrouter_success(self, chat_config):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["referer"] = request.headers.get("HTTP-Referer")
            captured["body"] = request_json(request)
            return 200, CHAT_OK

        result = await ApiTester(json_transport(handler)).test("openrouter", chat_config)

        assert result.success is True
        assert result.message == "OpenRouter API连接成功"
        assert result.details == {"model": "test-model", "usage": {"total_tokens": 12}}
        assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
        assert captured["referer"] == chat_config.referer
        assert captured["body"]["max_tokens"] == 10
        assert captured["body"]["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_openrouter_failures(self, chat_config):
        tester = ApiTester(json_transport(lambda r: (200, {"choices": []})))
        assert (await tester.test("openrouter", chat_config)).message == "API响应格式异常"

        tester = ApiTester(json_transport(lambda r: (500, "")))
        assert (await tester.test("openrouter", chat_config)).message == "HTTP 500: Internal Server Error"

    @pytest.mark.asyncio
    async def test_siliconflow_rewrites_image_url(self, siliconflow_config):
        siliconflow_config.api_base = "https://sf.test/v1/images/generations"
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return 200, CHAT_OK

        result = await ApiTester(json_transport(handler)).test("siliconflow", siliconflow_config)

        assert result.success is True
        assert urls == ["https://sf.test/v1/chat/completions"]
        assert result.details["testUrl"] == urls[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,message", [
        (404, "API端点不存在，请检查API地址配置是否正确"),
        (401, "API密钥无效或已过期"),
    ])
    async def test_siliconflow_status_messages(self, siliconflow_config, status, message):
        result = await ApiTester(json_transport(lambda r: (status, ""))).test("siliconflow", siliconflow_config)
        assert result.success is False
        assert result.message == message
        assert result.details["apiBase"] == siliconflow_config.api_base

    @pytest.mark.asyncio
    async def test_siliconflow_network_error(self, siliconflow_config):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await ApiTester(httpx.MockTransport(handler)).test("siliconflow", siliconflow_config)
        assert result.message == "网络连接失败，请检查网络或API服务状态"

    @pytest.mark.asyncio
    async def test_wechat_publish(self, publish_config):
        def handler(request):
            assert str(request.url) == "https://wx.test/api/openapi/wechat-accounts"
            assert request.headers["X-API-Key"] == "publish-test-key"
            return 200, {"success": True, "data": {"accounts": [{"wechatAppid": "wx1"}, {"wechatAppid": "wx2"}]}}

        result = await ApiTester(json_transport(handler)).test("wechat_publish", publish_config)

        assert result.success is True
        assert result.message == "微信公众号发布API连接成功"
        assert result.details["accountsCount"] == 2

    @pytest.mark.asyncio
    async def test_wechat_publish_failures(self, publish_config):
        def timeout(request):
            raise httpx.ReadTimeout("slow", request=request)

        result = await ApiTester(httpx.MockTransport(timeout)).test("wechat_publish", publish_config)
        assert result.message == "连接超时，请检查网络或API服务状态"

        tester = ApiTester(json_transport(lambda r: (200, {"success": False, "error": "密钥错误"})))
        result = await tester.test("wechat_publish", publish_config)
        assert result.success is False
        assert result.message == "密钥错误"

    @pytest.mark.asyncio
    async def test_wechat_search(self, search_config):
        def handler(request):
            assert request_json(request)["limit"] == 1
            return 200, {"code": 0, "data": [{"title": "t"}]}

        result = await ApiTester(json_transport(handler)).test("wechat_search", search_config)

        assert result.success is True
        assert result.message == "微信公众号搜索API连接成功"
        assert result.details == {"code": 0, "resultsCount": 1}

    @pytest.mark.asyncio
    async def test_xiaohongshu(self, xhs_config):
        tester = ApiTester(json_transport(lambda r: (200, {"code": 0, "data": []})))
        result = await tester.test("xiaohongshu_search", xhs_config)
        assert result.success is True
        assert result.message == "小红书搜索API连接成功"

        tester = ApiTester(json_transport(lambda r: (200, {"code": 3, "msg": "Key 过期"})))
        result = await tester.test("xiaohongshu_search", xhs_config)
        assert result.success is False
        assert result.message == "API错误: Key 过期"
        assert result.details == {"code": 3}
