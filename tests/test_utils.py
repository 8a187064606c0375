"""
配置、异常分类与 AI 客户端测试
"""

import logging

import httpx
import pytest

from content_factory import config as config_module
from content_factory.config import (
    OpenRouterConfig,
    Settings,
    StorageConfig,
    _is_valid_key,
    get_config_status,
    load_env_config,
)
from content_factory.utils.ai_client import ChatClient, ImageClient
from content_factory.utils.error_handler import (
    AppErrorCode,
    EnhancedErrorException,
    ErrorHandler,
    ErrorLogger,
    identify_error_type,
)
from content_factory.utils import logger as logger_module
from content_factory.utils.errors import (
    AIServiceError,
    ConfigError,
    ContentFactoryError,
    ImageGenerationError,
    PublishError,
    ValidationError,
)
from tests.conftest import json_transport, request_json


class TestSettings:
    """配置加载测试"""

    def test_from_dict_defaults(self):
        """空字典使用默认值"""
        s = Settings.from_dict({})
        assert s.openrouter.api_base == "https://openrouter.ai/api/v1"
        assert s.openrouter.model == "openai/gpt-4o"
        assert s.siliconflow.image_model == "Kwai-Kolors/Kolors"
        assert s.siliconflow.chat_model == "deepseek-ai/DeepSeek-V3"
        assert s.wechat_publish.api_base == "https://wx.limyai.com/api/openapi"
        assert s.creation.length == "1000-1500"
        assert s.creation.image_ratio == "4:3"

    def test_from_dict_values(self):
        """读取各配置段并去掉地址末尾斜杠"""
        s = Settings.from_dict({
            "openrouter": {"api_key": "sk-1", "api_base": "https://api.example.com/v1/", "model": "m"},
            "wechat_search": {"api_key": "jzl"},
            "creation": {"length": 800, "image_count": "3"},
        }, source="config.yaml")
        assert s.openrouter.api_base == "https://api.example.com/v1"
        assert s.openrouter.model == "m"
        assert s.openrouter.is_openrouter is False
        assert s.wechat_search.api_key == "jzl"
        assert s.creation.length == "800"
        assert s.creation.image_count == 3
        assert s.config_source == "config.yaml"

    def test_storage_db_url(self):
        """未指定数据库地址时使用 data 目录下的 SQLite 文件"""
        assert StorageConfig().db_url.endswith("content_factory.db")
        assert StorageConfig().db_url.startswith("sqlite:///")
        assert StorageConfig(database_url="sqlite://").db_url == "sqlite://"

    def test_load_env_config(self, monkeypatch, tmp_path):
        """环境变量转换为嵌套结构，JZL_API_KEY 同时用于两个极致了接口"""
        monkeypatch.setattr(config_module, "ENV_FILE", tmp_path / ".env")
        data = load_env_config({"OPENAI_API_KEY": "sk-env", "JZL_API_KEY": "jzl-env"})
        assert data["openrouter"]["api_key"] == "sk-env"
        assert data["wechat_search"]["api_key"] == "jzl-env"
        assert data["xiaohongshu"]["api_key"] == "jzl-env"
        assert data["storage"]["data_dir"] == "data"

    def test_env_file_overrides_environ(self, monkeypatch, tmp_path):
        """.env 中的值优先于进程环境变量"""
        env_file = tmp_path / ".env"
        env_file.write_text('# 注释\nOPENAI_API_KEY="sk-file"\nLOG_LEVEL=DEBUG\n', encoding="utf-8")
        monkeypatch.setattr(config_module, "ENV_FILE", env_file)

        data = load_env_config({"OPENAI_API_KEY": "sk-env"})
        assert data["openrouter"]["api_key"] == "sk-file"
        assert data["system"]["log_level"] == "DEBUG"

    def test_is_valid_key(self):
        """占位符和过短的 Key 视为未配置"""
        assert _is_valid_key("sk-or-v1-abcdefghijklmnop")
        assert not _is_valid_key("your_api_key_here")
        assert not _is_valid_key("short")
        assert not _is_valid_key("")
        assert not _is_valid_key(None)

    def test_config_status(self):
        """配置状态标记各服务 Key 是否可用"""
        s = Settings.from_dict({
            "openrouter": {"api_key": "sk-or-v1-abcdefghijklmnopqrstuvwxyz"},
            "wechat_search": {"api_key": "your_key"},
        })
        status = get_config_status(s)
        assert status["openrouter"]["api_key_configured"] is True
        assert status["wechat_search"]["api_key_configured"] is False
        assert status["storage"]["db_url"] == s.storage.db_url


class TestErrors:
    """异常体系测试"""

    def test_hierarchy(self):
        """所有业务异常继承 ContentFactoryError"""
        for cls in (ConfigError, AIServiceError, ImageGenerationError, ValidationError, PublishError):
            assert issubclass(cls, ContentFactoryError)

    def test_validation_error_carries_errors(self):
        """ValidationError 默认以消息作为错误列表"""
        assert ValidationError("标题为空").errors == ["标题为空"]
        assert ValidationError("参数验证失败", ["a", "b"]).errors == ["a", "b"]

    def test_publish_error_status(self):
        assert PublishError("HTTP error! status: 401", status_code=401).status_code == 401
        assert PublishError("发布失败").status_code is None


class TestErrorHandler:
    """错误识别与分类测试"""

    @pytest.mark.parametrize("message, expected", [
        ("OpenRouter API错误: Unauthorized", "openrouter_token"),
        ("token is invalid", "openrouter_token"),
        ("账户余额不足", "jzl_balance"),
        ("极致了接口返回异常", "jzl_api"),
        ("SiliconFlow API错误: bad request", "image_generation"),
        ("Connection refused", "network"),
        ("Request timed out", "timeout"),
        ("奇怪的问题", "unknown"),
    ])
    def test_identify_error_type(self, message, expected):
        """按关键字识别错误类型"""
        assert identify_error_type(message) == expected

    def test_capture_token_invalid(self):
        """401 映射为令牌无效，不可重试"""
        enhanced = ErrorHandler.capture(AIServiceError("OpenAI API错误: 401 Unauthorized"), context="选题分析")
        assert enhanced.code == AppErrorCode.OPENROUTER_TOKEN_INVALID
        assert enhanced.can_retry is False
        assert enhanced.context == "选题分析"
        assert enhanced.suggested_actions

    def test_capture_image_timeout(self):
        """图片生成超时可重试"""
        enhanced = ErrorHandler.capture("图片生成 timeout")
        assert enhanced.code == AppErrorCode.IMAGE_TIMEOUT
        assert enhanced.can_retry is True
        assert enhanced.user_message == "图片生成超时，请稍后重试"

    def test_capture_unknown_object(self):
        """非异常非字符串视为未知错误"""
        enhanced = ErrorHandler.capture(object())
        assert enhanced.code == AppErrorCode.UNKNOWN_ERROR
        assert enhanced.technical_message == "未知错误"

    def test_capture_passthrough(self):
        """已增强的错误原样返回"""
        enhanced = ErrorHandler.capture("network down")
        assert ErrorHandler.capture(enhanced) is enhanced
        assert ErrorHandler.capture(EnhancedErrorException(enhanced)) is enhanced

    def test_from_response_reads_msg(self):
        """优先读取响应体中的错误消息"""
        response = httpx.Response(500, json={"msg": "极致了 key 错误"})
        enhanced = ErrorHandler.from_response(response)
        assert enhanced.code == AppErrorCode.JZL_API_ERROR
        assert enhanced.technical_message == "极致了 key 错误"

    def test_from_response_status_line(self):
        """响应体无法解析时使用状态行"""
        enhanced = ErrorHandler.from_response(httpx.Response(504, text="gateway"))
        assert enhanced.technical_message.startswith("HTTP 504")

    @pytest.mark.asyncio
    async def test_wrap_raises_enhanced(self):
        """wrap 将异常转换为 EnhancedErrorException"""

        async def failing():
            raise ConnectionError("network unreachable")

        with pytest.raises(EnhancedErrorException) as exc_info:
            await ErrorHandler.wrap(failing, context="搜索")
        assert exc_info.value.error.code == AppErrorCode.NETWORK_ERROR

    def test_error_logger_ring(self):
        """错误日志只保留最近 N 条"""
        error_log = ErrorLogger(max_entries=3)
        for i in range(5):
            error_log.log(ErrorHandler.capture(f"e{i}"))
        entries = error_log.get_all()
        assert len(entries) == 3
        assert [e.error.technical_message for e in entries] == ["e2", "e3", "e4"]
        assert len(error_log.get_recent(2)) == 2
        error_log.clear()
        assert error_log.get_all() == []


class TestChatClient:
    """对话客户端测试"""

    @pytest.mark.asyncio
    async def test_complete(self, chat_config):
        """发送系统 + 用户消息并返回文本，OpenRouter 附带来源请求头"""
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = request_json(request)
            return 200, {"choices": [{"message": {"content": "你好"}}], "usage": {"total_tokens": 3}}

        client = ChatClient(chat_config, transport=json_transport(handler))
        text = await client.complete("系统", "用户", temperature=0.3)

        assert text == "你好"
        assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
        assert captured["headers"]["Authorization"] == f"Bearer {chat_config.api_key}"
        assert captured["headers"]["X-Title"] == "Content Factory"
        assert captured["body"]["messages"][0] == {"role": "system", "content": "系统"}
        assert captured["body"]["temperature"] == 0.3
        assert captured["body"]["model"] == "openai/gpt-4o"

    @pytest.mark.asyncio
    async def test_chat_error_message(self, chat_config):
        """非 2xx 响应抛出带服务商消息的 AIServiceError"""
        transport = json_transport(lambda r: (401, {"error": {"message": "Invalid API key"}}))
        client = ChatClient(chat_config, transport=transport)
        with pytest.raises(AIServiceError, match="Invalid API key"):
            await client.complete("s", "u")

    @pytest.mark.asyncio
    async def test_chat_non_json_reply(self, chat_config):
        """2xx 但响应体不是 JSON 时抛出 AIServiceError"""
        client = ChatClient(chat_config, transport=json_transport(lambda r: (200, "<html>upstream busy</html>")))
        with pytest.raises(AIServiceError, match="响应不是有效JSON"):
            await client.complete("s", "u")

    @pytest.mark.asyncio
    async def test_chat_requires_key(self):
        """未配置 Key 时抛出 ConfigError"""
        client = ChatClient(OpenRouterConfig(api_key=""))
        with pytest.raises(ConfigError):
            await client.complete("s", "u")

    @pytest.mark.asyncio
    async def test_empty_choices(self, chat_config):
        """choices 为空时返回空串"""
        client = ChatClient(chat_config, transport=json_transport(lambda r: (200, {"choices": []})))
        assert await client.complete("s", "u") == ""

    @pytest.mark.asyncio
    async def test_cover_image(self, chat_config):
        """封面接口成功返回 URL，失败返回 None"""
        ok = ChatClient(chat_config, transport=json_transport(lambda r: (200, {"data": [{"url": "https://c.png"}]})))
        assert await ok.generate_cover_image("cover") == "https://c.png"

        failed = ChatClient(chat_config, transport=json_transport(lambda r: (404, {})))
        assert await failed.generate_cover_image("cover") is None

        no_key = ChatClient(OpenRouterConfig(api_key=""))
        assert await no_key.generate_cover_image("cover") is None


class TestImageClient:
    """配图客户端测试"""

    @pytest.mark.asyncio
    async def test_generate(self, siliconflow_config):
        """请求 1024x1024 图片并追加质量后缀"""
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["body"] = request_json(request)
            return 200, {"data": [{"url": "https://img.png"}]}

        client = ImageClient(siliconflow_config, transport=json_transport(handler))
        assert client.configured
        assert await client.generate("a cat") == "https://img.png"
        assert captured["url"] == "https://sf.test/v1/images/generations"
        assert captured["body"]["size"] == "1024x1024"
        assert captured["body"]["prompt"].startswith("a cat, high quality")

    @pytest.mark.asyncio
    async def test_generate_error(self, siliconflow_config):
        """非 2xx 抛出 ImageGenerationError"""
        client = ImageClient(siliconflow_config, transport=json_transport(lambda r: (500, {"error": "boom"})))
        with pytest.raises(ImageGenerationError, match="boom"):
            await client.generate("a cat")


class TestLogger:
    """日志器"""

    def test_same_name_returns_same_logger(self):
        first = logger_module.get_logger("content_factory.test_same")
        assert logger_module.get_logger("content_factory.test_same") is first
        assert len(first.handlers) == 1

    def test_file_output(self, tmp_path, monkeypatch):
        """log_to_file 时按区域名写入日志文件"""
        monkeypatch.setattr(logger_module, "logs_dir", lambda: tmp_path / "logs")
        log = logger_module.get_logger("content_factory.test_area", level="DEBUG", log_to_file=True)

        log.debug("写入文件")
        file_handlers = [h for h in log.handlers if isinstance(h, logging.FileHandler)]
        for handler in file_handlers:
            handler.flush()
            handler.close()
            log.removeHandler(handler)

        assert "写入文件" in (tmp_path / "logs" / "test_area.log").read_text(encoding="utf-8")
