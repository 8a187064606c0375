"""
Content Factory 内容工厂 - 测试公共夹具

- HTTP 统一通过 httpx.MockTransport 注入
- 数据库使用内存 SQLite，本地存储使用 tmp_path 下的 JSON 文件
- 对话模型使用 FakeChatClient 按顺序返回预设响应
"""

import json

import httpx
import pytest

from content_factory.config import (
    OpenRouterConfig,
    SiliconFlowConfig,
    WechatPublishConfig,
    WechatSearchConfig,
    XiaohongshuConfig,
)
from content_factory.factory.content_cache import LocalStore
from content_factory.factory.draft_store import DraftStore
from content_factory.intel.article_store import ArticleStore


class FakeChatClient:
    """按顺序返回预设文本的对话客户端"""

    def __init__(self, responses=None, cover_url=None):
        self.responses = list(responses or [])
        self.cover_url = cover_url
        self.calls = []

    async def complete(self, system, user, temperature=0.7, **kwargs):
        self.calls.append({"system": system, "user": user, "temperature": temperature})
        if not self.responses:
            return ""
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def generate_cover_image(self, prompt):
        return self.cover_url


class FakeImageClient:
    """固定返回 URL 的配图客户端"""

    def __init__(self, configured=True, url="https://img.example.com/1.png", error=None):
        self._configured = configured
        self.url = url
        self.error = error
        self.prompts = []

    @property
    def configured(self):
        return self._configured

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.url


def json_transport(handler):
    """
    将 handler(request) -> (status, body) 包装为 MockTransport

    body 为 dict / list 时按 JSON 返回。
    """

    def _handle(request: httpx.Request) -> httpx.Response:
        status, body = handler(request)
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body or "")

    return httpx.MockTransport(_handle)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content.decode("utf-8")) if request.content else {}


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(tmp_path / "local_store.json")


@pytest.fixture
def article_store():
    store = ArticleStore("sqlite://")
    yield store
    store.close()


@pytest.fixture
def draft_store():
    store = DraftStore("sqlite://")
    yield store
    store.close()


@pytest.fixture
def search_config():
    return WechatSearchConfig(
        api_key="jzl-test-key",
        search_url="https://jzl.test/kw_search",
        detail_url="https://jzl.test/article_html",
        account_url="https://jzl.test/Keyverifycode",
    )


@pytest.fixture
def xhs_config():
    return XiaohongshuConfig(api_key="jzl-test-key", search_url="https://jzl.test/xhs")


@pytest.fixture
def chat_config():
    return OpenRouterConfig(api_key="sk-or-test-key-1234567890", api_base="https://openrouter.ai/api/v1")


@pytest.fixture
def siliconflow_config():
    return SiliconFlowConfig(api_key="sk-sf-test-key-1234567890", api_base="https://sf.test/v1")


@pytest.fixture
def publish_config():
    return WechatPublishConfig(api_key="publish-test-key", api_base="https://wx.test/api/openapi")
