"""
命令行测试

通过临时 config.yaml 将数据库、本地存储和输出目录指向 tmp_path，
外部服务相关的类在各自模块上打补丁。
"""

import pytest
import yaml
from click.testing import CliRunner

from content_factory import config
from content_factory.config import get_settings
from content_factory.factory import generator as generator_module
from content_factory.factory.content_cache import LocalStore
from content_factory.factory.draft_store import DraftStore
from content_factory.factory.generator import GeneratedArticle
from content_factory.factory.topic_sync import TOPIC_HISTORY_KEY
from content_factory.main import cli
from content_factory.utils import api_tester
from content_factory.utils.api_tester import ApiTestResult
from content_factory.utils.error_handler import AppErrorCode, error_logger
from content_factory.utils.errors import SearchAPIError, ValidationError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_settings(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({
        "storage": {
            "data_dir": str(tmp_path / "data"),
            "output_dir": str(tmp_path / "output"),
        },
    }), encoding="utf-8")
    monkeypatch.setattr(config, "CONFIG_YAML", config_file)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


class FakeGenerator:
    """直接返回固定文章的生成器"""

    def __init__(self, *args, **kwargs):
        pass

    async def generate_single_article(self, params):
        return GeneratedArticle(
            id="article-1",
            title="测试文章",
            content="# 测试文章\n\n正文",
            images=["https://img/1.png"],
            cover={"url": "https://cover.png"},
            word_count=6,
            topic_id=params.topic.get("id", ""),
        )


class TestCli:
    """命令行入口"""

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("analyze", "generate", "publish", "batch-publish", "topics", "validate"):
            assert command in result.output

    def test_validate_reports_missing_key(self, runner, cli_settings):
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "openrouter.api_key 未配置" in result.output
        assert "配置存在问题" in result.output

    def test_config_shows_source(self, runner, cli_settings):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "config.yaml" in result.output

    def test_business_error_exits_nonzero(self, runner, cli_settings, monkeypatch):
        from content_factory.analysis import pipeline

        async def fail(self, keyword, count=5):
            raise ValidationError("关键词不能为空")

        monkeypatch.setattr(pipeline.AnalysisService, "analyze_keyword", fail)
        result = runner.invoke(cli, ["analyze", "AI"])

        assert result.exit_code == 1
        assert "执行失败: 关键词不能为空" in result.output
        assert "发生未知错误，请稍后重试" in result.output

    def test_business_error_shows_user_message_and_actions(self, runner, cli_settings, monkeypatch):
        """业务异常经错误分类后输出用户提示、建议操作，并记入错误日志"""
        from content_factory.intel import wechat_search

        async def fail(self, kw, **params):
            raise SearchAPIError("insufficient balance")

        monkeypatch.setattr(wechat_search.WechatSearchClient, "search_articles", fail)
        error_logger.clear()
        result = runner.invoke(cli, ["search", "AI"])

        assert result.exit_code == 1
        assert "执行失败: insufficient balance" in result.output
        assert "极致了API余额不足，请充值" in result.output
        assert "检查充值是否已到账" in result.output
        entries = error_logger.get_recent(1)
        assert entries[0].error.code == AppErrorCode.JZL_INSUFFICIENT_BALANCE

    def test_generate_without_topics(self, runner, cli_settings):
        result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 2
        assert "暂无选题" in result.output

    def test_generate_saves_file_and_draft(self, runner, cli_settings, monkeypatch):
        monkeypatch.setattr(generator_module, "ArticleGenerator", FakeGenerator)

        result = runner.invoke(cli, ["generate", "--title", "测试选题"])

        assert result.exit_code == 0, result.output
        assert "生成完成" in result.output
        files = list(cli_settings.storage.output_path.rglob("article.md"))
        assert len(files) == 1
        assert files[0].parent.name == "测试文章"

        store = DraftStore()
        drafts = store.get_drafts()
        store.close()
        assert [d.title for d in drafts] == ["测试文章"]

    def test_generate_uses_topic_index(self, runner, cli_settings, monkeypatch):
        monkeypatch.setattr(generator_module, "ArticleGenerator", FakeGenerator)
        LocalStore().set(TOPIC_HISTORY_KEY, [
            {"id": "t1", "title": "第一个选题", "description": "", "createdAt": 2},
            {"id": "t2", "title": "第二个选题", "description": "", "createdAt": 1},
        ])

        result = runner.invoke(cli, ["generate", "-i", "2", "--no-draft"])
        assert result.exit_code == 0, result.output
        assert "第二个选题" in result.output

        result = runner.invoke(cli, ["generate", "-i", "3"])
        assert result.exit_code == 2
        assert "选题序号超出范围（1-2）" in result.output

    def test_publish_missing_draft(self, runner, cli_settings):
        result = runner.invoke(cli, ["publish", "no-such-draft", "--appid", "wx123"])
        assert result.exit_code == 1
        assert "草稿不存在" in result.output

    def test_topics_lists_history(self, runner, cli_settings):
        LocalStore().set(TOPIC_HISTORY_KEY, [{"title": "AI 选题", "confidence": 80, "createdAt": 1}])
        result = runner.invoke(cli, ["topics"])
        assert result.exit_code == 0
        assert "AI 选题" in result.output

    def test_history_empty(self, runner, cli_settings):
        result = runner.invoke(cli, ["history"])
        assert result.exit_code == 0
        assert "第 1/1 页，共 0 条" in result.output

    def test_cache_clean(self, runner, cli_settings):
        result = runner.invoke(cli, ["cache-clean"])
        assert result.exit_code == 0
        assert "清理了 0 条过期缓存，0 个过期选题" in result.output

    def test_test_api_single_provider(self, runner, cli_settings, monkeypatch):
        tested = []

        class FakeTester:
            async def test(self, provider, config=None):
                tested.append(provider)
                return ApiTestResult(success=True, message="ok")

        monkeypatch.setattr(api_tester, "ApiTester", FakeTester)
        result = runner.invoke(cli, ["test-api", "openrouter"])

        assert result.exit_code == 0
        assert tested == ["openrouter"]
