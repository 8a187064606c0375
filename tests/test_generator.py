"""
文章生成测试
"""

import httpx
import pytest

from content_factory.factory.generator import ArticleGenerator, CreationParams, GeneratedArticle
from content_factory.factory.images import ImageGenerator
from content_factory.utils.ai_client import ChatClient
from content_factory.utils.errors import AIServiceError, ValidationError
from tests.conftest import FakeChatClient, FakeImageClient

TOPIC = {
    "id": "topic-1",
    "title": "深夜加班的程序员如何提升效率",
    "description": "描述",
    "confidence": 88,
    "audienceScene": {"audience": "程序员", "scene": "深夜加班"},
}

ARTICLE = "# 程序员效率提升的七个实用方法\n\n第一段正文内容。\n\n## 小标题\n\n更多内容 with English words"


def _params(**overrides):
    values = {"topic": TOPIC, "length": "1000-1500", "style": "专业", "image_count": 3, "image_style": "tech"}
    values.update(overrides)
    return CreationParams(**values)


@pytest.fixture
def make_generator(local_store, monkeypatch):
    monkeypatch.setattr(ArticleGenerator, "article_delay", 0)
    monkeypatch.setattr(ImageGenerator, "retry_wait", 0)

    def _make(responses, cover_url="https://cover.png"):
        chat = FakeChatClient(responses, cover_url=cover_url)
        images = FakeImageClient(url="https://img/1.png")
        generator = ArticleGenerator(
            chat_client=chat,
            image_generator=ImageGenerator(chat_client=chat, image_client=images),
            store=local_store,
        )
        return generator, chat, images

    return _make


class TestGeneratedArticle:
    """文章数据结构"""

    def test_from_dict_ignores_unknown_fields(self):
        article = GeneratedArticle.from_dict({"id": "a", "title": "t", "content": "c", "extra": 1})
        assert article.title == "t"
        assert article.images == []


class TestArticleGenerator:
    """单篇 / 批量生成"""

    @pytest.mark.asyncio
    async def test_generate_single_article(self, make_generator):
        generator, chat, _ = make_generator([ARTICLE])

        article = await generator.generate_single_article(_params())

        assert article.title == "程序员效率提升的七个实用方法"
        assert article.content == ARTICLE
        assert article.word_count > 0
        assert article.reading_time == 1
        assert article.topic_id == "topic-1"
        assert article.images == ["https://img/1.png"]
        assert article.cover["url"] == "https://cover.png"
        assert chat.calls[0]["temperature"] == 0.7
        assert len(generator.history.get_history()) == 1

    @pytest.mark.asyncio
    async def test_cache_hit_skips_model(self, make_generator):
        generator, chat, _ = make_generator([ARTICLE])

        first = await generator.generate_single_article(_params())
        calls = len(chat.calls)
        second = await generator.generate_single_article(_params())

        assert second.id == first.id
        assert second.title == first.title
        assert len(chat.calls) == calls
        assert len(generator.history.get_history()) == 1

    @pytest.mark.asyncio
    async def test_reference_mode_keeps_reference_title(self, make_generator):
        generator, chat, _ = make_generator([ARTICLE])

        article = await generator.generate_single_article(_params(
            creation_mode="reference",
            reference_articles=[{"title": "对标爆文标题", "summary": "摘要"}],
        ))

        assert article.title == "对标爆文标题"
        assert "对标创作模式" in chat.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_auto_style_uses_suggested_image_count(self, make_generator):
        long_article = "# 一篇足够长的文章标题示例\n\n" + "字" * 2000
        generator, _, _ = make_generator([long_article])

        article = await generator.generate_single_article(_params(image_style="auto", image_count=1))
        assert len(article.images) == 3

    @pytest.mark.asyncio
    async def test_image_count_capped_by_preference(self, make_generator):
        long_article = "# 一篇足够长的文章标题示例\n\n" + "字" * 2000
        generator, _, _ = make_generator([long_article])

        article = await generator.generate_single_article(_params(image_count=2))
        assert len(article.images) == 2

    @pytest.mark.asyncio
    async def test_missing_cover_when_unavailable(self, make_generator):
        generator, _, _ = make_generator([ARTICLE], cover_url=None)
        article = await generator.generate_single_article(_params())
        assert article.cover["url"].startswith("https://picsum.photos/seed/")

    @pytest.mark.asyncio
    async def test_requires_topic_title(self, make_generator):
        generator, _, _ = make_generator([])
        with pytest.raises(ValidationError, match="选题不能为空"):
            await generator.generate_single_article(_params(topic={"id": "x"}))

    @pytest.mark.asyncio
    async def test_batch_skips_failures_and_reports_progress(self, make_generator):
        generator, _, _ = make_generator([AIServiceError("限流"), ARTICLE, "", ARTICLE])
        progress = []

        articles = await generator.generate_batch_articles(TOPIC, _params(), 3, on_progress=progress.append)

        assert len(articles) == 2
        assert progress == [pytest.approx(200 / 3), 100.0]
        angles = [a.parameters["unique_angle"] for a in articles]
        assert angles == ["从理论框架角度阐述", "从操作步骤角度说明"]

    @pytest.mark.asyncio
    async def test_cleanup_expired_data(self, make_generator):
        generator, _, _ = make_generator([])
        assert generator.cleanup_expired_data() == 0

    @pytest.mark.asyncio
    async def test_batch_skips_non_json_model_reply(self, local_store, chat_config, monkeypatch):
        """模型网关返回 HTML 时该篇跳过，其余文章照常生成"""
        monkeypatch.setattr(ArticleGenerator, "article_delay", 0)
        monkeypatch.setattr(ImageGenerator, "retry_wait", 0)
        replies = []

        def handler(request):
            if request.url.path.endswith("/images/generations"):
                return httpx.Response(200, json={"data": [{"url": "https://cover.png"}]})
            replies.append(request.url.path)
            if len(replies) == 1:
                return httpx.Response(200, text="<html>upstream busy</html>")
            return httpx.Response(200, json={"choices": [{"message": {"content": ARTICLE}}]})

        chat = ChatClient(chat_config, transport=httpx.MockTransport(handler))
        generator = ArticleGenerator(
            chat_client=chat,
            image_generator=ImageGenerator(chat_client=chat, image_client=FakeImageClient(configured=False)),
            store=local_store,
        )

        articles = await generator.generate_batch_articles(TOPIC, _params(), 2)

        assert len(articles) == 1
        assert articles[0].title == "程序员效率提升的七个实用方法"
