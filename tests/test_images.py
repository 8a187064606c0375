"""
配图与封面测试
"""

import pytest

from content_factory.factory.cover import (
    COVER_TEMPLATES,
    build_cover_prompt,
    extract_content_keywords,
    generate_article_cover,
    generate_placeholder_image,
    identify_content_theme,
    select_cover_template,
)
from content_factory.factory.images import (
    IMAGE_STYLES,
    ImageGenerator,
    apply_image_style,
    are_prompts_similar,
    generate_fallback_prompt,
    generate_unique_fallback_prompt,
    get_image_style,
    validate_and_fix_prompts,
)
from content_factory.utils.errors import AIServiceError, ImageGenerationError
from tests.conftest import FakeChatClient, FakeImageClient


class TestPromptTools:
    """提示词相似度与备用提示词"""

    def test_similar_after_normalization(self):
        assert are_prompts_similar("办公室, 年轻人!", "办公室 年轻人")

    def test_similar_by_shared_elements(self):
        assert are_prompts_similar("清晨办公室里年轻人在思考", "清晨的办公室，一位年轻人独自思考")
        assert not are_prompts_similar("清晨办公室里年轻人", "夜晚公园里老人散步")

    def test_fallback_prompt_uses_topic(self):
        topic = {"title": "AI", "audienceScene": {"audience": "宝妈", "scene": "带娃间隙"}}
        assert generate_fallback_prompt(topic, 0) == "宝妈在带娃间隙的场景插画，简洁现代风格"
        assert generate_fallback_prompt(None, 6) == generate_fallback_prompt(None, 1)

    def test_unique_fallback_avoids_existing(self):
        first = generate_unique_fallback_prompt(None, 0)
        second = generate_unique_fallback_prompt(None, 0, [first])
        assert first != second
        assert second.startswith("清晨办公室里，年轻职员")

    def test_validate_and_fix_replaces_duplicates(self):
        prompts = ["清晨办公室里年轻人在思考", "清晨办公室里年轻人在思考啊", "夜晚公园里老人散步的远景画面"]
        fixed = validate_and_fix_prompts(prompts, 3)
        assert fixed[0] == prompts[0]
        assert fixed[1] != prompts[1]
        assert fixed[2] == prompts[2]

    def test_apply_style(self):
        assert apply_image_style("a cat", get_image_style("auto")).endswith("consistent visual style")
        assert "tech futuristic illustration" in apply_image_style("a cat", get_image_style("tech"))
        assert get_image_style("nope") is IMAGE_STYLES[0]


class TestImageGenerator:
    """配图生成"""

    @pytest.fixture(autouse=True)
    def _no_wait(self, monkeypatch):
        monkeypatch.setattr(ImageGenerator, "retry_wait", 0)

    @pytest.mark.asyncio
    async def test_generates_requested_count(self):
        chat = FakeChatClient(["清晨办公室里一位年轻人在专注思考\n下午咖啡馆中两位创业者热烈讨论\n短"])
        images = FakeImageClient(url="https://img/1.png")
        generator = ImageGenerator(chat_client=chat, image_client=images)

        urls = await generator.generate_smart_article_images("正文", "标题", 3, "business")

        assert urls == ["https://img/1.png"] * 3
        assert len(images.prompts) == 3
        assert all("professional business illustration" in p for p in images.prompts)

    @pytest.mark.asyncio
    async def test_zero_count(self):
        generator = ImageGenerator(chat_client=FakeChatClient(), image_client=FakeImageClient())
        assert await generator.generate_smart_article_images("正文", "标题", 0) == []

    @pytest.mark.asyncio
    async def test_unconfigured_uses_placeholder(self):
        generator = ImageGenerator(chat_client=FakeChatClient(), image_client=FakeImageClient(configured=False))
        urls = await generator.generate_smart_article_images("正文", "标题", 2)
        assert len(urls) == 2
        assert all(url.startswith("https://picsum.photos/seed/") for url in urls)

    @pytest.mark.asyncio
    async def test_prompt_failure_uses_fallback_prompts(self):
        chat = FakeChatClient([AIServiceError("模型不可用")])
        images = FakeImageClient()
        generator = ImageGenerator(chat_client=chat, image_client=images)

        prompts = await generator.generate_image_prompts_from_content("正文", "标题", 2)
        assert prompts == [generate_fallback_prompt(None, 0), generate_fallback_prompt(None, 1)]

    @pytest.mark.asyncio
    async def test_image_failure_falls_back_per_image(self):
        images = FakeImageClient(error=ImageGenerationError("生成失败"))
        generator = ImageGenerator(chat_client=FakeChatClient(), image_client=images)

        urls = await generator.generate_smart_article_images("正文", "标题", 2)

        assert len(urls) == 2
        assert all("picsum.photos" in url for url in urls)
        assert len(urls) == len(set(urls))
        assert len(images.prompts) == 2 * (ImageGenerator.max_retries + 1)


class TestCover:
    """封面模板与生成"""

    def test_select_template(self):
        assert select_cover_template("职场晋升指南", "").id == "professional"
        assert select_cover_template("AI 新工具", "").id == "tech"
        assert select_cover_template("今日随笔", "关于设计的思考").id == "creative"
        assert select_cover_template("今日随笔", "").id == COVER_TEMPLATES[0].id

    def test_keywords_and_theme(self):
        assert extract_content_keywords("AI 写作", "效率，工具。a") == ["AI", "写作", "效率", "工具"]
        assert identify_content_theme("今日", "健康生活") == "lifestyle"
        assert identify_content_theme("今日", "随笔") == "general"

    def test_prompt_contains_title_and_template(self):
        template = COVER_TEMPLATES[3]
        prompt = build_cover_prompt("AI 写作", "technology", ["AI", "写作", "效率", "工具"], template)
        assert 'Include the article title: "AI 写作"' in prompt
        assert "Keywords: AI, 写作, 效率" in prompt
        assert template.background_color in prompt

    def test_placeholder_url(self):
        url = generate_placeholder_image("a b/c")
        assert url == "https://picsum.photos/seed/a%20b%2Fc/900/383.jpg?blur=2"

    @pytest.mark.asyncio
    async def test_generate_cover(self):
        cover = await generate_article_cover("AI 写作", "正文", client=FakeChatClient(cover_url="https://cover.png"))
        assert cover.url == "https://cover.png"
        assert cover.template == "tech"
        assert cover.description == "AI生成的封面 - 科技未来风格"

    @pytest.mark.asyncio
    async def test_generate_cover_placeholder_when_unavailable(self):
        cover = await generate_article_cover("AI 写作", "正文", template_id="minimal", client=FakeChatClient())
        assert cover.template == "minimal"
        assert cover.url.startswith("https://picsum.photos/seed/")
