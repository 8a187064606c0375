"""
Content Factory 内容工厂 - 文章生成

流程：
1. 检查缓存（同参数 7 天内直接复用）
2. 组装 Prompt（写作风格 + 结构模板 + 对标 / 原创块）并调用模型
3. 提取标题、统计字数与阅读时长
4. 按字数决定配图数量，生成配图与封面
5. 写入缓存与生成历史

使用方法：
    from content_factory.factory.generator import ArticleGenerator, CreationParams

    generator = ArticleGenerator()
    article = await generator.generate_single_article(CreationParams(topic=topic))
    print(article.title, article.word_count)
"""

import asyncio
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, replace

import httpx

from content_factory.config import get_settings
from content_factory.factory.content_cache import ContentCache, ContentHistory, LocalStore
from content_factory.factory.cover import generate_article_cover
from content_factory.factory.images import ImageGenerator
from content_factory.factory.writer import (
    ARTICLE_SYSTEM_PROMPT,
    build_article_prompt,
    calculate_image_count,
    calculate_reading_time,
    count_words,
    extract_title_from_content,
    generate_unique_angle,
)
from content_factory.intel.utils import generate_id, now_ms
from content_factory.utils.ai_client import ChatClient, get_ai_client
from content_factory.utils.errors import ContentFactoryError, ImageGenerationError, ValidationError
from content_factory.utils.logger import get_factory_logger

logger = get_factory_logger()


def _default_length() -> str:
    return get_settings().creation.length


def _default_style() -> str:
    return get_settings().creation.style


def _default_image_count() -> int:
    return get_settings().creation.image_count


@dataclass
class CreationParams:
    """文章创作参数"""
    topic: dict                                                   # 选题（洞察 + id）
    length: str = field(default_factory=_default_length)          # 文章长度（如 1000-1500）
    style: str = field(default_factory=_default_style)            # 写作风格
    image_count: int = field(default_factory=_default_image_count)  # 期望配图数量
    unique_angle: str = ""                                        # 独特角度（批量生成时分配）
    image_style: str = "auto"                                     # 配图风格
    image_ratio: str = "4:3"                                      # 配图比例
    creation_mode: str = "original"                               # original / reference
    original_inspiration: str = ""                                # 原创灵感
    reference_articles: list[dict] = field(default_factory=list)  # 对标文章
    article_structure: str = ""                                   # 文章结构（对标模式）

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GeneratedArticle:
    """生成的文章"""
    id: str
    title: str
    content: str
    images: list[str] = field(default_factory=list)
    cover: dict | None = None           # ArticleCover.to_dict()
    word_count: int = 0
    reading_time: int = 1               # 分钟
    topic_id: str = ""
    created_at: int = field(default_factory=now_ms)
    parameters: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GeneratedArticle":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class ArticleGenerator:
    """文章生成器"""

    # 批量生成时文章之间的间隔（秒）
    article_delay: float = 1.0

    def __init__(
        self,
        chat_client: ChatClient | None = None,
        image_generator: ImageGenerator | None = None,
        store: LocalStore | None = None,
    ):
        self.chat_client = chat_client or get_ai_client()
        self.image_generator = image_generator or ImageGenerator(chat_client=self.chat_client)
        store = store or LocalStore()
        self.cache = ContentCache(store)
        self.history = ContentHistory(store)

    async def generate_single_article(self, params: CreationParams) -> GeneratedArticle:
        """
        生成单篇文章

        Args:
            params: 创作参数

        Returns:
            GeneratedArticle: 文章（命中缓存时直接返回缓存内容）
        """
        if not params.topic or not params.topic.get("title"):
            raise ValidationError("选题不能为空")

        started = now_ms()
        params_dict = params.to_dict()
        cache_key = ContentCache.generate_cache_key(params_dict)

        cached = self.cache.get_cached_content(cache_key)
        if cached:
            logger.info("使用缓存内容，跳过生成")
            return GeneratedArticle.from_dict(cached)

        content = await self.chat_client.complete(ARTICLE_SYSTEM_PROMPT, build_article_prompt(params), temperature=0.7)

        if params.creation_mode == "reference" and params.reference_articles:
            title = params.reference_articles[0].get("title") or extract_title_from_content(content)
            logger.info(f"对标模式：使用原文章标题: {title}")
        else:
            title = extract_title_from_content(content)
            logger.info(f"原创模式：生成新标题: {title}")

        word_count = count_words(content)
        suggested = calculate_image_count(word_count)
        image_count = suggested if params.image_style == "auto" else min(params.image_count, suggested)

        images = await self.image_generator.generate_smart_article_images(
            content, title, image_count, params.image_style, params.topic
        )

        cover = None
        try:
            cover = (await generate_article_cover(title, content, client=self.chat_client)).to_dict()
        except ImageGenerationError as e:
            logger.error(f"封面生成失败: {e}")

        article = GeneratedArticle(
            id=generate_id(),
            title=title,
            content=content,
            images=images,
            cover=cover,
            word_count=word_count,
            reading_time=calculate_reading_time(content),
            topic_id=str(params.topic.get("id", "")),
            parameters=params_dict,
        )

        generation_time = now_ms() - started
        self.cache.save_to_cache(cache_key, article.to_dict(), params_dict)
        self.history.save_to_history(article.to_dict(), params_dict, generation_time)

        logger.info(
            f"文章生成完成，耗时 {generation_time}ms，字数 {word_count}，图片 {len(images)} 张"
            + ("，包含封面" if cover else "")
        )
        return article

    async def generate_batch_articles(
        self,
        topic: dict,
        params: CreationParams,
        count: int,
        on_progress: Callable[[float], None] | None = None,
    ) -> list[GeneratedArticle]:
        """
        批量生成文章（每篇分配不同角度，逐篇顺序执行）

        单篇失败只记录日志并跳过。

        Args:
            topic: 选题
            params: 基础创作参数（topic / unique_angle 会被覆盖）
            count: 文章数量
            on_progress: 进度回调（0-100）

        Returns:
            list[GeneratedArticle]: 成功生成的文章
        """
        articles = []
        for i in range(count):
            try:
                article = await self.generate_single_article(
                    replace(params, topic=topic, unique_angle=generate_unique_angle(i, count))
                )
                articles.append(article)
                if on_progress:
                    on_progress((i + 1) / count * 100)
            except (ContentFactoryError, httpx.HTTPError) as e:
                logger.error(f"第{i + 1}篇文章生成失败: {e}")

            if i < count - 1 and self.article_delay > 0:
                await asyncio.sleep(self.article_delay)

        return articles

    def cleanup_expired_data(self) -> int:
        """清理过期缓存"""
        removed = self.cache.cleanup_expired_cache()
        logger.info("数据清理完成")
        return removed


__all__ = [
    "ArticleGenerator",
    "CreationParams",
    "GeneratedArticle",
]
