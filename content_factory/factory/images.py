"""
Content Factory 内容工厂 - 智能文章配图

功能：
- 基于文章内容让模型生成差异化的插画提示词
- 相似提示词检测与替换（时间 / 地点 / 人物 / 动作 / 视角）
- 应用图片风格，调用硅基流动并发生图
- 失败时降级为 picsum 占位图，保证返回数量

使用方法：
    from content_factory.factory.images import ImageGenerator

    generator = ImageGenerator()
    urls = await generator.generate_smart_article_images(content, title, 2, "tech")
"""

import asyncio
import re
import secrets
from dataclasses import dataclass

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from content_factory.intel.utils import TRANSPORT_ERRORS, now_ms
from content_factory.utils.ai_client import ChatClient, ImageClient, get_ai_client
from content_factory.utils.errors import AIServiceError, ConfigError, ImageGenerationError
from content_factory.utils.logger import get_factory_logger

logger = get_factory_logger()


@dataclass(frozen=True)
class ImageStyle:
    """配图风格"""
    value: str
    label: str
    description: str
    prompt_template: str


@dataclass(frozen=True)
class ImageRatio:
    """配图比例"""
    value: str
    label: str
    description: str


IMAGE_STYLES: list[ImageStyle] = [
    ImageStyle("auto", "智能选择", "根据文章内容自动匹配风格", "根据文章内容自动选择最适合的插画风格，确保与主题高度相关"),
    ImageStyle(
        "business", "商务专业", "适合商业、职场类内容",
        "professional business illustration, clean design, corporate colors, modern office setting, professional attire",
    ),
    ImageStyle(
        "creative", "创意插画", "适合创意、艺术类内容",
        "creative artistic illustration, vibrant colors, imaginative style, artistic elements, creative concept",
    ),
    ImageStyle(
        "minimalist", "简约现代", "适合科技、设计类内容",
        "minimalist modern illustration, clean lines, simple colors, modern aesthetic, professional design",
    ),
    ImageStyle(
        "tech", "科技未来", "适合科技、未来感内容",
        "tech futuristic illustration, digital aesthetic, technology elements, innovative design, sci-fi influence",
    ),
    ImageStyle(
        "lifestyle", "生活温馨", "适合生活、情感类内容",
        "warm lifestyle illustration, cozy atmosphere, natural lighting, human elements, emotional connection",
    ),
]

IMAGE_RATIOS: list[ImageRatio] = [
    ImageRatio("2.35:1", "封面 2.35:1（推荐）", "适合公众号封面、横幅"),
    ImageRatio("1:1", "正方形 1:1", "适合社交媒体头像、封面"),
    ImageRatio("4:3", "标准 4:3", "适合传统展示、文章插图"),
    ImageRatio("16:9", "宽屏 16:9", "适合横幅、演示文稿"),
    ImageRatio("3:4", "竖版 3:4", "适合移动端展示、故事"),
    ImageRatio("9:16", "手机屏 9:16", "适合短视频、手机壁纸"),
]

IMAGE_PROMPT_SYSTEM = (
    "你是顶级插画提示词专家，专门生成完全不同的场景描述。你的核心原则是：每张图片都必须有独特的视觉识别，"
    "绝对不能有相似或重复的场景。严格遵循用户的差异化要求，确保时间、地点、人物、视角、情绪、动作都完全不同。"
    "只输出简洁的提示词，不要解释。"
)

IMAGE_PROMPT_TEMPLATE = """请基于以下文章内容，生成 {count} 个完全不同的插画提示词，每张图都必须有独特的视觉识别。

文章标题：{title}
文章内容：{content}

严格禁止重复：
1. 任何两个提示词都不能有相似的场景、人物、动作、构图
2. 避免使用同义词、相似的描述方式、重复的元素

差异化要求：
第1张图：引入场景，问题的初始状态，冷色调，单人，室内
第2张图：转折过程，思考或寻找解决方案，暖色调，多人，室外
第3张图：行动实践，具体执行的关键时刻，中性色调，双人，特写
第4张图：成果展示，成功改变的瞬间，明亮色调，群体，远景

每张图分配不同的时间、地点、人物、视角、情绪、动作；整体保持统一的扁平化现代简约插画风格。

请直接输出 {count} 行提示词，每行一个，不要编号。"""

# 相似度判断用的关键元素
KEY_ELEMENTS = [
    # 地点
    "办公室", "会议室", "咖啡馆", "公园", "家里", "室外", "室内", "城市", "街道",
    # 时间
    "清晨", "早晨", "下午", "傍晚", "夜晚", "深夜", "白天", "黑夜",
    # 人物
    "年轻人", "中年人", "老人", "男人", "女人", "团队", "群体", "单人", "双人",
    # 动作
    "思考", "讨论", "工作", "学习", "庆祝", "休息", "交流", "合作", "创新",
    # 视角
    "特写", "远景", "近景", "俯视", "仰视", "平视", "侧视",
]

BASE_SCENARIOS = [
    ("清晨", "办公室", "年轻职员", "沉思", "特写", "冷蓝色调"),
    ("下午", "咖啡馆", "两位创业者", "讨论", "中景", "暖橙色调"),
    ("傍晚", "公园", "思考者", "散步", "远景", "中性灰色调"),
    ("夜晚", "会议室", "团队成员", "庆祝", "仰视", "明亮金色调"),
    ("深夜", "家里", "创作者", "写作", "俯视", "柔和紫色调"),
]

FALLBACK_PROMPTS = [
    "现代办公场景插画，简洁专业风格",
    "学习和成长主题插画，励志温暖风格",
    "团队协作场景插画，现代扁平化设计",
    "创新思维概念图，抽象艺术风格",
    "目标达成场景插画，积极向上风格",
]

_NORMALIZE = re.compile(r"[^\w一-龥]")


def get_image_style(value: str | None) -> ImageStyle:
    """按值查找风格，未知时返回智能选择"""
    for style in IMAGE_STYLES:
        if style.value == value:
            return style
    return IMAGE_STYLES[0]


# ═══════════════════════════════════════════════════════════════════════════════
# 提示词处理
# ═══════════════════════════════════════════════════════════════════════════════


def extract_key_elements(prompt: str) -> list[str]:
    return [element for element in KEY_ELEMENTS if element in prompt]


def are_prompts_similar(prompt1: str, prompt2: str) -> bool:
    """规范化后完全相同，或共享 3 个以上关键元素，视为相似"""
    if _NORMALIZE.sub("", prompt1.lower()) == _NORMALIZE.sub("", prompt2.lower()):
        return True
    elements2 = set(extract_key_elements(prompt2))
    common = [e for e in extract_key_elements(prompt1) if e in elements2]
    return len(common) >= 3


def generate_fallback_prompt(topic: dict | None = None, index: int = 0) -> str:
    """生成备用提示词（有选题时优先结合人群场景）"""
    if topic:
        scene = topic.get("audienceScene") or {}
        pain = topic.get("demandPainPoint") or {}
        candidates = [
            f"{scene.get('audience') or '用户'}在{scene.get('scene') or '场景'}的场景插画，简洁现代风格",
            f"{topic.get('title', '')}相关的概念图，信息图表风格",
            f"{pain.get('expectation') or '需求'}的视觉化表达，积极风格",
            *FALLBACK_PROMPTS,
        ]
        return candidates[index % 5]
    return FALLBACK_PROMPTS[index % len(FALLBACK_PROMPTS)]


def generate_unique_fallback_prompt(topic: dict | None, index: int, existing: list[str] | None = None) -> str:
    """
    生成与已有提示词不相似的备用提示词

    基于 5 个基础场景，最多尝试 10 次添加修饰词。
    """
    existing = existing or []
    time_, location, person, action, perspective, mood = BASE_SCENARIOS[index % len(BASE_SCENARIOS)]
    prompt = f"{time_}{location}里，{person}{action}的{perspective}场景，{mood}"

    modifiers = ["安静地", "专注地", "热烈地", "轻松地", "认真地"]
    attempts = 0
    while any(are_prompts_similar(e, prompt) for e in existing) and attempts < 10:
        modifier = modifiers[(index + attempts) % len(modifiers)]
        prompt = f"{time_}{location}里，{person}{modifier}{action}的{perspective}场景，{mood}"
        attempts += 1

    return prompt


def validate_and_fix_prompts(prompts: list[str], target_count: int, topic: dict | None = None) -> list[str]:
    """检测相似提示词，将后出现的一条替换为独特的备用提示词"""
    fixed = list(prompts)
    duplicates = []
    for i in range(len(fixed)):
        for j in range(i + 1, len(fixed)):
            if are_prompts_similar(fixed[i], fixed[j]) and j not in duplicates:
                duplicates.append(j)

    for index in duplicates:
        fixed[index] = generate_unique_fallback_prompt(topic, index, fixed)

    return fixed[:target_count]


def apply_image_style(base_prompt: str, style: ImageStyle) -> str:
    """为提示词追加风格描述"""
    if style.value == "auto":
        return base_prompt + ", professional illustration style, high quality, consistent visual style"
    return f"{base_prompt}, {style.prompt_template}, high quality, professional illustration, consistent style"


def get_fallback_image(seed: str | None = None) -> str:
    """picsum 占位图（1024x1024）"""
    seed = seed or secrets.token_hex(4)
    return f"https://picsum.photos/seed/{seed}/1024/1024.jpg"


def get_fallback_image_with_index(index: int) -> str:
    """带序号的占位图，同一批次内 seed 不重复"""
    return get_fallback_image(f"{now_ms()}_{index}_{secrets.token_hex(3)}")


# ═══════════════════════════════════════════════════════════════════════════════
# 配图生成器
# ═══════════════════════════════════════════════════════════════════════════════


class ImageGenerator:
    """文章配图生成器"""

    # 单张图片重试次数与间隔
    max_retries: int = 2
    retry_wait: float = 1.0

    def __init__(self, chat_client: ChatClient | None = None, image_client: ImageClient | None = None):
        self.chat_client = chat_client or get_ai_client()
        self.image_client = image_client or ImageClient()

    async def generate_image_prompts_from_content(
        self,
        content: str,
        title: str,
        count: int,
        topic: dict | None = None,
    ) -> list[str]:
        """
        基于文章内容生成 count 个差异化提示词

        模型调用失败时全部使用备用提示词。
        """
        excerpt = content[:2000] + "..." if len(content) > 2000 else content
        try:
            response = await self.chat_client.complete(
                IMAGE_PROMPT_SYSTEM,
                IMAGE_PROMPT_TEMPLATE.format(count=count, title=title, content=excerpt),
                temperature=0.7,
            )
        except (AIServiceError, ConfigError, *TRANSPORT_ERRORS) as e:
            logger.error(f"基于内容生成图片提示词失败: {e}")
            return [generate_fallback_prompt(topic, i) for i in range(count)]

        prompts = [line.strip() for line in response.split("\n") if len(line.strip()) > 10][:count]
        prompts = validate_and_fix_prompts(prompts, count, topic)
        while len(prompts) < count:
            prompts.append(generate_fallback_prompt(topic, len(prompts)))

        logger.info(f"生成了 {count} 个配图提示词")
        return prompts

    async def generate_single_image(self, prompt: str) -> str:
        """
        生成单张图片（失败重试 2 次，间隔 1 秒）

        未配置硅基流动密钥时直接返回占位图。

        Raises:
            ImageGenerationError: 重试耗尽
        """
        if not self.image_client.configured:
            logger.info("SiliconFlow API key 未配置，使用占位图片")
            return get_fallback_image()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type((ImageGenerationError, *TRANSPORT_ERRORS)),
            reraise=True,
        ):
            with attempt:
                return await self.image_client.generate(prompt)

    async def _generate_styled(self, prompt: str, style: ImageStyle, index: int) -> str:
        try:
            return await self.generate_single_image(apply_image_style(prompt, style))
        except (ImageGenerationError, ValueError, *TRANSPORT_ERRORS) as e:
            logger.error(f"第 {index + 1} 张图片生成失败: {e}")
            return get_fallback_image_with_index(index)

    async def generate_smart_article_images(
        self,
        content: str,
        title: str,
        count: int,
        image_style: str = "auto",
        topic: dict | None = None,
    ) -> list[str]:
        """
        智能配图：提示词生成 → 应用风格 → 并发生图

        单张失败使用占位图；整体失败时返回 count 张占位图。

        Args:
            content: 文章正文
            title: 文章标题
            count: 配图数量
            image_style: 风格值（见 IMAGE_STYLES）
            topic: 选题（用于备用提示词）

        Returns:
            list[str]: 图片 URL
        """
        if count <= 0:
            return []

        style = get_image_style(image_style)
        try:
            prompts = await self.generate_image_prompts_from_content(content, title, count, topic)
            images = await asyncio.gather(
                *(self._generate_styled(prompt, style, i) for i, prompt in enumerate(prompts))
            )
        except (AIServiceError, ImageGenerationError, ConfigError, ValueError) as e:
            logger.error(f"智能图片生成系统失败: {e}")
            return [get_fallback_image_with_index(i) for i in range(count)]

        logger.info(f"成功生成 {len(images)}/{count} 张图片，风格: {style.label}")
        return list(images)


__all__ = [
    "IMAGE_STYLES",
    "IMAGE_RATIOS",
    "ImageGenerator",
    "ImageStyle",
    "apply_image_style",
    "are_prompts_similar",
    "generate_fallback_prompt",
    "generate_unique_fallback_prompt",
    "validate_and_fix_prompts",
]
