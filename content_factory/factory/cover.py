"""
Content Factory 内容工厂 - 公众号封面生成

功能：
- 5 套封面模板（商务、创意、生活、科技、极简）
- 按标题和正文自动选择模板、识别主题
- 组装 2.35:1 封面 Prompt，调用 DALL-E 风格接口
- 接口不可用时使用 picsum 模糊占位图
"""

import re
from dataclasses import asdict, dataclass, field
from urllib.parse import quote

import httpx

from content_factory.intel.utils import now_ms
from content_factory.utils.ai_client import ChatClient, get_ai_client
from content_factory.utils.errors import AIServiceError, ImageGenerationError
from content_factory.utils.logger import get_factory_logger

logger = get_factory_logger()


@dataclass(frozen=True)
class CoverTemplate:
    """封面模板"""
    id: str
    name: str
    description: str
    prompt_template: str
    title_font: str
    title_color: str
    background_color: str
    layout: str                 # 标题位置: center / bottom / top


@dataclass
class ArticleCover:
    """生成的封面"""
    url: str
    template: str               # 模板 ID
    title: str
    description: str
    prompt: str
    generated_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict:
        return asdict(self)


COVER_TEMPLATES: list[CoverTemplate] = [
    CoverTemplate(
        id="professional",
        name="商务专业",
        description="适合商业、职场、技术类内容",
        prompt_template=(
            "Professional WeChat official account cover image, clean design, business style, 2.35:1 aspect ratio, "
            "elegant typography, modern layout, suitable for business content"
        ),
        title_font="PingFang SC Bold",
        title_color="#ffffff",
        background_color="#1a365d",
        layout="center",
    ),
    CoverTemplate(
        id="creative",
        name="创意设计",
        description="适合设计、创意、艺术类内容",
        prompt_template=(
            "Creative WeChat cover design, artistic style, vibrant colors, 2.35:1 aspect ratio, "
            "modern typography, creative layout, suitable for design and art content"
        ),
        title_font="PingFang SC Medium",
        title_color="#2d3748",
        background_color="#f7fafc",
        layout="bottom",
    ),
    CoverTemplate(
        id="lifestyle",
        name="生活温馨",
        description="适合生活、情感、故事类内容",
        prompt_template=(
            "Warm lifestyle WeChat cover, cozy atmosphere, soft colors, 2.35:1 aspect ratio, "
            "friendly typography, inviting layout, suitable for lifestyle and emotional content"
        ),
        title_font="PingFang SC Regular",
        title_color="#2d3748",
        background_color="#fef5e7",
        layout="center",
    ),
    CoverTemplate(
        id="tech",
        name="科技未来",
        description="适合科技、数字化、未来类内容",
        prompt_template=(
            "Tech futuristic WeChat cover, digital aesthetic, blue tones, 2.35:1 aspect ratio, "
            "modern typography, innovative layout, suitable for technology and digital content"
        ),
        title_font="PingFang SC Bold",
        title_color="#ffffff",
        background_color="#2b6cb0",
        layout="center",
    ),
    CoverTemplate(
        id="minimal",
        name="简约极简",
        description="适合极简、现代、高端内容",
        prompt_template=(
            "Minimalist WeChat cover, clean design, monochrome palette, 2.35:1 aspect ratio, "
            "elegant typography, simple layout, suitable for premium and minimalist content"
        ),
        title_font="PingFang SC Light",
        title_color="#1a202c",
        background_color="#ffffff",
        layout="top",
    ),
]

# 模板 → 标题关键词 / 正文关键词（按优先级）
_TEMPLATE_RULES = [
    ("professional", ["商业", "职场", "管理", "创业"], ["商业", "职场"]),
    ("tech", ["科技", "技术", "AI", "数字化"], ["科技", "技术"]),
    ("creative", ["设计", "创意", "艺术", "美学"], ["设计", "创意"]),
    ("lifestyle", ["生活", "情感", "健康", "故事"], ["生活", "情感"]),
]

# 主题 → 关键词（按优先级）
_THEME_RULES = [
    ("technology", ["科技", "技术", "AI"]),
    ("business", ["商业", "职场", "管理"]),
    ("lifestyle", ["生活", "健康", "情感"]),
    ("creative", ["设计", "创意", "艺术"]),
]

_KEYWORD_SPLIT = re.compile(r"[，。！？；：\s]+")


def get_cover_template(template_id: str) -> CoverTemplate:
    for template in COVER_TEMPLATES:
        if template.id == template_id:
            return template
    return COVER_TEMPLATES[0]


def select_cover_template(title: str, content: str) -> CoverTemplate:
    """
    根据标题和正文自动选择封面模板

    关键词区分大小写（"AI" 按原样匹配），无命中时使用商务模板。
    """
    for template_id, title_words, content_words in _TEMPLATE_RULES:
        if any(w in title for w in title_words) or any(w in content for w in content_words):
            return get_cover_template(template_id)
    return COVER_TEMPLATES[0]


def extract_content_keywords(title: str, content: str) -> list[str]:
    """按中文标点和空白切分，取前 10 个长度 ≥ 2 的词"""
    words = _KEYWORD_SPLIT.split(f"{title} {content}")
    return [w for w in words if len(w) >= 2][:10]


def identify_content_theme(title: str, content: str) -> str:
    text = f"{title} {content}"
    for theme, words in _THEME_RULES:
        if any(w in text for w in words):
            return theme
    return "general"


def build_cover_prompt(title: str, theme: str, keywords: list[str], template: CoverTemplate) -> str:
    """组装英文封面 Prompt"""
    return (
        "Create a professional WeChat official account cover image with the following specifications: "
        f"Article Title: {title}, Main Theme: {theme}, Keywords: {', '.join(keywords[:3])}, "
        f"Template Style: {template.name}, Requirements: - Aspect ratio: 2.35:1 (900x383px recommended), "
        f"- Style: {template.prompt_template}, - Background: {template.background_color}, "
        f'- Text placement: {template.layout}, - Include the article title: "{title}", '
        "- Clean, professional, eye-catching design, - High resolution, suitable for social media, "
        "- Text should be clearly readable and well-positioned. Generate a stunning cover image that "
        "effectively represents the article content and attracts readers' attention."
    )


def generate_placeholder_image(prompt: str) -> str:
    """900x383（2.35:1）模糊占位图，seed 取 Prompt 前 50 字"""
    return f"https://picsum.photos/seed/{quote(prompt[:50], safe='')}/900/383.jpg?blur=2"


async def generate_article_cover(
    title: str,
    content: str,
    template_id: str | None = None,
    client: ChatClient | None = None,
) -> ArticleCover:
    """
    生成文章封面

    Args:
        title: 文章标题
        content: 文章正文
        template_id: 指定模板（默认自动选择）
        client: 对话客户端（封面走对话服务商的图片接口）

    Returns:
        ArticleCover: 封面信息（接口失败时 url 为占位图）

    Raises:
        ImageGenerationError: 组装过程出现意外错误（"封面生成失败"）
    """
    client = client or get_ai_client()
    try:
        template = get_cover_template(template_id) if template_id else select_cover_template(title, content)
        keywords = extract_content_keywords(title, content)
        theme = identify_content_theme(title, content)
        prompt = build_cover_prompt(title, theme, keywords, template)
    except (TypeError, AttributeError) as e:
        logger.error(f"生成封面失败: {e}")
        raise ImageGenerationError("封面生成失败") from e

    try:
        url = await client.generate_cover_image(prompt)
    except (AIServiceError, httpx.HTTPError, ValueError) as e:
        logger.error(f"图片生成API调用失败: {e}")
        url = None

    return ArticleCover(
        url=url or generate_placeholder_image(prompt),
        template=template.id,
        title=title,
        description=f"AI生成的封面 - {template.name}风格",
        prompt=prompt,
    )


__all__ = [
    "COVER_TEMPLATES",
    "ArticleCover",
    "CoverTemplate",
    "build_cover_prompt",
    "extract_content_keywords",
    "generate_article_cover",
    "identify_content_theme",
    "select_cover_template",
]
