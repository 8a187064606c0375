"""
Content Factory 内容工厂 - 写作提示词与文本工具

功能：
- 文章结构模板（清单体、干货体、故事体、SCQA 等）
- 基于选题三维度分析生成写作风格提示词
- 组装文章生成 Prompt（对标创作 / 原创创作）
- 标题提取清洗、字数统计、阅读时长、配图数量
"""

import math
import re

# ═══════════════════════════════════════════════════════════════════════════════
# 文章结构模板
# ═══════════════════════════════════════════════════════════════════════════════

STRUCTURE_TEMPLATES: dict[str, str] = {
    "auto": "请根据内容特点和目标读者，自动选择最适合的公众号文章结构。",

    "checklist": """
请采用**清单体结构**创作，要求：
1. 开头：明确说明清单主题和核心价值（3-5句话）
2. 主体：以"1、2、3……"数字列点形式展开，每个要点包含：
   - 简洁有力的小标题
   - 具体说明（2-3句话）
   - 案例/数据/工具推荐（1个）
3. 结尾：总结要点，给出行动建议或推荐工具
4. 风格：条理清晰，信息密度适中，易于快速阅读""",

    "knowledge_parallel": """
请采用**干货体-并列式结构**创作，要求：
1. 开头：提出核心问题或主题，引出多个观点
2. 主体：按"观点1+案例1+小结+观点2+案例2+小结……"结构：
   - 每个观点独立成段，逻辑并列
   - 每个观点搭配真实案例或数据支撑
   - 观点之间保持平衡，避免主次不分
3. 结尾：总结观点之间的关系，给出综合建议
4. 风格：逻辑严谨，论证充分，专业性强""",

    "knowledge_progressive": """
请采用**干货体-递进式结构**创作，要求：
1. 开头：明确概念定义或问题现状（是什么）
2. 主体：按"现状分析→原因拆解→解决方案"递进：
   - 深入分析问题的根本原因（为什么）
   - 逐步给出解决方案的层次和步骤（怎么办）
   - 每个层次都要建立在前一层次基础上
3. 结尾：总结解决路径，给出可操作的建议
4. 风格：深度思考，逻辑严密，层层递进""",

    "story": """
请采用**故事体结构**创作，要求：
1. 开头：制造冲突或悬念，快速吸引注意力
2. 主体：按"起因→经过→转折→结果"推进：
   - 展开具体细节，营造画面感和代入感
   - 描述挑战、挣扎和突破的关键时刻
   - 融入真实情感，引发读者共鸣
3. 结尾：升华情绪，提炼感悟或金句
4. 风格：情感真挚，画面感强，有温度的叙事""",

    "scqa": """
请采用**SCQA结构**创作，要求：
1. 情境(Situation)：描述背景或现状，建立共识
2. 冲突(Complication)：指出问题或矛盾，引发关注
3. 疑问(Question)：提出核心问题，引导思考
4. 答案(Answer)：给出解决方案，提供价值
5. 风格：条理清晰，逻辑严密，适合分析类内容""",

    "staircase": """
请采用**爬楼梯结构**创作，要求：
1. 起点：现状描述或问题引入
2. 楼梯1：第一层观点/情节发展
3. 楼梯2：第二层深入/情节推进
4. 楼梯3：更高层次/情节高潮
5. 终点：总结升华/结局收尾
6. 每一层都要比前一层更有深度或强度
7. 风格：逐步升级，层层深入，引导情绪""",

    "assorted": """
请采用**拼盘式结构**创作，要求：
1. 开头：明确主题方向，建立统一框架
2. 主体：按时间、空间、类型等关键词串联：
   - 多个素材模块，形式多样
   - 每个模块相对独立但服务于统一主题
   - 用过渡句自然连接不同模块
3. 结尾：整合各模块要点，给出整体建议
4. 风格：内容丰富，形式多样，信息量大""",
}

ARTICLE_SYSTEM_PROMPT = "你是专业的文章创作者，擅长基于深度洞察生成高质量内容。你的文章结构清晰，内容实用，语言优美。"

# 决策阶段 → 语气风格
TONE_MAP = {
    "觉察期": "温和引导，富有同理心",
    "认知期": "专业权威，条理清晰",
    "调研期": "客观对比，数据支撑",
    "决策期": "鼓励行动，给予信心",
    "行动期": "实用指导，步骤清晰",
    "成果期": "激励分享，展示价值",
}

# 决策阶段 → 内容结构
STAGE_STRUCTURE_MAP = {
    "觉察期": "问题引入 → 现状分析 → 启发思考",
    "认知期": "概念解释 → 核心要点 → 实用建议",
    "调研期": "对比分析 → 优缺点总结 → 选择指导",
    "决策期": "目标设定 → 行动步骤 → 激励鼓舞",
    "行动期": "问题识别 → 解决方案 → 注意事项",
    "成果期": "成果展示 → 经验总结 → 提升方向",
}

# 文章长度 → 字数范围
WORD_COUNT_RANGES = {
    "500": "400-500",
    "500-800": "600-800",
    "800-1200": "900-1200",
    "1000-1500": "1200-1500",
    "1500-2000": "1600-2000",
    "2000+": "2000-2500",
}

# 批量生成时的文章角度
UNIQUE_ANGLES = [
    "从实际案例角度分析",
    "从理论框架角度阐述",
    "从操作步骤角度说明",
    "从常见问题角度解答",
    "从未来趋势角度展望",
]


def get_structure_prompt_template(structure: str | None) -> str:
    """获取文章结构提示词，未知类型回退到 auto"""
    return STRUCTURE_TEMPLATES.get(structure or "auto", STRUCTURE_TEMPLATES["auto"])


# ═══════════════════════════════════════════════════════════════════════════════
# 写作风格
# ═══════════════════════════════════════════════════════════════════════════════


def get_recommended_tone(stage: str, emotional_pain: str = "") -> str:
    return TONE_MAP.get(stage, "专业客观")


def get_recommended_structure(stage: str) -> str:
    return STAGE_STRUCTURE_MAP.get(stage, "标准结构")


def get_recommended_case_type(audience: str) -> str:
    """根据目标人群推荐案例类型"""
    if "职场妈妈" in audience or "宝妈" in audience:
        return "真实故事案例，生活化场景"
    if "程序员" in audience or "技术" in audience:
        return "技术实践案例，数据驱动"
    if "设计师" in audience or "创作" in audience:
        return "设计作品案例，视觉展示"
    if "创业" in audience or "老板" in audience:
        return "商业实战案例，ROI导向"
    return "通用实用案例"


def get_recommended_interaction(expectation: str) -> str:
    """根据期望需求推荐互动方式"""
    if "解决方案" in expectation or "指导" in expectation:
        return "提供可操作步骤，引导实践"
    if "心理安慰" in expectation or "鼓励" in expectation:
        return "情感共鸣，积极引导"
    if "学习" in expectation or "技能" in expectation:
        return "知识讲解，技能训练"
    return "信息分享，启发思考"


def generate_writing_style_prompt(topic: dict) -> str:
    """
    基于选题三维度分析生成写作风格提示词

    Args:
        topic: 选题（含 decisionStage / audienceScene / demandPainPoint）

    Returns:
        str: 风格提示词
    """
    stage = topic.get("decisionStage") or {}
    scene = topic.get("audienceScene") or {}
    pain = topic.get("demandPainPoint") or {}

    audience = scene.get("audience") or "大众用户"
    expectation = pain.get("expectation") or "解决问题"
    emotional_pain = pain.get("emotionalPain") or "无明显痛点"
    stage_name = stage.get("stage") or "考虑"

    return f"""
基于以下选题分析，自动调整写作风格：

**决策阶段**: {stage.get("stage") or "未知"} - {stage.get("reason") or "暂无分析"}
**目标人群**: {audience}
**使用场景**: {scene.get("scene") or "日常使用"}
**情绪痛点**: {emotional_pain}
**现实需求**: {pain.get("realisticPain") or "基本需求"}
**期望获得**: {expectation}

请根据以上分析，采用最适合的：
- 语气风格：{get_recommended_tone(stage_name, emotional_pain)}
- 内容结构：{get_recommended_structure(stage_name)}
- 案例类型：{get_recommended_case_type(audience)}
- 互动方式：{get_recommended_interaction(expectation)}
"""


# ═══════════════════════════════════════════════════════════════════════════════
# 文章 Prompt
# ═══════════════════════════════════════════════════════════════════════════════


def get_word_count_range(length: str) -> str:
    return WORD_COUNT_RANGES.get(length, "1200-1500")


def _reference_block(reference_articles: list[dict]) -> str:
    articles_info = "\n\n".join(
        f"**对标文章{i}**:\n标题：{a.get('title', '')}\n摘要：{a.get('summary', '')}\n"
        f"数据：{a.get('reads') or 'N/A'}阅读，{a.get('likes') or 'N/A'}点赞"
        for i, a in enumerate(reference_articles, 1)
    )
    return f"""
**对标分析要求**：
请深入分析以下对标爆文，提取其爆点和优质内容要素：

{articles_info}

**深度分析任务**：
1. **爆点分析**：这些文章为什么会火？标题吸引力、内容价值、情感共鸣点
2. **结构分析**：文章的结构安排、段落布局、逻辑递进
3. **表达特色**：语言风格、用词特点、表达方式
4. **价值点**：为读者提供的实用价值和收获

**二创创作要求**：
- 深度吸收对标文章的优点和亮点
- 在原文基础上进行创新性改写和提升
- 保持核心价值但加入独特观点和见解
- 避免直接抄袭，确保原创性和差异化
"""


def _inspiration_block(inspiration: str) -> str:
    return f"""
**原创灵感输入**：
{inspiration}

**原创创作要求**：
- 深度理解和融入用户的原创灵感和观点
- 将用户的核心思想作为文章的主线和灵魂
- 围绕原创灵感展开，确保文章主题统一
- 在用户灵感基础上进行专业化和深度化处理
"""


def build_article_prompt(params) -> str:
    """
    组装文章生成 Prompt

    对标模式（有对标文章）附加对标分析块和结构模板；原创模式（有灵感）附加灵感块。

    Args:
        params: CreationParams

    Returns:
        str: 用户 Prompt
    """
    topic = params.topic
    is_reference = params.creation_mode == "reference" and bool(params.reference_articles)

    if is_reference:
        mode_block = _reference_block(params.reference_articles)
    elif params.creation_mode == "original" and params.original_inspiration:
        mode_block = _inspiration_block(params.original_inspiration)
    else:
        mode_block = ""

    structure_block = ""
    if params.creation_mode == "reference" and params.article_structure:
        structure_block = get_structure_prompt_template(params.article_structure)

    angle_line = f"**独特角度**: {params.unique_angle}" if params.unique_angle else ""

    return f"""
请基于以下信息，生成一篇高质量的微信公众号文章：

**创作模式**: {"对标创作模式" if params.creation_mode == "reference" else "原创创作模式"}

**基础信息**：
**选题**: {topic.get("title", "")}
**描述**: {topic.get("description", "")}
**重要指数**: {topic.get("confidence", "")}%
{angle_line}

{generate_writing_style_prompt(topic)}

{structure_block}

{mode_block}

**核心写作要求**:
- 字数：{get_word_count_range(params.length)}字
- 风格：{params.style}
- 语言：中文，流畅自然，适合微信公众号发布
- 标题：直接输出干净的标题，不要"主标题"、"副标题"等标识，不要多余符号，标题要简洁有力，可直接发布

**排版要求**（非常重要）:
1. 标题结构：主标题明确吸引人，使用2-3级小标题分割内容，每个小标题控制在15字以内
2. 段落优化：每段控制在3-5行，段落之间用空行分隔，多用短句
3. 内容结构：开头3秒内抓住读者注意力；主体分3-5个部分，逻辑清晰；结尾总结要点或引发思考
4. 阅读体验：使用列表列举要点，适当使用粗体强调重点，加入具体案例、数据和场景

请按照以上要求生成完整的文章内容（包含标题）。
"""


def generate_unique_angle(index: int, total: int) -> str:
    """
    为批量生成的第 index 篇文章分配角度

    超过 5 篇时追加维度序号，保证角度不重复。
    """
    angle = UNIQUE_ANGLES[index % len(UNIQUE_ANGLES)]
    if total <= len(UNIQUE_ANGLES):
        return angle
    return f"{angle}，结合第{index // len(UNIQUE_ANGLES) + 1}个维度分析"


# ═══════════════════════════════════════════════════════════════════════════════
# 文本工具
# ═══════════════════════════════════════════════════════════════════════════════

_CJK_CHAR = re.compile(r"[一-龥]")
_EN_WORD = re.compile(r"[a-zA-Z]+")


def clean_title(title: str) -> str:
    """移除标题中的 Markdown 粗体、"主标题："类标识和多余符号"""
    title = title.replace("**", "")
    title = re.sub(r"^(主标题|副标题|标题|小标题)[：:]\s*", "", title, flags=re.IGNORECASE)
    title = re.sub(r"^(（主标题）|【主标题】|《主标题》|（副标题）|【副标题】|《副标题》)", "", title)
    title = re.sub(r"[·•]", "", title)
    title = re.sub(r"[:：]\s*$", "", title)
    title = re.sub(r"^\s*[#【】《》()\[\]{}]\s*", "", title)
    title = re.sub(r"\s*[#【】《》()\[\]{}]\s*$", "", title)
    return re.sub(r"\s+", " ", title).strip()


def extract_title_from_content(content: str) -> str:
    """
    从生成的文章中提取标题

    规则：8-50 字的 # 标题优先；否则取第一个 11-49 字的普通行；
    都没有时截取首行前 30 字，空内容返回 "未命名文章"。
    """
    lines = [line.strip() for line in content.split("\n") if line.strip()]

    for line in lines:
        if line.startswith("#"):
            title = clean_title(re.sub(r"^#+\s*", "", line))
            if 8 <= len(title) <= 50:
                return title
        elif 10 < len(line) < 50:
            return clean_title(line)

    first_line = clean_title(lines[0]) if lines else ""
    if len(first_line) > 30:
        return first_line[:30] + "..."
    return first_line or "未命名文章"


def count_words(content: str) -> int:
    """字数 = 中文字符数 + 英文单词数"""
    return len(_CJK_CHAR.findall(content)) + len(_EN_WORD.findall(content))


def calculate_reading_time(content: str) -> int:
    """阅读时长（分钟，按每分钟 500 字计）"""
    return max(1, math.ceil(count_words(content) / 500))


def calculate_image_count(word_count: int) -> int:
    """根据字数推荐配图数量"""
    if word_count < 800:
        return 1
    if word_count < 1500:
        return 2
    if word_count < 2500:
        return 3
    return min(4, word_count // 800)


def calculate_optimal_image_count(word_count: int, preference: int) -> int:
    return min(preference, calculate_image_count(word_count))


def get_recommended_image_style(topic: dict) -> str:
    """根据目标人群推荐配图风格"""
    audience = (topic.get("audienceScene") or {}).get("audience") or ""

    if "创业" in audience or "老板" in audience:
        return "business"
    if "设计师" in audience or "创作" in audience:
        return "creative"
    if "程序员" in audience or "技术" in audience:
        return "tech"
    if "妈妈" in audience or "宝妈" in audience:
        return "lifestyle"
    return "auto"
