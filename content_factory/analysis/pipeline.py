"""
Content Factory 内容工厂 - 两阶段 AI 分析流水线

流程：
1. 关键词搜索公众号文章（极致了）
2. 阶段 1：逐篇深度分析（要点、关键词、人群、场景、痛点）
3. 统计阅读 / 点赞 / 互动率
4. 阶段 2：三维度选题洞察（决策阶段、人群场景、需求痛点）
5. 结果写入本地存储，供创作页同步选题

使用方法：
    from content_factory.analysis.pipeline import AnalysisService

    service = AnalysisService()
    result = await service.analyze_keyword("AI写作", count=5)
    for insight in result["insights"]:
        print(insight["title"], insight["confidence"])
"""

import json
from collections import Counter
from dataclasses import asdict, dataclass

from content_factory.factory.content_cache import LocalStore
from content_factory.intel.article_store import ArticleStore
from content_factory.intel.utils import now_ms, strip_json_fence
from content_factory.intel.wechat_search import WechatArticle, WechatSearchClient
from content_factory.utils.ai_client import ChatClient, get_ai_client
from content_factory.utils.errors import AIServiceError, ValidationError
from content_factory.utils.logger import get_analysis_logger

logger = get_analysis_logger()

# 最新分析结果在本地存储中的键
LATEST_ANALYSIS_KEY = "ai-analysis-results"

# 单篇文章送入模型的最大字数
MAX_CONTENT_CHARS = 3000

# 选题洞察上限
MAX_INSIGHTS = 10


# ═══════════════════════════════════════════════════════════════════════════════
# Prompt 模板
# ═══════════════════════════════════════════════════════════════════════════════

DEEP_ANALYSIS_SYSTEM = "你是一个专业的内容深度分析专家，擅长从文章中提取结构化信息，只输出JSON格式数据。"

INSIGHTS_SYSTEM = "你是顶级的内容选题策划专家，擅长从数据分析中提炼出具有商业价值的选题洞察，只输出JSON格式数据。"

DEEP_ANALYSIS_PROMPT = """你是一个资深的内容分析专家。请对以下{count}篇微信公众号文章进行深度分析，提取结构化信息。

文章数据：
{articles_json}

请为每篇文章输出以下JSON格式：
{{
  "summaries": [
    {{
      "index": 1,
      "keyPoints": ["要点1", "要点2", "要点3"],
      "keywords": ["关键词1", "关键词2", "关键词3", "关键词4", "关键词5"],
      "highlights": ["亮点1", "亮点2"],
      "engagementAnalysis": "互动表现分析（50字以内）",
      "targetAudience": "明确的目标人群，如：职场新人、宝妈、大学生、创业者等",
      "scenario": "具体使用场景，如：工作日早晨、睡前阅读、通勤路上等",
      "painPoint": "解决的痛点需求，如：时间紧张、选择困难、技能缺失等",
      "contentAngle": "内容角度，如：实用教程、经验分享、趋势分析等",
      "emotionType": "情感类型，如：激励鼓舞、温暖治愈、理性分析等",
      "writingStyle": "写作风格，如：干货满满、故事性强、数据驱动等"
    }}
  ]
}}

核心要求：
1. targetAudience、scenario、painPoint 这三个字段必须准确填写，这是后续选题洞察的关键
2. keyPoints: 3-5个最有价值的要点
3. keywords: 至少5个关键词，包含主题词、人群词、场景词、痛点词
4. highlights: 1-2个最有特色的内容亮点
5. engagementAnalysis: 基于互动数据分析内容受欢迎的原因

只输出JSON格式，不要任何解释文字。"""

INSIGHTS_PROMPT = """你是一个顶级的内容选题策划专家，专门为微信公众号创作者提供精准的选题洞察。基于对{count}篇高质量文章的深度分析，请生成具有商业价值的选题洞察。

文章深度分析数据：
{summaries_json}

统计数据：
- 总文章数: {total_articles}
- 平均阅读量: {avg_reads}
- 平均点赞数: {avg_likes}
- 平均互动率: {avg_engagement}

请按照以下三维度分析框架生成选题洞察：

1. 决策阶段：用户所处的心理状态和行为阶段
   觉察期 / 认知期 / 调研期 / 决策期 / 行动期 / 成果期
2. 人群场景：从文章内容提取具体人群特征，并匹配具体使用场景
   如"深夜加班的程序员想要提升效率"、"带娃间隙的宝妈想学习新技能"
3. 需求痛点：情绪痛点、现实痛点、期望需求，分析用户产生问题的根本原因

JSON格式输出：
{{
  "insights": [
    {{
      "title": "洞察标题（15-20字，简洁有力）",
      "description": "详细分析（120-180字，包含市场分析、用户价值、可行性）",
      "confidence": 85,
      "evidence": ["文章1标题", "文章2标题"],
      "keywords": {{
        "primary": ["核心关键词1", "核心关键词2"],
        "secondary": ["次要关键词1", "次要关键词2"],
        "category": "关键词分类（如：职场发展、副业创业、技能提升等）"
      }},
      "decisionStage": {{"stage": "觉察期/认知期/调研期/决策期/行动期/成果期", "reason": "判断理由"}},
      "audienceScene": {{"audience": "具体人群特征", "scene": "具体使用场景", "reason": "判断理由"}},
      "demandPainPoint": {{
        "emotionalPain": "情绪痛点",
        "realisticPain": "现实痛点",
        "expectation": "期望需求",
        "reason": "判断理由"
      }},
      "tags": ["标签1", "标签2"],
      "marketPotential": "high",
      "contentSaturation": 65,
      "recommendedFormat": "教程类/经验分享/案例分析",
      "keyDifferentiators": ["差异化点1", "差异化点2"]
    }}
  ]
}}

核心要求：
1. 生成5-10条洞察，最多不超过10条
2. 三维度分析必须基于文章内容，每个维度都要有 reason 字段
3. 人群场景要具体化，避免泛泛而谈
4. confidence 基于证据强度设定，范围70-95，这是重要指数
5. evidence 至少引用2-3篇相关文章标题
6. 确保洞察覆盖不同用户旅程阶段和具体人群场景

只输出JSON格式，不要任何解释。"""


# ═══════════════════════════════════════════════════════════════════════════════
# 数据结构
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class SourceArticle:
    """参与分析的源文章"""
    title: str
    content: str
    likes: int
    reads: int
    url: str
    publishTime: int = 0      # 秒级时间戳
    author: str = ""          # 公众号名称
    cover: str = ""           # 封面
    summary: str = ""         # 摘要

    @classmethod
    def from_wechat(cls, article: WechatArticle) -> "SourceArticle":
        content = article.content or article.digest or "无内容"
        return cls(
            title=article.title or "无标题",
            content=content,
            likes=article.likes,
            reads=article.reads,
            url=article.url or "#",
            publishTime=article.publish_time,
            author=article.wx_name or "未知作者",
            cover=article.cover,
            summary=article.digest or (article.content[:200] + "..." if article.content else ""),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def _article_field(article, name: str, default=None):
    if isinstance(article, dict):
        return article.get(name, default)
    return getattr(article, name, default)


# ═══════════════════════════════════════════════════════════════════════════════
# 阶段 1 / 阶段 2
# ═══════════════════════════════════════════════════════════════════════════════


def _parse_json(response: str, error_message: str) -> dict:
    """清理代码块标记后解析 JSON，失败时抛出 AIServiceError"""
    try:
        parsed = json.loads(strip_json_fence(response))
    except json.JSONDecodeError as e:
        logger.error(f"解析AI响应失败: {response[:500]}")
        raise AIServiceError(error_message) from e
    if not isinstance(parsed, dict):
        logger.error(f"AI响应不是JSON对象: {response[:500]}")
        raise AIServiceError(error_message)
    return parsed


def build_article_payload(articles: list) -> list[dict]:
    """
    构建送入模型的文章数据

    Args:
        articles: SourceArticle 或同字段 dict 列表

    Returns:
        list[dict]: index / title / content / likes / reads / engagement
    """
    payload = []
    for i, article in enumerate(articles, 1):
        likes = _article_field(article, "likes", 0) or 0
        reads = _article_field(article, "reads", 0) or 0
        payload.append({
            "index": i,
            "title": _article_field(article, "title", ""),
            "content": (_article_field(article, "content", "") or "")[:MAX_CONTENT_CHARS],
            "likes": likes,
            "reads": reads,
            "engagement": f"{likes / reads * 100:.1f}" if reads > 0 else "0",
        })
    return payload


async def deep_analyze_articles(articles: list, client: ChatClient | None = None) -> list[dict]:
    """
    阶段 1：逐篇深度分析

    Args:
        articles: 源文章列表
        client: 对话客户端（默认全局客户端）

    Returns:
        list[dict]: 文章摘要（summaries）

    Raises:
        AIServiceError: 响应无法解析（"深度文章分析失败"）
    """
    if not articles:
        return []

    client = client or get_ai_client()
    articles_json = json.dumps(build_article_payload(articles), ensure_ascii=False)
    prompt = DEEP_ANALYSIS_PROMPT.format(count=len(articles), articles_json=articles_json)

    logger.info(f"阶段1: 深度分析 {len(articles)} 篇文章")
    response = await client.complete(DEEP_ANALYSIS_SYSTEM, prompt, temperature=0.3)

    summaries = _parse_json(response, "深度文章分析失败").get("summaries") or []
    summaries = [item for item in summaries if isinstance(item, dict)]
    for index, summary in enumerate(summaries, 1):
        if not summary.get("targetAudience") or not summary.get("scenario") or not summary.get("painPoint"):
            logger.warning(f"文章{index}缺少关键字段: targetAudience/scenario/painPoint")

    return summaries


async def generate_smart_topic_insights(summaries: list[dict], stats: dict, client: ChatClient | None = None) -> list[dict]:
    """
    阶段 2：基于深度分析生成选题洞察

    Args:
        summaries: 阶段 1 结果
        stats: compute_stats() 统计数据
        client: 对话客户端（默认全局客户端）

    Returns:
        list[dict]: 洞察列表（最多 10 条，按 confidence 降序）

    Raises:
        AIServiceError: 响应无法解析（"智能选题洞察生成失败"）
    """
    if not summaries:
        return []

    client = client or get_ai_client()
    prompt = INSIGHTS_PROMPT.format(
        count=len(summaries),
        summaries_json=json.dumps(summaries, ensure_ascii=False),
        total_articles=stats.get("totalArticles", 0),
        avg_reads=stats.get("avgReads", 0),
        avg_likes=stats.get("avgLikes", 0),
        avg_engagement=stats.get("avgEngagement", "0%"),
    )

    logger.info(f"阶段2: 基于 {len(summaries)} 篇摘要生成选题洞察")
    response = await client.complete(INSIGHTS_SYSTEM, prompt, temperature=0.4)

    insights = _parse_json(response, "智能选题洞察生成失败").get("insights") or []
    insights = [item for item in insights if isinstance(item, dict)]
    if not insights:
        logger.warning("AI未能生成任何洞察")
    elif len(insights) > MAX_INSIGHTS:
        logger.info(f"AI生成了{len(insights)}条选题洞察，截取前{MAX_INSIGHTS}条")
        insights = insights[:MAX_INSIGHTS]
    else:
        logger.info(f"AI生成了{len(insights)}条选题洞察")

    for index, insight in enumerate(insights, 1):
        if not insight.get("title") or not insight.get("description"):
            logger.warning(f"洞察{index}缺少必需的标题或描述字段")
        confidence = insight.get("confidence")
        if not isinstance(confidence, (int, float)) or not 60 <= confidence <= 100:
            logger.warning(f"洞察{index}的置信度数值异常，期望60-100之间")

    def _confidence(item: dict) -> float:
        value = item.get("confidence")
        return value if isinstance(value, (int, float)) else 0

    return sorted(insights, key=_confidence, reverse=True)


def generate_word_cloud(summaries: list[dict]) -> list[dict]:
    """
    关键词词云（前 20 个，字号递减）

    Returns:
        list[dict]: word / count / size
    """
    counter = Counter(word for s in summaries for word in (s.get("keywords") or []))
    return [
        {"word": word, "count": count, "size": max(20, 48 - index * 2)}
        for index, (word, count) in enumerate(counter.most_common(20))
    ]


def compute_stats(articles: list) -> dict:
    """
    统计源文章数据

    Returns:
        dict: totalArticles / avgReads / avgLikes / avgEngagement
    """
    total = len(articles)
    total_reads = sum(_article_field(a, "reads", 0) or 0 for a in articles)
    total_likes = sum(_article_field(a, "likes", 0) or 0 for a in articles)
    return {
        "totalArticles": total,
        "avgReads": round(total_reads / total) if total else 0,
        "avgLikes": round(total_likes / total) if total else 0,
        "avgEngagement": f"{total_likes / total_reads * 100:.1f}%" if total_reads > 0 else "0%",
    }


# ═══════════════════════════════════════════════════════════════════════════════
# 完整分析服务
# ═══════════════════════════════════════════════════════════════════════════════


class AnalysisService:
    """关键词 → 搜索 → 深度分析 → 选题洞察"""

    def __init__(
        self,
        chat_client: ChatClient | None = None,
        search_client: WechatSearchClient | None = None,
        local_store: LocalStore | None = None,
        article_store: ArticleStore | None = None,
    ):
        self.chat_client = chat_client or get_ai_client()
        self.search_client = search_client or WechatSearchClient()
        self.local_store = local_store or LocalStore()
        self._article_store = article_store

    @property
    def article_store(self) -> ArticleStore:
        if self._article_store is None:
            self._article_store = ArticleStore()
        return self._article_store

    async def analyze_keyword(self, keyword: str, count: int = 5) -> dict:
        """
        完整分析流程

        Args:
            keyword: 搜索关键词
            count: 分析文章数

        Returns:
            dict: articles / summaries / insights / stats / analysisTime / searchKeyword / searchTotal
        """
        if not keyword or not keyword.strip():
            raise ValidationError("关键词不能为空")
        keyword = keyword.strip()

        started = now_ms()
        logger.info(f"开始分析关键词: {keyword}（{count} 篇）")

        search_result = await self.search_client.search_articles(keyword, period=7, limit=count)
        articles = [SourceArticle.from_wechat(a) for a in search_result.articles[:count]]
        self._record_search(keyword, started, articles)

        if not articles:
            logger.warning(f"关键词 [{keyword}] 未找到相关文章")
            return {
                "articles": [],
                "summaries": [],
                "insights": ["未找到相关文章，请尝试其他关键词"],
                "stats": compute_stats([]),
                "analysisTime": now_ms(),
                "searchKeyword": keyword,
                "searchTotal": 0,
                "message": "未找到相关文章，请尝试其他关键词",
            }

        summaries = await deep_analyze_articles(articles, self.chat_client)
        stats = compute_stats(articles)
        insights = await generate_smart_topic_insights(summaries, stats, self.chat_client)

        result = {
            "articles": [a.to_dict() for a in articles],
            "summaries": summaries,
            "insights": insights,
            "stats": stats,
            "analysisTime": now_ms(),
            "searchKeyword": keyword,
            "searchTotal": search_result.total,
        }

        self.local_store.set(LATEST_ANALYSIS_KEY, result)
        logger.info(f"分析完成: {len(insights)} 条洞察，耗时 {result['analysisTime'] - started}ms")
        return result

    def _record_search(self, keyword: str, timestamp: int, articles: list[SourceArticle]):
        self.article_store.record_search(
            keyword=keyword,
            platform="wechat",
            timestamp=timestamp,
            result_count=len(articles),
            time_range=7,
            articles_data=[a.to_dict() for a in articles],
        )

    def get_latest_analysis(self) -> dict | None:
        return self.local_store.get(LATEST_ANALYSIS_KEY)


__all__ = [
    "AnalysisService",
    "SourceArticle",
    "compute_stats",
    "deep_analyze_articles",
    "generate_smart_topic_insights",
    "generate_word_cloud",
]
