"""
Content Factory 内容工厂 - 选题市场热度分析

功能：
- 从对标文章标题提取关键词，搜索近半年同类文章
- 统计阅读量与近期活跃度
- 评估竞争程度与创作机会，给出建议
- 分析结果入库（topic_analysis），支持复用、分页、修改、删除

使用方法：
    from content_factory.intel.topic_market import TopicMarketAnalyzer

    analyzer = TopicMarketAnalyzer()
    results = await analyzer.analyze_articles([1, 2, 3])
"""

import asyncio

import httpx

from content_factory.intel.article_store import ArticleStore, TopicAnalysisModel
from content_factory.intel.keyword_extractor import split_title_words
from content_factory.intel.utils import now_ms
from content_factory.intel.wechat_search import WechatArticle, WechatSearchClient
from content_factory.utils.errors import ConfigError, SearchAPIError, ValidationError
from content_factory.utils.logger import get_intel_logger

logger = get_intel_logger()

# 选题市场分析使用的精简停用词
MARKET_STOP_WORDS = frozenset([
    '的', '了', '在', '是', '我', '有', '和', '就', '不', '人', '都', '一', '个', '上', '也', '很',
    '到', '说', '要', '去', '你', '会', '着', '没有', '看', '好', '自己', '这',
])

DAY_MS = 24 * 60 * 60 * 1000


def extract_market_keywords(title: str) -> list[str]:
    """按出现顺序取前 5 个关键词（不按长度排序）"""
    return split_title_words(title, MARKET_STOP_WORDS)[:5]


def calculate_market_assessment(article_count: int, avg_reads: int, is_active: bool) -> dict:
    """
    市场评估

    Args:
        article_count: 近半年相关文章数
        avg_reads: 平均阅读
        is_active: 近一周是否有新文章

    Returns:
        dict: competition / opportunity / suggestion
    """
    competition = "medium"
    if article_count < 10:
        competition = "low"
    elif article_count > 30:
        competition = "high"

    opportunity = "average"
    if avg_reads > 20000 and is_active:
        opportunity = "good"
    elif avg_reads < 5000 or not is_active:
        opportunity = "poor"

    if opportunity == "good":
        suggestion = f"该选题市场表现优秀，平均阅读量{avg_reads}，近期活跃度高，建议优先创作。"
    elif opportunity == "average":
        if competition == "high":
            suggestion = f"该选题竞争激烈({article_count}篇文章)，但有一定市场空间，建议差异化创作。"
        else:
            suggestion = "该选题市场表现一般，可以考虑创作，建议优化内容质量。"
    else:
        suggestion = "该选题市场表现较差，建议谨慎考虑或等待更好的时机。"

    return {"competition": competition, "opportunity": opportunity, "suggestion": suggestion}


def build_market_analysis(keywords: list[str], articles: list[WechatArticle], now: int | None = None) -> dict:
    """
    由搜索到的文章计算市场分析结果

    Args:
        keywords: 搜索关键词
        articles: 去重后的相关文章
        now: 当前毫秒时间戳（测试注入）

    Returns:
        dict: keywords / sixMonthsData / recentActivity / marketAssessment / hotArticles
    """
    now = now or now_ms()
    total_reads = sum(a.reads for a in articles)
    avg_reads = round(total_reads / len(articles)) if articles else 0
    max_reads = max((a.reads for a in articles), default=0)

    month_ago = now - 30 * DAY_MS
    week_ago = now - 7 * DAY_MS
    last_month = sum(1 for a in articles if a.publish_time * 1000 >= month_ago)
    this_month = sum(1 for a in articles if month_ago <= a.publish_time * 1000 <= now)
    last_week = sum(1 for a in articles if a.publish_time * 1000 >= week_ago)
    is_active = last_week > 0

    hot = sorted(articles, key=lambda a: a.reads, reverse=True)[:5]

    return {
        "keywords": keywords,
        "sixMonthsData": {
            "articleCount": len(articles),
            "totalReads": total_reads,
            "avgReads": avg_reads,
            "maxReads": max_reads,
        },
        "recentActivity": {
            "lastMonth": last_month,
            "thisMonth": this_month,
            "lastWeek": last_week,
            "isActive": is_active,
        },
        "marketAssessment": calculate_market_assessment(len(articles), avg_reads, is_active),
        "hotArticles": [
            {
                "id": a.url or a.short_link,
                "title": a.title,
                "reads": a.reads,
                "publishTime": a.publish_time,
                "author": a.wx_name,
            }
            for a in hot
        ],
    }


def analysis_from_record(record: TopicAnalysisModel) -> dict:
    """将入库记录还原为分析结果格式"""
    return {
        "keywords": record.keywords or [],
        "sixMonthsData": {
            "articleCount": record.article_count,
            "totalReads": record.total_reads,
            "avgReads": record.avg_reads,
            "maxReads": record.max_reads,
        },
        "recentActivity": {
            "lastMonth": record.last_month,
            "thisMonth": record.this_month,
            "lastWeek": record.last_week,
            "isActive": (record.last_week or 0) > 0,
        },
        "marketAssessment": {
            "competition": record.competition,
            "opportunity": record.opportunity,
            "suggestion": record.suggestion,
        },
        "hotArticles": record.hot_articles or [],
    }


class TopicMarketAnalyzer:
    """选题市场热度分析器"""

    # 关键词搜索之间的间隔（秒）
    keyword_delay: float = 1.0

    def __init__(self, store: ArticleStore | None = None, search_client: WechatSearchClient | None = None):
        self.store = store or ArticleStore()
        self.search_client = search_client or WechatSearchClient()

    async def collect_related_articles(self, keywords: list[str]) -> list[WechatArticle]:
        """
        逐个关键词搜索近半年文章，按标题去重

        单个关键词失败只记录日志。
        """
        collected: dict[str, WechatArticle] = {}
        for keyword in keywords:
            try:
                result = await self.search_client.search_articles(keyword, period=180, page=1)
                for article in result.articles:
                    collected.setdefault(article.title, article)
            except (SearchAPIError, ConfigError, httpx.HTTPError, ValueError) as e:
                logger.error(f'搜索关键词 "{keyword}" 失败: {e}')

            if self.keyword_delay > 0:
                await asyncio.sleep(self.keyword_delay)

        return list(collected.values())

    async def analyze_article(self, article_id: int, refresh: bool = False) -> dict | None:
        """
        分析单篇对标文章的选题市场

        Args:
            article_id: 对标文章 ID
            refresh: 是否忽略已有分析重新计算

        Returns:
            dict | None: sourceArticle / analysis；文章不存在时返回 None
        """
        article = self.store.get_target_article(article_id)
        if article is None:
            logger.warning(f"对标文章 {article_id} 不存在，跳过分析")
            return None

        source = {"id": article.id, "title": article.title, "reads": article.reads}

        if not refresh:
            existing = self.store.get_topic_analysis(article_id)
            if existing is not None:
                return {"sourceArticle": source, "analysis": analysis_from_record(existing)}

        keywords = extract_market_keywords(article.title)
        related = await self.collect_related_articles(keywords)
        analysis = build_market_analysis(keywords, related)

        self.store.upsert_topic_analysis(article_id, analysis)
        logger.info(
            f"选题分析完成 [{article.title}]: {len(related)} 篇相关文章，"
            f"机会 {analysis['marketAssessment']['opportunity']}"
        )
        return {"sourceArticle": source, "analysis": analysis}

    async def analyze_articles(self, article_ids: list[int], refresh: bool = False) -> list[dict]:
        """
        批量分析对标文章（逐篇顺序执行）

        Raises:
            ValidationError: 未提供文章 ID
        """
        if not article_ids:
            raise ValidationError("请提供要分析的文章ID")

        results = []
        for article_id in article_ids:
            result = await self.analyze_article(article_id, refresh)
            if result is not None:
                results.append(result)
        logger.info(f"成功分析 {len(results)} 篇文章")
        return results

    def list_analyses(self, page: int = 1, limit: int = 20, source_article_id: int | None = None) -> dict:
        return self.store.list_topic_analyses(page, limit, source_article_id)

    def update_analysis(self, analysis_id: int, **fields) -> dict:
        return self.store.update_topic_analysis(analysis_id, **fields).to_dict()

    def delete_analysis(self, analysis_id: int) -> bool:
        return self.store.delete_topic_analysis(analysis_id)


__all__ = [
    "TopicMarketAnalyzer",
    "build_market_analysis",
    "calculate_market_assessment",
    "extract_market_keywords",
]
