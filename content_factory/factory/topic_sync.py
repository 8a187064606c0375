"""
Content Factory 内容工厂 - 分析结果 → 创作选题同步

最新一次关键词分析的洞察会被转换为创作选题，并与本地选题历史合并：
- 按 (title, description) 去重
- 按创建时间倒序
- 默认保留 7 天
"""

from content_factory.analysis.pipeline import LATEST_ANALYSIS_KEY
from content_factory.factory.content_cache import LocalStore
from content_factory.intel.utils import generate_id, now_ms
from content_factory.utils.logger import get_factory_logger

logger = get_factory_logger()

TOPIC_HISTORY_KEY = "topic-history"
LAST_SYNC_KEY = "last-sync-time"

DAY_MS = 24 * 60 * 60 * 1000


def _dedupe_sorted(topics: list[dict]) -> list[dict]:
    """保留首次出现的 (title, description)，再按 createdAt 倒序"""
    seen = set()
    unique = []
    for topic in topics:
        key = (topic.get("title"), topic.get("description"))
        if key in seen:
            continue
        seen.add(key)
        unique.append(topic)
    return sorted(unique, key=lambda t: t.get("createdAt", 0), reverse=True)


class TopicSync:
    """选题同步"""

    def __init__(self, store: LocalStore | None = None):
        self.store = store or LocalStore()

    def sync_topics_from_analysis(self) -> list[dict]:
        """
        将最新分析的洞察转换为选题

        Returns:
            list[dict]: 选题（洞察字段 + id / createdAt / sourceAnalysis）
        """
        analysis = self.store.get(LATEST_ANALYSIS_KEY)
        if not analysis:
            logger.info("未找到分析数据")
            return []

        analysis_time = analysis.get("analysisTime") or now_ms()
        topics = [
            {
                **insight,
                "id": f"topic-{generate_id()}-{index}",
                "createdAt": analysis_time,
                "sourceAnalysis": f"analysis-{analysis_time}",
            }
            for index, insight in enumerate(analysis.get("insights") or [])
            if isinstance(insight, dict)
        ]
        logger.info(f"同步了 {len(topics)} 个选题")
        return topics

    def get_topic_history(self) -> list[dict]:
        topics = self.store.get(TOPIC_HISTORY_KEY, [])
        return sorted(topics, key=lambda t: t.get("createdAt", 0), reverse=True)

    def save_topics(self, topics: list[dict]) -> list[dict]:
        """新选题与历史合并、去重后保存"""
        merged = _dedupe_sorted([*topics, *self.get_topic_history()])
        self.store.set(TOPIC_HISTORY_KEY, merged)
        logger.info(f"保存了 {len(merged)} 个选题到历史记录")
        return merged

    def merge_topics_with_history(self) -> list[dict]:
        return self.save_topics(self.sync_topics_from_analysis())

    def refresh_topics(self) -> list[dict]:
        """手动刷新：合并并记录同步时间"""
        topics = self.merge_topics_with_history()
        self.store.set(LAST_SYNC_KEY, now_ms())
        return topics

    def cleanup_expired_topics(self, days: int = 7) -> int:
        """
        清理过期选题

        Returns:
            int: 清理数量
        """
        topics = self.get_topic_history()
        cutoff = now_ms() - days * DAY_MS
        valid = [t for t in topics if t.get("createdAt", 0) > cutoff]

        removed = len(topics) - len(valid)
        if removed > 0:
            self.store.set(TOPIC_HISTORY_KEY, valid)
            logger.info(f"清理了 {removed} 个过期选题")
        return removed

    def get_last_sync_time(self) -> int | None:
        return self.store.get(LAST_SYNC_KEY)

    def has_new_analysis_data(self) -> bool:
        """最新分析是否晚于上次同步"""
        analysis = self.store.get(LATEST_ANALYSIS_KEY)
        if not analysis:
            return False

        last_sync = self.get_last_sync_time()
        if last_sync is None:
            return True
        return bool(analysis.get("analysisTime")) and analysis["analysisTime"] > last_sync


__all__ = ["TopicSync"]
