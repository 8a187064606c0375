"""
分析结果 → 创作选题同步测试
"""

from content_factory.analysis.pipeline import LATEST_ANALYSIS_KEY
from content_factory.factory import topic_sync
from content_factory.factory.topic_sync import DAY_MS, LAST_SYNC_KEY, TOPIC_HISTORY_KEY, TopicSync

NOW = 1_760_000_000_000


def _analysis(analysis_time, *titles):
    return {
        "analysisTime": analysis_time,
        "insights": [{"title": t, "description": f"{t} 描述", "confidence": 80} for t in titles],
    }


class TestTopicSync:
    """选题同步"""

    def test_no_analysis(self, local_store):
        sync = TopicSync(local_store)
        assert sync.sync_topics_from_analysis() == []
        assert sync.has_new_analysis_data() is False

    def test_sync_converts_insights(self, local_store):
        local_store.set(LATEST_ANALYSIS_KEY, {
            "analysisTime": NOW,
            "insights": ["未找到相关文章", {"title": "A", "description": "a", "confidence": 90}],
        })
        topics = TopicSync(local_store).sync_topics_from_analysis()

        assert len(topics) == 1
        assert topics[0]["title"] == "A"
        assert topics[0]["confidence"] == 90
        assert topics[0]["id"].startswith("topic-")
        assert topics[0]["id"].endswith("-1")
        assert topics[0]["createdAt"] == NOW
        assert topics[0]["sourceAnalysis"] == f"analysis-{NOW}"

    def test_merge_dedupes_and_sorts(self, local_store):
        local_store.set(TOPIC_HISTORY_KEY, [
            {"id": "old-a", "title": "A", "description": "A 描述", "createdAt": NOW - 2 * DAY_MS},
            {"id": "old-b", "title": "B", "description": "B 描述", "createdAt": NOW - DAY_MS},
        ])
        local_store.set(LATEST_ANALYSIS_KEY, _analysis(NOW, "A", "C"))

        merged = TopicSync(local_store).merge_topics_with_history()

        assert [t["title"] for t in merged] == ["A", "C", "B"]
        assert merged[0]["id"] != "old-a"
        assert local_store.get(TOPIC_HISTORY_KEY) == merged

    def test_refresh_records_sync_time(self, local_store, monkeypatch):
        monkeypatch.setattr(topic_sync, "now_ms", lambda: NOW + 1000)
        local_store.set(LATEST_ANALYSIS_KEY, _analysis(NOW, "A"))
        sync = TopicSync(local_store)

        assert sync.has_new_analysis_data() is True
        sync.refresh_topics()

        assert sync.get_last_sync_time() == NOW + 1000
        assert local_store.get(LAST_SYNC_KEY) == NOW + 1000
        assert sync.has_new_analysis_data() is False

        local_store.set(LATEST_ANALYSIS_KEY, _analysis(NOW + 5000, "B"))
        assert sync.has_new_analysis_data() is True

    def test_cleanup_expired(self, local_store, monkeypatch):
        monkeypatch.setattr(topic_sync, "now_ms", lambda: NOW)
        local_store.set(TOPIC_HISTORY_KEY, [
            {"title": "new", "createdAt": NOW - DAY_MS},
            {"title": "old", "createdAt": NOW - 8 * DAY_MS},
            {"title": "edge", "createdAt": NOW - 7 * DAY_MS},
        ])
        sync = TopicSync(local_store)

        assert sync.cleanup_expired_topics() == 2
        assert [t["title"] for t in sync.get_topic_history()] == ["new"]
        assert sync.cleanup_expired_topics() == 0

    def test_history_sorted_desc(self, local_store):
        local_store.set(TOPIC_HISTORY_KEY, [{"title": "a", "createdAt": 1}, {"title": "b", "createdAt": 2}])
        assert [t["title"] for t in TopicSync(local_store).get_topic_history()] == ["b", "a"]
