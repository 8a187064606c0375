"""
本地存储、内容缓存与生成历史测试
"""

from content_factory.factory import content_cache
from content_factory.factory.content_cache import (
    CACHE_KEY,
    MAX_HISTORY,
    ContentCache,
    ContentHistory,
    LocalStore,
)

PARAMS = {
    "topic": {"id": "topic-1", "title": "AI 写作"},
    "length": "1000-1500",
    "style": "专业",
    "image_count": 2,
    "image_style": "tech",
    "image_ratio": "",
    "unique_angle": "",
}


def _article(title="标题", content="正文"):
    return {"title": title, "content": content, "images": ["https://img/1.png"], "word_count": 321}


class TestLocalStore:
    """本地 JSON 存储"""

    def test_set_get_remove(self, tmp_path):
        store = LocalStore(tmp_path / "nested" / "store.json")
        assert store.get("missing", 1) == 1

        store.set("a", {"中文": True})
        assert LocalStore(store.path).get("a") == {"中文": True}
        assert "中文" in store.path.read_text(encoding="utf-8")

        store.remove("a")
        assert store.keys() == []

    def test_corrupted_file_is_ignored(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        store = LocalStore(path)

        assert store.get("a") is None
        store.set("a", 1)
        assert store.get("a") == 1


class TestContentCache:
    """生成结果缓存"""

    def test_cache_key_format(self):
        assert ContentCache.generate_cache_key(PARAMS) == "content_topic-1_1000-1500_专业_2_tech_4:3_"

    def test_cache_key_differs_by_angle(self):
        other = {**PARAMS, "unique_angle": "从实际案例角度分析"}
        assert ContentCache.generate_cache_key(PARAMS) != ContentCache.generate_cache_key(other)

    def test_save_and_hit(self, local_store):
        cache = ContentCache(local_store)
        cache.save_to_cache("k", _article(), PARAMS)
        assert cache.get_cached_content("k")["title"] == "标题"
        assert cache.get_cached_content("other") is None

    def test_expired_entry_removed_on_read(self, local_store, monkeypatch):
        cache = ContentCache(local_store)
        cache.save_to_cache("k", _article(), PARAMS)

        monkeypatch.setattr(content_cache, "now_ms", lambda: 10**15)
        assert cache.get_cached_content("k") is None
        assert local_store.get(CACHE_KEY) == {}

    def test_cleanup_expired(self, local_store):
        local_store.set(CACHE_KEY, {
            "old": {"content": {}, "expiresAt": 1},
            "new": {"content": {}, "expiresAt": 10**15},
        })
        cache = ContentCache(local_store)

        assert cache.cleanup_expired_cache() == 1
        assert list(local_store.get(CACHE_KEY)) == ["new"]
        assert cache.cleanup_expired_cache() == 0


class TestContentHistory:
    """生成历史"""

    def test_newest_first_and_capped(self, local_store):
        history = ContentHistory(local_store)
        for i in range(MAX_HISTORY + 5):
            history.save_to_history(_article(title=f"t{i}"), PARAMS, 100)

        items = history.get_history()
        assert len(items) == MAX_HISTORY
        assert items[0]["title"] == f"t{MAX_HISTORY + 4}"
        assert items[0]["wordCount"] == 321
        assert items[0]["cacheKey"] == ContentCache.generate_cache_key(PARAMS)

    def test_page(self, local_store):
        history = ContentHistory(local_store)
        for i in range(5):
            history.save_to_history(_article(title=f"t{i}"), PARAMS, 100)

        page = history.get_history_page(page=2, limit=2)
        assert [item["title"] for item in page["items"]] == ["t2", "t1"]
        assert page["total"] == 5
        assert page["hasMore"] is True
        assert page["pages"] == 3
        assert history.get_history_page(page=3, limit=2)["hasMore"] is False

    def test_search_by_title_content_and_topic(self, local_store):
        history = ContentHistory(local_store)
        history.save_to_history(_article(title="Python 入门"), PARAMS, 1)
        history.save_to_history(_article(title="其他", content="讲讲 python 技巧"), PARAMS, 1)
        history.save_to_history(_article(title="无关"), {**PARAMS, "topic": {"title": "旅行"}}, 1)

        assert len(history.search_history("PYTHON")) == 2
        assert [item["title"] for item in history.search_history("AI 写作")] == ["其他", "Python 入门"]
        assert [item["title"] for item in history.search_history("旅行")] == ["无关"]

    def test_delete_and_clear(self, local_store):
        history = ContentHistory(local_store)
        item = history.save_to_history(_article(), PARAMS, 1)

        assert history.delete_from_history(item["id"]) is True
        assert history.delete_from_history(item["id"]) is False

        history.save_to_history(_article(), PARAMS, 1)
        history.clear_history()
        assert history.get_history() == []

    def test_get_history_by_type(self, local_store):
        history = ContentHistory(local_store)
        history.save_to_history(_article(), PARAMS, 1)
        assert len(history.get_history_by_type("article")) == 1
        assert history.get_history_by_type("video") == []

    def test_export_markdown(self, local_store):
        history = ContentHistory(local_store)
        assert history.export_to_markdown() == "# 暂无历史记录\n\n---"

        item = history.save_to_history(_article(title="AI 写作指南"), PARAMS, 1234)
        history.save_to_history(_article(title="另一篇"), PARAMS, 1)

        markdown = history.export_to_markdown(item["id"])
        assert markdown.startswith("# 内容生成历史记录")
        assert "总计：1 条记录" in markdown
        assert "## 1. AI 写作指南" in markdown
        assert "**生成耗时**: 1234ms" in markdown
        assert "- 图片风格: tech" in markdown
        assert "![配图1](https://img/1.png)" in markdown
        assert "另一篇" not in markdown
