"""
Content Factory 内容工厂 - 内容缓存与历史记录

功能：
- LocalStore: 本地 JSON 键值存储（缓存、历史、选题同步共用一个文件）
- ContentCache: 生成结果缓存（7 天有效期）
- ContentHistory: 生成历史（最多 100 条，支持分页、搜索、导出 Markdown）

使用方法：
    from content_factory.factory.content_cache import ContentCache, ContentHistory, LocalStore

    store = LocalStore()
    cache = ContentCache(store)
    article = cache.get_cached_content(cache_key)
"""

import json
import math
from datetime import datetime
from pathlib import Path

from content_factory.config import get_settings
from content_factory.intel.utils import generate_id, now_ms
from content_factory.utils.logger import get_factory_logger

logger = get_factory_logger()

# 存储键
CACHE_KEY = "content-cache"
HISTORY_KEY = "content-history"

# 缓存有效期（毫秒）
CACHE_TTL_MS = 7 * 24 * 60 * 60 * 1000

# 历史记录上限
MAX_HISTORY = 100


# ═══════════════════════════════════════════════════════════════════════════════
# 本地 JSON 存储
# ═══════════════════════════════════════════════════════════════════════════════


class LocalStore:
    """
    本地 JSON 键值存储

    整个文件是一个 dict，每次写入都完整落盘（UTF-8，缩进 2）。
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else get_settings().storage.local_store_file

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"本地存储文件损坏，已忽略: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def get(self, key: str, default=None):
        return self._load().get(key, default)

    def set(self, key: str, value):
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)

    def keys(self) -> list[str]:
        return list(self._load().keys())


# ═══════════════════════════════════════════════════════════════════════════════
# 内容缓存
# ═══════════════════════════════════════════════════════════════════════════════


class ContentCache:
    """生成结果缓存"""

    def __init__(self, store: LocalStore | None = None):
        self.store = store or LocalStore()

    @staticmethod
    def generate_cache_key(params: dict) -> str:
        """
        由创作参数生成缓存键

        格式：content_{选题ID}_{长度}_{风格}_{配图数}_{图片风格}_{图片比例}_{独特角度}

        Args:
            params: CreationParams.to_dict() 格式的参数

        Returns:
            str: 缓存键
        """
        topic = params.get("topic") or {}
        parts = [
            topic.get("id", ""),
            params.get("length", ""),
            params.get("style", ""),
            params.get("image_count", ""),
            params.get("image_style") or "auto",
            params.get("image_ratio") or "4:3",
            params.get("unique_angle") or "",
        ]
        return "content_" + "_".join(str(p) for p in parts)

    def get_cached_content(self, cache_key: str) -> dict | None:
        """
        读取缓存，过期条目会被删除

        Returns:
            dict | None: 缓存的文章
        """
        cache = self.store.get(CACHE_KEY, {})
        item = cache.get(cache_key)

        if not item or item.get("expiresAt", 0) < now_ms():
            if cache_key in cache:
                del cache[cache_key]
                self.store.set(CACHE_KEY, cache)
            return None

        return item.get("content")

    def save_to_cache(self, cache_key: str, content: dict, params: dict):
        """保存到缓存（有效期 7 天）"""
        cache = self.store.get(CACHE_KEY, {})
        cache[cache_key] = {
            "content": content,
            "expiresAt": now_ms() + CACHE_TTL_MS,
            "parameters": params,
        }
        self.store.set(CACHE_KEY, cache)
        logger.info("内容已缓存，有效期7天")

    def cleanup_expired_cache(self) -> int:
        """
        清理过期缓存

        Returns:
            int: 清理数量
        """
        cache = self.store.get(CACHE_KEY, {})
        now = now_ms()
        valid = {k: v for k, v in cache.items() if v.get("expiresAt", 0) >= now}
        removed = len(cache) - len(valid)

        if removed > 0:
            self.store.set(CACHE_KEY, valid)
            logger.info(f"清理了 {removed} 个过期缓存")
        return removed


# ═══════════════════════════════════════════════════════════════════════════════
# 历史记录
# ═══════════════════════════════════════════════════════════════════════════════


def _format_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


class ContentHistory:
    """内容生成历史"""

    def __init__(self, store: LocalStore | None = None):
        self.store = store or LocalStore()

    def save_to_history(self, content: dict, params: dict, generation_time: int) -> dict:
        """
        保存生成结果到历史（最新在前，最多 100 条）

        Args:
            content: GeneratedArticle.to_dict()
            params: CreationParams.to_dict()
            generation_time: 生成耗时（毫秒）

        Returns:
            dict: 历史记录条目
        """
        item = {
            "id": generate_id(),
            "type": "article",
            "title": content.get("title", ""),
            "content": content.get("content", ""),
            "images": content.get("images", []),
            "parameters": params,
            "createdAt": now_ms(),
            "cacheKey": ContentCache.generate_cache_key(params),
            "topic": params.get("topic") or {},
            "wordCount": content.get("word_count", 0),
            "imageStyle": params.get("image_style"),
            "generationTime": generation_time,
        }

        history = self.get_history()
        history.insert(0, item)
        history = history[:MAX_HISTORY]
        self.store.set(HISTORY_KEY, history)
        logger.info(f"内容已保存到历史记录，共 {len(history)} 条")
        return item

    def get_history(self) -> list[dict]:
        return list(self.store.get(HISTORY_KEY, []))

    def get_history_page(self, page: int = 1, limit: int = 20) -> dict:
        """
        分页获取历史

        Returns:
            dict: items / total / hasMore / pages
        """
        history = self.get_history()
        start = (page - 1) * limit
        return {
            "items": history[start:start + limit],
            "total": len(history),
            "hasMore": start + limit < len(history),
            "pages": math.ceil(len(history) / limit) if limit else 0,
        }

    def get_history_by_type(self, item_type: str) -> list[dict]:
        return [item for item in self.get_history() if item.get("type") == item_type]

    def search_history(self, query: str) -> list[dict]:
        """按标题、正文、选题标题搜索（大小写不敏感）"""
        lower_query = query.lower()
        results = []
        for item in self.get_history():
            topic_title = ((item.get("parameters") or {}).get("topic") or {}).get("title", "")
            if (
                lower_query in (item.get("title") or "").lower()
                or lower_query in (item.get("content") or "").lower()
                or lower_query in topic_title.lower()
            ):
                results.append(item)
        return results

    def delete_from_history(self, history_id: str) -> bool:
        history = self.get_history()
        remaining = [item for item in history if item.get("id") != history_id]
        if len(remaining) < len(history):
            self.store.set(HISTORY_KEY, remaining)
            return True
        return False

    def clear_history(self):
        self.store.remove(HISTORY_KEY)
        logger.info("历史记录已清空")

    def export_to_markdown(self, history_id: str | None = None) -> str:
        """
        导出历史为 Markdown

        Args:
            history_id: 只导出指定条目（默认全部）

        Returns:
            str: Markdown 文本
        """
        history = self.get_history()
        if history_id:
            history = [item for item in history if item.get("id") == history_id]

        if not history:
            return "# 暂无历史记录\n\n---"

        lines = [
            "# 内容生成历史记录\n\n",
            f"导出时间：{_format_time(now_ms())}\n",
            f"总计：{len(history)} 条记录\n\n",
        ]

        for index, item in enumerate(history, 1):
            params = item.get("parameters") or {}
            image_style = item.get("imageStyle") or "智能选择"
            lines.append(f"## {index}. {item.get('title', '')}\n\n")
            lines.append(f"**生成时间**: {_format_time(item.get('createdAt', 0))}\n")
            lines.append(f"**字数**: {item.get('wordCount', 0)} 字\n")
            lines.append(f"**图片风格**: {image_style}\n")
            lines.append(f"**生成耗时**: {item.get('generationTime', 0)}ms\n")
            lines.append("**参数配置**:\n")
            lines.append(f"- 文章长度: {params.get('length', '')}\n")
            lines.append(f"- 写作风格: {params.get('style', '')}\n")
            lines.append(f"- 配图数量: {params.get('image_count', '')}\n")
            lines.append(f"- 图片风格: {params.get('image_style') or '智能选择'}\n\n")

            if item.get("content"):
                lines.append("### 文章内容\n\n")
                lines.append(f"{item['content']}\n\n")

            images = item.get("images") or []
            if images:
                lines.append("### 配图\n\n")
                for image_index, image in enumerate(images, 1):
                    lines.append(f"![配图{image_index}]({image})\n\n")

            lines.append("---\n\n")

        return "".join(lines)


__all__ = [
    "LocalStore",
    "ContentCache",
    "ContentHistory",
]
