"""
Content Factory 内容工厂 - 草稿存储

功能：
- 生成的文章保存为草稿（draft / published / archived）
- 发布成功后记录发布去向（公众号、文章类型、publicationId、mediaId）
- 草稿统计

使用方法：
    from content_factory.factory.draft_store import DraftStore

    store = DraftStore()                 # 默认 data/content_factory.db
    draft = store.save_to_draft(article)
    store.mark_published(draft.id, "wx123", "news", "pub-1", "media-1")
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from content_factory.config import get_settings
from content_factory.factory.generator import GeneratedArticle
from content_factory.intel.utils import generate_id
from content_factory.utils.errors import ValidationError
from content_factory.utils.logger import get_factory_logger

logger = get_factory_logger()

Base = declarative_base()

DRAFT_STATUSES = ("draft", "published", "archived")

# 允许通过 update_draft 修改的字段
_UPDATABLE_FIELDS = ("title", "content", "images", "cover", "topic_id", "status", "published_to")


class DraftModel(Base):
    """草稿表"""

    __tablename__ = "drafts"

    id = Column(String(64), primary_key=True, comment="草稿ID")
    title = Column(String(512), nullable=False, comment="标题")
    content = Column(Text, comment="Markdown 正文")
    images = Column(JSON, default=list, comment="配图 URL 列表")
    cover = Column(JSON, comment="封面信息")
    topic_id = Column(String(128), comment="来源选题ID")
    status = Column(String(16), default="draft", comment="状态: draft/published/archived")
    published_to = Column(JSON, comment="发布去向")

    created_at = Column(DateTime, default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content or "",
            "images": self.images or [],
            "cover": self.cover,
            "topic_id": self.topic_id,
            "status": self.status,
            "published_to": self.published_to,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class DraftStore:
    """草稿存储"""

    def __init__(self, db_url: str | None = None):
        """
        Args:
            db_url: SQLAlchemy 连接串，默认使用配置中的 SQLite 文件；"sqlite://" 为内存库
        """
        storage = get_settings().storage
        self.db_url = db_url or storage.db_url
        if self.db_url.startswith("sqlite:///"):
            storage.data_path.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(self.db_url, echo=False)
        Base.metadata.create_all(self.engine)
        self.session = sessionmaker(bind=self.engine)()

    def close(self):
        self.session.close()

    def save_to_draft(self, article: GeneratedArticle | dict) -> DraftModel:
        """
        保存文章为草稿

        Args:
            article: 生成的文章（GeneratedArticle 或其 to_dict 结果）

        Returns:
            DraftModel: 新草稿
        """
        data = article.to_dict() if isinstance(article, GeneratedArticle) else article
        if not data.get("title"):
            raise ValidationError("文章标题不能为空")

        draft = DraftModel(
            id=generate_id(),
            title=data["title"],
            content=data.get("content") or "",
            images=list(data.get("images") or []),
            cover=data.get("cover"),
            topic_id=data.get("topic_id") or data.get("topicId") or "",
            status="draft",
        )
        self.session.add(draft)
        self.session.commit()
        logger.info(f"草稿已保存: {draft.title}")
        return draft

    def get_drafts(self, status: str | None = None) -> list[DraftModel]:
        """按创建时间倒序获取草稿，可按状态过滤"""
        query = self.session.query(DraftModel)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(DraftModel.created_at.desc()).all()

    def get_draft(self, draft_id: str) -> DraftModel | None:
        return self.session.get(DraftModel, draft_id)

    def update_draft(self, draft_id: str, **updates) -> bool:
        """
        更新草稿字段

        Returns:
            bool: 草稿不存在时返回 False
        """
        draft = self.get_draft(draft_id)
        if draft is None:
            return False

        status = updates.get("status")
        if status is not None and status not in DRAFT_STATUSES:
            raise ValidationError(f"无效的草稿状态: {status}")

        for key, value in updates.items():
            if key in _UPDATABLE_FIELDS:
                setattr(draft, key, value)
        draft.updated_at = datetime.now()
        self.session.commit()
        return True

    def mark_published(
        self,
        draft_id: str,
        account: str,
        article_type: str = "news",
        publication_id: str | None = None,
        media_id: str | None = None,
    ) -> bool:
        """标记草稿已发布并记录发布去向"""
        published_to = {
            "platform": "wechat",
            "accountId": account,
            "articleType": article_type,
            "publicationId": publication_id,
            "mediaId": media_id,
            "publishedAt": datetime.now().isoformat(),
        }
        updated = self.update_draft(draft_id, status="published", published_to=published_to)
        if updated:
            logger.info(f"草稿 {draft_id} 状态更新为已发布")
        return updated

    def delete_draft(self, draft_id: str) -> bool:
        draft = self.get_draft(draft_id)
        if draft is None:
            return False
        self.session.delete(draft)
        self.session.commit()
        return True

    def clear_drafts(self) -> int:
        """清空所有草稿，返回删除数量"""
        removed = self.session.query(DraftModel).delete()
        self.session.commit()
        logger.info(f"已清空 {removed} 个草稿")
        return removed

    def get_stats(self) -> dict:
        drafts = self.get_drafts()
        return {
            "totalDrafts": len(drafts),
            "publishedDrafts": sum(1 for d in drafts if d.status == "published"),
            "draftDrafts": sum(1 for d in drafts if d.status == "draft"),
            "archivedDrafts": sum(1 for d in drafts if d.status == "archived"),
        }


__all__ = ["DRAFT_STATUSES", "DraftModel", "DraftStore"]
