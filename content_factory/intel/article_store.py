"""
Content Factory 内容工厂 - 对标研究数据存储模块

功能：
- SQLite 结构化存储对标公众号、对标文章
- 选题市场分析结果（topic_analysis）存取与分页
- 对标选题同步到创作选题表（creation_topics）
- 搜索历史记录（search_history）

表结构：
- target_accounts: 对标公众号
- target_articles: 对标文章
- topic_analysis: 选题市场分析
- creation_topics: 创作选题
- search_history: 搜索历史
- 列表类字段使用 JSON 列存储（简化设计）

使用方法：
    from content_factory.intel.article_store import ArticleStore

    store = ArticleStore()              # 默认 data/content_factory.db
    memory_store = ArticleStore("sqlite://")  # 内存数据库
    article = store.add_target_article({"title": "...", "url": "..."})
"""

import math
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text, create_engine, func
from sqlalchemy.orm import declarative_base, sessionmaker

from content_factory.config import get_settings
from content_factory.utils.errors import ValidationError
from content_factory.utils.logger import get_intel_logger

logger = get_intel_logger()

# SQLAlchemy 基类
Base = declarative_base()

# 搜索平台
PLATFORMS = ("wechat", "xiaohongshu")


# ═══════════════════════════════════════════════════════════════════════════════
# 数据模型定义
# ═══════════════════════════════════════════════════════════════════════════════


class TargetAccountModel(Base):
    """对标公众号表"""

    __tablename__ = "target_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), unique=True, nullable=False, comment="公众号名称")
    wxid = Column(String(128), comment="微信号")
    ghid = Column(String(128), comment="原始ID")
    avatar = Column(String(512), comment="头像")

    # 账号数据
    fans = Column(Integer, default=0, comment="粉丝数")
    jzl_index = Column(Float, default=0, comment="极致了指数")
    avg_top_read = Column(Integer, default=0, comment="头条平均阅读")
    avg_top_zan = Column(Integer, default=0, comment="头条平均点赞")
    week_articles = Column(Integer, default=0, comment="近一周发文数")

    # 评估结果
    suitability_score = Column(Integer, default=0, comment="对标适合度评分")
    activity_level = Column(String(16), default="medium", comment="活跃度: high/medium/low")
    tags = Column(JSON, default=list, comment="标签列表")

    collected_at = Column(DateTime, default=datetime.now, comment="采集时间")
    last_updated = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="最后更新时间")
    is_tracking = Column(Integer, default=1, comment="是否持续跟踪（1=是，0=否）")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "wxid": self.wxid,
            "ghid": self.ghid,
            "avatar": self.avatar,
            "fans": self.fans,
            "jzl_index": self.jzl_index,
            "avg_top_read": self.avg_top_read,
            "avg_top_zan": self.avg_top_zan,
            "week_articles": self.week_articles,
            "suitability_score": self.suitability_score,
            "activity_level": self.activity_level,
            "tags": self.tags or [],
            "is_tracking": bool(self.is_tracking),
            "collected_at": self.collected_at.isoformat() if self.collected_at else None,
        }


class TargetArticleModel(Base):
    """对标文章表"""

    __tablename__ = "target_articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(512), nullable=False, comment="标题")
    url = Column(String(1024), unique=True, nullable=False, comment="文章链接")
    content = Column(Text, comment="纯文本正文")
    html = Column(Text, comment="HTML 正文")

    reads = Column(Integer, default=0, comment="阅读数")
    likes = Column(Integer, default=0, comment="点赞数")
    publish_time = Column(Integer, default=0, comment="发布时间（毫秒时间戳）")
    author_name = Column(String(128), comment="公众号名称")
    avatar = Column(String(512), comment="公众号头像")

    # 收藏理由与分析
    reason = Column(Text, comment="收藏理由")
    key_points = Column(JSON, default=list, comment="核心要点")
    tags = Column(JSON, default=list, comment="标签列表")
    analysis_data = Column(JSON, comment="AI 分析数据")

    collected_at = Column(DateTime, default=datetime.now, comment="收藏时间")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "reads": self.reads,
            "likes": self.likes,
            "publish_time": self.publish_time,
            "author_name": self.author_name,
            "reason": self.reason,
            "key_points": self.key_points or [],
            "tags": self.tags or [],
            "collected_at": self.collected_at.isoformat() if self.collected_at else None,
        }


class TopicAnalysisModel(Base):
    """选题市场分析表（每篇对标文章一条）"""

    __tablename__ = "topic_analysis"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_article_id = Column(Integer, unique=True, nullable=False, comment="对标文章ID")
    keywords = Column(JSON, default=list, comment="搜索关键词")

    # 近半年数据
    article_count = Column(Integer, default=0, comment="相关文章数")
    total_reads = Column(Integer, default=0, comment="总阅读")
    avg_reads = Column(Integer, default=0, comment="平均阅读")
    max_reads = Column(Integer, default=0, comment="最高阅读")

    # 近期活跃度
    last_month = Column(Integer, default=0, comment="近 30 天文章数")
    this_month = Column(Integer, default=0, comment="本月文章数")
    last_week = Column(Integer, default=0, comment="近 7 天文章数")

    # 市场评估
    competition = Column(String(16), default="medium", comment="竞争程度: low/medium/high")
    opportunity = Column(String(16), default="average", comment="机会评估: good/average/poor")
    suggestion = Column(Text, comment="创作建议")
    hot_articles = Column(JSON, default=list, comment="热门文章 Top5")
    analysis_data = Column(JSON, comment="扩展分析数据")

    created_at = Column(DateTime, default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_article_id": self.source_article_id,
            "keywords": self.keywords or [],
            "article_count": self.article_count,
            "total_reads": self.total_reads,
            "avg_reads": self.avg_reads,
            "max_reads": self.max_reads,
            "last_month": self.last_month,
            "this_month": self.this_month,
            "last_week": self.last_week,
            "competition": self.competition,
            "opportunity": self.opportunity,
            "suggestion": self.suggestion,
            "hotArticles": self.hot_articles or [],
            "analysis_data": self.analysis_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class CreationTopicModel(Base):
    """创作选题表"""

    __tablename__ = "creation_topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(512), nullable=False, comment="选题标题")
    source_type = Column(String(32), default="benchmark", comment="来源类型")
    source_article_id = Column(Integer, comment="对标文章ID")
    analysis_id = Column(Integer, comment="选题分析ID")
    status = Column(String(16), default="pending", comment="状态: pending/used")
    created_at = Column(DateTime, default=datetime.now, comment="同步时间")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "source_type": self.source_type,
            "source_article_id": self.source_article_id,
            "analysis_id": self.analysis_id,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SearchHistoryModel(Base):
    """搜索历史表"""

    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    keyword = Column(String(256), nullable=False, comment="搜索关键词")
    platform = Column(String(16), nullable=False, comment="平台: wechat/xiaohongshu")
    timestamp = Column(Integer, nullable=False, comment="搜索时间（毫秒时间戳）")
    result_count = Column(Integer, default=0, comment="结果数量")
    time_range = Column(Integer, default=7, comment="搜索时间范围（天）")
    articles_data = Column(JSON, comment="文章数据")
    api_response = Column(JSON, comment="接口原始响应")
    created_at = Column(DateTime, default=datetime.now, comment="记录时间")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "platform": self.platform,
            "timestamp": self.timestamp,
            "result_count": self.result_count,
            "time_range": self.time_range,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# 存储类
# ═══════════════════════════════════════════════════════════════════════════════


class ArticleStore:
    """
    对标研究数据存储

    功能：
    - 对标文章 / 公众号入库（按 url / name 去重更新）
    - 选题分析 upsert 与分页查询
    - 对标选题同步
    - 搜索历史
    """

    def __init__(self, db_url: str | None = None):
        """
        初始化存储

        Args:
            db_url: SQLAlchemy 连接串，默认使用配置中的 SQLite 文件；"sqlite://" 为内存库
        """
        storage = get_settings().storage
        self.db_url = db_url or storage.db_url
        if self.db_url.startswith("sqlite:///"):
            storage.data_path.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(self.db_url, echo=False)
        Base.metadata.create_all(self.engine)
        session_factory = sessionmaker(bind=self.engine)
        self.session = session_factory()

    def close(self):
        """关闭会话"""
        self.session.close()

    # ───────────────────────────────────────────────────────────────────────────
    # 对标文章
    # ───────────────────────────────────────────────────────────────────────────

    def add_target_article(self, data: dict) -> TargetArticleModel:
        """
        添加对标文章（url 已存在时更新数据）

        Args:
            data: 文章字段，需包含 title 和 url

        Returns:
            TargetArticleModel: 入库记录
        """
        if not data.get("title") or not data.get("url"):
            raise ValidationError("文章标题和链接不能为空")

        article = self.session.query(TargetArticleModel).filter_by(url=data["url"]).first()
        if article is None:
            article = TargetArticleModel(url=data["url"])
            self.session.add(article)

        for key in ("title", "content", "html", "reads", "likes", "publish_time", "author_name",
                    "avatar", "reason", "key_points", "tags", "analysis_data"):
            if key in data:
                setattr(article, key, data[key])

        self.session.commit()
        return article

    def get_target_article(self, article_id: int) -> TargetArticleModel | None:
        return self.session.get(TargetArticleModel, article_id)

    def get_target_articles(self, limit: int = 50) -> list[TargetArticleModel]:
        """按收藏时间倒序获取对标文章"""
        return (
            self.session.query(TargetArticleModel)
            .order_by(TargetArticleModel.collected_at.desc(), TargetArticleModel.id.desc())
            .limit(limit)
            .all()
        )

    # ───────────────────────────────────────────────────────────────────────────
    # 对标公众号
    # ───────────────────────────────────────────────────────────────────────────

    def add_target_account(self, info: dict, suitability_score: int = 0, tags: list[str] | None = None) -> TargetAccountModel:
        """
        添加对标公众号（name 已存在时更新数据）

        Args:
            info: AccountInfo.to_dict() 格式的账号信息
            suitability_score: 对标适合度评分
            tags: 标签

        Returns:
            TargetAccountModel: 入库记录
        """
        name = info.get("name")
        if not name:
            raise ValidationError("公众号名称不能为空")

        account = self.session.query(TargetAccountModel).filter_by(name=name).first()
        if account is None:
            account = TargetAccountModel(name=name)
            self.session.add(account)

        account.wxid = info.get("wxid", "")
        account.ghid = info.get("ghid", "")
        account.avatar = info.get("avatar", "")
        account.fans = info.get("fans", 0)
        account.jzl_index = info.get("jzlIndex", 0)
        account.avg_top_read = info.get("avgTopRead", 0)
        account.avg_top_zan = info.get("avgTopZan", 0)
        account.week_articles = info.get("weekArticles", 0)
        account.activity_level = info.get("activityLevel", "medium")
        account.suitability_score = suitability_score
        if tags is not None:
            account.tags = tags

        self.session.commit()
        return account

    def get_target_accounts(self, tracking_only: bool = False) -> list[TargetAccountModel]:
        """按评分倒序获取对标公众号"""
        query = self.session.query(TargetAccountModel)
        if tracking_only:
            query = query.filter_by(is_tracking=1)
        return query.order_by(TargetAccountModel.suitability_score.desc()).all()

    # ───────────────────────────────────────────────────────────────────────────
    # 搜索历史
    # ───────────────────────────────────────────────────────────────────────────

    def record_search(
        self,
        keyword: str,
        platform: str,
        timestamp: int,
        result_count: int = 0,
        time_range: int = 7,
        articles_data=None,
        api_response=None,
    ) -> SearchHistoryModel:
        """
        记录一次搜索

        Args:
            keyword: 关键词
            platform: wechat / xiaohongshu
            timestamp: 搜索时间（毫秒）
            result_count: 结果数量
            time_range: 时间范围（天）
            articles_data: 文章数据（JSON）
            api_response: 接口原始响应（JSON）

        Returns:
            SearchHistoryModel: 记录
        """
        if platform not in PLATFORMS:
            raise ValidationError(f"不支持的平台: {platform}")

        record = SearchHistoryModel(
            keyword=keyword,
            platform=platform,
            timestamp=timestamp,
            result_count=result_count,
            time_range=time_range,
            articles_data=articles_data,
            api_response=api_response,
        )
        self.session.add(record)
        self.session.commit()
        return record

    def get_search_history(self, limit: int = 20, platform: str | None = None) -> list[SearchHistoryModel]:
        """按搜索时间倒序获取历史"""
        query = self.session.query(SearchHistoryModel)
        if platform:
            query = query.filter_by(platform=platform)
        return query.order_by(SearchHistoryModel.timestamp.desc()).limit(limit).all()

    # ───────────────────────────────────────────────────────────────────────────
    # 选题分析
    # ───────────────────────────────────────────────────────────────────────────

    def get_topic_analysis(self, source_article_id: int) -> TopicAnalysisModel | None:
        return self.session.query(TopicAnalysisModel).filter_by(source_article_id=source_article_id).first()

    def upsert_topic_analysis(self, source_article_id: int, analysis: dict) -> TopicAnalysisModel:
        """
        保存选题分析（同一篇文章只保留一条）

        Args:
            source_article_id: 对标文章 ID
            analysis: 分析结果（keywords / sixMonthsData / recentActivity / marketAssessment / hotArticles）

        Returns:
            TopicAnalysisModel: 记录
        """
        record = self.get_topic_analysis(source_article_id)
        if record is None:
            record = TopicAnalysisModel(source_article_id=source_article_id)
            self.session.add(record)

        six_months = analysis.get("sixMonthsData", {})
        recent = analysis.get("recentActivity", {})
        market = analysis.get("marketAssessment", {})

        record.keywords = analysis.get("keywords", [])
        record.article_count = six_months.get("articleCount", 0)
        record.total_reads = six_months.get("totalReads", 0)
        record.avg_reads = six_months.get("avgReads", 0)
        record.max_reads = six_months.get("maxReads", 0)
        record.last_month = recent.get("lastMonth", 0)
        record.this_month = recent.get("thisMonth", 0)
        record.last_week = recent.get("lastWeek", 0)
        record.competition = market.get("competition", "medium")
        record.opportunity = market.get("opportunity", "average")
        record.suggestion = market.get("suggestion", "")
        record.hot_articles = analysis.get("hotArticles", [])
        record.updated_at = datetime.now()

        self.session.commit()
        return record

    def list_topic_analyses(self, page: int = 1, limit: int = 20, source_article_id: int | None = None) -> dict:
        """
        分页获取分析历史（创建时间倒序）

        Returns:
            dict: data / pagination{page, limit, total, pages}
        """
        query = self.session.query(TopicAnalysisModel)
        if source_article_id is not None:
            query = query.filter_by(source_article_id=source_article_id)

        total = query.with_entities(func.count(TopicAnalysisModel.id)).scalar() or 0
        rows = (
            query.order_by(TopicAnalysisModel.created_at.desc(), TopicAnalysisModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "data": [row.to_dict() for row in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def update_topic_analysis(self, analysis_id: int, **fields) -> TopicAnalysisModel:
        """
        更新分析结果（仅 keywords / competition / opportunity / suggestion）

        Raises:
            ValidationError: 没有可更新字段或记录不存在
        """
        allowed = {k: v for k, v in fields.items() if k in ("keywords", "competition", "opportunity", "suggestion")}
        if not allowed:
            raise ValidationError("没有要更新的字段")

        record = self.session.get(TopicAnalysisModel, analysis_id)
        if record is None:
            raise ValidationError("分析记录不存在")

        for key, value in allowed.items():
            setattr(record, key, value)
        record.updated_at = datetime.now()
        self.session.commit()
        return record

    def delete_topic_analysis(self, analysis_id: int) -> bool:
        """删除分析记录，返回是否存在并已删除"""
        record = self.session.get(TopicAnalysisModel, analysis_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True

    # ───────────────────────────────────────────────────────────────────────────
    # 创作选题
    # ───────────────────────────────────────────────────────────────────────────

    def sync_benchmark_topics(self, article_ids: list[int], analysis_ids: list[int] | None = None) -> dict:
        """
        将对标文章同步为创作选题

        已同步过的文章重置为 pending 并刷新时间；不存在的文章跳过。

        Args:
            article_ids: 对标文章 ID 列表
            analysis_ids: 对应的选题分析 ID（按位置对应，可选）

        Returns:
            dict: message / data[{id, title, action}]
        """
        if not article_ids:
            raise ValidationError("请提供要同步的文章ID")

        synced = []
        for i, article_id in enumerate(article_ids):
            article = self.get_target_article(article_id)
            if article is None:
                logger.warning(f"文章 {article_id} 不存在，跳过同步")
                continue

            analysis_id = analysis_ids[i] if analysis_ids and i < len(analysis_ids) else None
            topic = self.session.query(CreationTopicModel).filter_by(source_article_id=article_id).first()
            if topic is not None:
                topic.status = "pending"
                topic.created_at = datetime.now()
                action = "updated"
            else:
                topic = CreationTopicModel(
                    title=article.title,
                    source_type="benchmark",
                    source_article_id=article_id,
                    analysis_id=analysis_id,
                    status="pending",
                )
                self.session.add(topic)
                action = "created"

            self.session.commit()
            synced.append({"id": topic.id, "title": article.title, "action": action})

        return {
            "message": f"成功同步 {len(synced)} 个选题到内容创作",
            "data": synced,
        }

    def get_creation_topics(self, status: str | None = None) -> list[CreationTopicModel]:
        """按同步时间倒序获取创作选题"""
        query = self.session.query(CreationTopicModel)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(CreationTopicModel.created_at.desc(), CreationTopicModel.id.desc()).all()


__all__ = [
    "ArticleStore",
    "TargetAccountModel",
    "TargetArticleModel",
    "TopicAnalysisModel",
    "CreationTopicModel",
    "SearchHistoryModel",
]
