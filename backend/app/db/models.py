"""
数据库模型定义
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, Index, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """以 UTC 存储的时间字段，读取时返回带时区的 datetime"""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Article(Base):
    """素材（文章）表"""
    __tablename__ = "articles"

    __table_args__ = (
        Index('idx_article_status_collect_time', 'status', 'collect_time'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    source = Column(String(200), nullable=False, index=True)
    source_url = Column(String(1000), nullable=True)
    author = Column(String(200), nullable=True)
    publish_time = Column(UTCDateTime, nullable=True)
    collect_time = Column(UTCDateTime, default=utcnow, nullable=False, index=True)
    tags = Column(JSON, nullable=True)  # ["tag1", "tag2"]
    category = Column(String(100), nullable=True, index=True)
    read_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending/rewritten/published

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Article(id={self.id}, title='{self.title[:50]}', status='{self.status}')>"


class CollectSource(Base):
    """采集源表（对应今日热榜的榜单节点）"""
    __tablename__ = "collect_sources"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False)
    platform = Column(String(100), nullable=False, index=True)
    api_endpoint = Column(String(500), nullable=True)
    hash_id = Column(String(20), unique=True, nullable=True, index=True)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    user_created = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    config = Column(JSON, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)

    def __repr__(self):
        return f"<CollectSource(id={self.id}, name='{self.name}', hash_id='{self.hash_id}')>"


class CollectBatch(Base):
    """采集批次表（一次采集执行）"""
    __tablename__ = "collect_batches"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    collect_type = Column(String(20), nullable=False)  # keyword/full
    keyword = Column(String(200), nullable=True)
    source_ids = Column(JSON, nullable=True)  # ["source-uuid", ...]
    total_count = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    error_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending/running/completed/failed
    started_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow, index=True)

    def __repr__(self):
        return f"<CollectBatch(id={self.id}, status='{self.status}')>"


class CollectResult(Base):
    """采集结果表（候选素材）"""
    __tablename__ = "collect_results"

    __table_args__ = (
        Index('idx_collect_result_batch_time', 'collect_batch_id', 'collect_time'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=True)
    source = Column(String(200), nullable=False)
    source_url = Column(String(1000), nullable=True)
    author = Column(String(200), nullable=True)
    publish_time = Column(UTCDateTime, nullable=True)
    collect_time = Column(UTCDateTime, default=utcnow, nullable=False, index=True)
    tags = Column(JSON, nullable=True)
    category = Column(String(100), nullable=True)
    read_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    source_id = Column(String(36), ForeignKey('collect_sources.id'), nullable=True, index=True)
    collect_batch_id = Column(String(36), ForeignKey('collect_batches.id'), nullable=True, index=True)
    keyword = Column(String(200), nullable=True)
    is_selected = Column(Boolean, default=False, nullable=False)
    added_to_materials = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<CollectResult(id={self.id}, title='{self.title[:50]}')>"


class CollectHistory(Base):
    """采集历史表（每次执行、每个采集源一条）"""
    __tablename__ = "collect_history"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    source_id = Column(String(36), ForeignKey('collect_sources.id'), nullable=False, index=True)
    articles_count = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    collected_at = Column(UTCDateTime, default=utcnow, nullable=False, index=True)

    source = relationship("CollectSource", lazy="joined")

    def __repr__(self):
        return f"<CollectHistory(source_id={self.source_id}, articles={self.articles_count})>"
