"""
数据库初始化和管理
"""
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.db.models import Base, CollectSource
from backend.app.db.repositories import CollectSourceRepository

logger = logging.getLogger(__name__)


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


class DatabaseManager:
    """数据库管理器"""

    def __init__(self, database_url: Optional[str] = None):
        if database_url is None:
            from backend.app.core.settings import settings
            database_url = settings.DATABASE_URL
        if not database_url:
            raise ValueError("DATABASE_URL 未配置")

        self.database_url = database_url

        # 确保 SQLite 数据目录存在
        if database_url.startswith("sqlite:///") and not _is_memory_sqlite(database_url):
            db_path = database_url.replace("sqlite:///", "")
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        engine_kwargs = {"echo": False}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(database_url):
                # 内存数据库需要所有会话共享同一连接
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(database_url, **engine_kwargs)

        # 创建会话工厂
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        self.init_db()

    def init_db(self):
        """初始化数据库表"""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("✅ 数据库表初始化成功")
        except Exception as e:
            logger.error(f"❌ 数据库初始化失败: {e}")
            raise

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """获取数据库会话（上下文管理器）"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def drop_all(self):
        """删除所有表（谨慎使用）"""
        Base.metadata.drop_all(bind=self.engine)
        logger.warning("⚠️  所有数据库表已删除")


def load_default_sources(sources_file: Optional[Path] = None) -> list[dict]:
    """读取预置采集源定义

    Args:
        sources_file: JSON 文件路径（默认 backend/app/sources.json）

    Returns:
        采集源定义列表
    """
    if sources_file is None:
        from backend.app.core.paths import DEFAULT_SOURCES_FILE
        sources_file = DEFAULT_SOURCES_FILE

    if not sources_file.exists():
        logger.warning(f"⚠️  预置采集源文件不存在: {sources_file}")
        return []

    with open(sources_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data.get("sources", [])


def seed_default_sources(session: Session, sources: Optional[list[dict]] = None) -> int:
    """采集源表为空时写入预置采集源

    Args:
        session: 数据库会话
        sources: 采集源定义（默认读取 sources.json）

    Returns:
        写入的采集源数量
    """
    if CollectSourceRepository.count(session) > 0:
        return 0

    definitions = sources if sources is not None else load_default_sources()
    for item in definitions:
        session.add(CollectSource(
            name=item["name"],
            platform=item["platform"],
            hash_id=item.get("hashId"),
            api_endpoint=item.get("apiEndpoint"),
            category=item.get("category"),
            description=item.get("description"),
            user_created=False,
            is_active=item.get("isActive", True),
            config=item.get("config") or {},
        ))
    session.flush()
    if definitions:
        logger.info(f"📦 已写入 {len(definitions)} 个预置采集源")
    return len(definitions)


# 全局数据库实例
db_manager = None


def get_db() -> DatabaseManager:
    """获取数据库管理器实例"""
    global db_manager
    if db_manager is None:
        db_manager = DatabaseManager()
    return db_manager
