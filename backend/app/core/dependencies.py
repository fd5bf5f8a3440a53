"""
依赖注入
"""
from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from backend.app.core.paths import setup_python_path

# 确保项目根目录在 Python 路径中
setup_python_path()

from backend.app.core.settings import settings
from backend.app.db import get_db
from backend.app.services.collector import CollectService
from backend.app.services.hotlist import TophubClient


def get_database() -> Generator[Session, None, None]:
    """获取数据库会话"""
    db = get_db()
    with db.get_session() as session:
        yield session


def get_tophub_client() -> TophubClient:
    """获取热榜 API 客户端"""
    return TophubClient(
        access_key=settings.TOPHUB_ACCESS_KEY,
        base_url=settings.TOPHUB_BASE_URL,
        timeout=settings.TOPHUB_TIMEOUT,
    )


def get_collect_service(client: TophubClient = Depends(get_tophub_client)) -> CollectService:
    """获取采集服务实例"""
    return CollectService(hotlist_client=client)
