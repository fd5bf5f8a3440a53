"""
测试公共夹具

导入 backend 模块前先设置环境变量：使用内存 SQLite，不写入预置采集源。
"""
import os
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TOPHUB_ACCESS_KEY"] = "test-access-key"
os.environ["SEED_DEFAULT_SOURCES"] = "false"

from fastapi.testclient import TestClient

from backend.app.core.dependencies import get_database, get_tophub_client
from backend.app.db import DatabaseManager
from backend.app.db.models import CollectSource
from backend.app.main import app
from backend.app.services.hotlist import HotlistError


class FakeHotlistClient:
    """按 hashId 返回预设条目的热榜客户端"""

    def __init__(self):
        self.nodes = {}
        self.errors = {}
        self.calls = []
        self.connected = True

    def get_node_detail(self, hashid):
        self.calls.append(("detail", hashid))
        if hashid in self.errors:
            raise HotlistError(self.errors[hashid])
        return {"items": list(self.nodes.get(hashid, []))}

    def search_node_content(self, q, hashid=None, page=1):
        self.calls.append(("search", q, hashid))
        if hashid in self.errors:
            raise HotlistError(self.errors[hashid])
        items = [item for item in self.nodes.get(hashid, []) if q in item.get("title", "")]
        return {"items": items}

    def get_all_nodes(self):
        return [{"hashid": h, "name": h} for h in self.nodes]

    def get_wechat_hotlist(self):
        return self.get_node_detail("WnBe01o371")

    def test_connection(self):
        return self.connected

    def get_api_info(self):
        return {"baseURL": "https://api.tophubdata.com", "hasAccessKey": True, "accessKeyPrefix": "test-acc..."}


def make_items(count, prefix="热点"):
    return [
        {"title": f"{prefix}{i}", "url": f"https://example.com/{prefix}/{i}", "extra": f"{i + 1} 万热度"}
        for i in range(count)
    ]


@pytest.fixture
def db_manager():
    manager = DatabaseManager("sqlite://")
    yield manager
    manager.drop_all()
    manager.engine.dispose()


@pytest.fixture
def session(db_manager):
    with db_manager.get_session() as session:
        yield session


@pytest.fixture
def hotlist():
    return FakeHotlistClient()


@pytest.fixture
def client(db_manager, hotlist):
    """不触发 lifespan 的测试客户端，数据库与热榜客户端均被替换"""

    def override_database():
        with db_manager.get_session() as session:
            yield session

    app.dependency_overrides[get_database] = override_database
    app.dependency_overrides[get_tophub_client] = lambda: hotlist
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_source(db_manager):
    """直接写入采集源，返回其ID"""

    def _add(name="知乎热榜", platform="zhihu", hash_id="mproPpoq6O", is_active=True):
        with db_manager.get_session() as session:
            source = CollectSource(name=name, platform=platform, hash_id=hash_id, is_active=is_active)
            session.add(source)
            session.flush()
            return source.id

    return _add
