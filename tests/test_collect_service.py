"""
采集服务测试
"""
from datetime import datetime
from unittest.mock import patch

import pytest
from conftest import FakeHotlistClient, make_items

from backend.app.db.models import CollectBatch, CollectResult, CollectSource
from backend.app.schemas import CollectExecuteRequest
from backend.app.services.collector import CollectService, default_batch_name, parse_hot_value


class TestParseHotValue:
    """热度文本解析"""

    @pytest.mark.parametrize("text, expected", [
        ("1829 万热度", 18290000),
        ("502万", 5020000),
        ("3.5万", 35000),
        ("50000", 50000),
        ("阅读 1234", 1234),
        ("热", 0),
        ("", 0),
        (None, 0),
        (12, 0),
    ])
    def test_parse(self, text, expected):
        assert parse_hot_value(text) == expected


def test_default_batch_name():
    now = datetime(2024, 1, 2, 3, 4, 5)
    assert default_batch_name("keyword", now) == "关键词采集任务_2024-01-02 03:04:05"
    assert default_batch_name("full", now) == "一键采集任务_2024-01-02 03:04:05"


class TestCollectService:
    """批次执行与失败补偿"""

    @pytest.fixture
    def source_id(self, session):
        source = CollectSource(name="知乎热榜", platform="zhihu", hash_id="mproPpoq6O", category="综合")
        session.add(source)
        session.commit()
        return source.id

    def test_result_rows_follow_source(self, session, source_id):
        hotlist = FakeHotlistClient()
        hotlist.nodes["mproPpoq6O"] = [{"title": "", "desc": "摘要", "link": "https://example.com/x", "extra": "2万"}]
        service = CollectService(hotlist)

        result = service.execute(session, CollectExecuteRequest(source_ids=[source_id], collect_type="full"))

        row = session.query(CollectResult).one()
        assert row.title == "无标题"
        assert row.content == "摘要"
        assert row.source_url == "https://example.com/x"
        assert row.category == "综合"
        assert row.read_count == 20000
        assert row.keyword is None
        assert result.results[0].id == row.id

    def test_missing_hash_id_is_reported(self, session):
        source = CollectSource(name="无节点", platform="test", hash_id=None)
        session.add(source)
        session.commit()

        result = CollectService(FakeHotlistClient()).execute(
            session, CollectExecuteRequest(source_ids=[source.id], collect_type="full")
        )
        assert result.status == "failed"
        assert result.errors == ["无节点: 未配置hashId"]

    def test_unexpected_error_marks_batch_failed(self, session, source_id):
        hotlist = FakeHotlistClient()
        hotlist.nodes["mproPpoq6O"] = make_items(2)
        service = CollectService(hotlist)

        with patch.object(CollectService, "_collect_source", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                service.execute(session, CollectExecuteRequest(source_ids=[source_id], collect_type="full"))

        batch = session.query(CollectBatch).one()
        assert batch.status == "failed"
        assert batch.completed_at is not None

    def test_batch_is_running_before_sources_are_collected(self, session, source_id):
        hotlist = FakeHotlistClient()
        seen = []

        def fake_detail(hashid):
            seen.append(session.query(CollectBatch).one().status)
            return {"items": make_items(1)}

        hotlist.get_node_detail = fake_detail
        result = CollectService(hotlist).execute(
            session, CollectExecuteRequest(source_ids=[source_id], collect_type="full")
        )
        assert seen == ["running"]
        assert result.status == "completed"
