"""
仪表盘 API 客户端测试（直接调用 FastAPI 应用）
"""
from unittest.mock import MagicMock

import pytest
import requests
from conftest import make_items

from web.api_client import ApiClient, ApiRequestError, unwrap


@pytest.fixture
def api(client):
    return ApiClient("http://testserver", session=client, timeout=None)


class TestApiClient:

    def test_material_lifecycle(self, api):
        created = api.create_material({"title": "素材A", "content": "正文", "source": "手动添加"})
        assert created.status == "pending"

        page = api.get_materials(search="素材")
        assert [m.id for m in page.items] == [created.id]
        assert page.pagination["total"] == 1

        updated = api.update_material(created.id, {"status": "rewritten", "read_count": 12})
        assert updated.status == "rewritten"
        assert updated.read_count == 12

        api.delete_material(created.id)
        with pytest.raises(ApiRequestError) as exc_info:
            api.get_material(created.id)
        assert exc_info.value.status == 404
        assert exc_info.value.message == "素材不存在"

    def test_batch_status(self, api):
        ids = [api.create_material({"title": f"素材{i}", "content": "正文", "source": "手动"}).id for i in range(2)]
        result = api.batch_update_materials_status(ids, "published")
        assert result["results"]["success"] == 2
        assert {m.status for m in api.get_materials().items} == {"published"}

    def test_source_delete_conflict_exposes_related_data(self, api, hotlist):
        source = api.create_collect_source({"name": "知乎热榜", "platform": "zhihu", "hash_id": "mproPpoq6O"})
        hotlist.nodes["mproPpoq6O"] = make_items(2)
        result = api.execute_collect([source.id], "full")
        assert result.collected == 2

        with pytest.raises(ApiRequestError) as exc_info:
            api.delete_collect_source(source.id)
        assert exc_info.value.has_related_data
        assert exc_info.value.details["resultsCount"] == 2

        summary = api.delete_collect_source(source.id, cascade=True)
        assert summary["deletedResults"] == 2
        assert api.get_collect_sources() == []

    def test_collect_flow(self, api, hotlist):
        source = api.create_collect_source({"name": "知乎热榜", "platform": "zhihu", "hash_id": "mproPpoq6O"})
        hotlist.nodes["mproPpoq6O"] = make_items(3)
        result = api.execute_collect([source.id], "full", name="测试批次")

        page = api.get_collect_results(batch_id=result.batch_id)
        assert len(page.items) == 3
        ids = [r.id for r in page.items]

        assert api.update_result_selection(ids[:2], True) == 2
        assert len(api.get_collect_results(only_selected=True).items) == 2
        assert api.add_results_to_materials(ids[:2]) == {"added": 2, "skipped": 0, "total": 2}
        assert api.delete_collect_results(ids[2:]) == 1

        batches = api.get_collect_batches()
        assert batches.items[0].name == "测试批次"

        history = api.get_collect_history(range="today")
        assert history["history"][0].source_id == source.id
        assert history["stats"].total_collects == 1
        assert api.get_collect_stats().total_articles == 3

    def test_validation_error_message(self, api):
        with pytest.raises(ApiRequestError) as exc_info:
            api.execute_collect([], "full")
        assert exc_info.value.status == 400
        assert "请选择至少一个采集源" in exc_info.value.message

    def test_update_source(self, api):
        source = api.create_collect_source({"name": "知乎热榜", "platform": "zhihu", "hash_id": "mproPpoq6O"})
        updated = api.update_collect_source(source.id, {"is_active": False})
        assert updated.is_active is False
        assert api.get_collect_sources(is_active=True) == []


class TestTransport:

    def test_network_error(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        api = ApiClient("http://backend", session=session)
        with pytest.raises(ApiRequestError, match="网络请求失败"):
            api.get_collect_stats()

    def test_params_are_encoded(self):
        session = MagicMock()
        session.request.return_value.status_code = 200
        session.request.return_value.json.return_value = {"success": True, "data": []}
        api = ApiClient("http://backend/", session=session, timeout=5)

        api.get_collect_sources(is_active=False)
        args, kwargs = session.request.call_args
        assert args == ("GET", "http://backend/api/collect/sources")
        assert kwargs["params"] == {"isActive": "false"}
        assert kwargs["timeout"] == 5

    def test_non_json_error(self):
        session = MagicMock()
        session.request.return_value.status_code = 502
        session.request.return_value.json.side_effect = ValueError("no json")
        api = ApiClient("http://backend", session=session)
        with pytest.raises(ApiRequestError) as exc_info:
            api.get_collect_stats()
        assert exc_info.value.status == 502


def test_unwrap_failure():
    with pytest.raises(ApiRequestError, match="出错了"):
        unwrap({"success": False, "error": "出错了"})
