"""
采集源 API 测试
"""
import uuid

from conftest import make_items

from backend.app.db.models import CollectBatch, CollectHistory, CollectResult


def _create(client, **overrides):
    payload = {"name": "36氪热榜", "platform": "36kr", "hashId": "Q1Vd5Ko85R", "category": "科技"}
    payload.update(overrides)
    return client.post("/api/collect/sources", json=payload)


class TestCreateSource:
    """创建采集源"""

    def test_create_marks_user_created(self, client):
        response = _create(client)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["userCreated"] is True
        assert data["isActive"] is True
        assert data["hashId"] == "Q1Vd5Ko85R"

    def test_invalid_hash_id(self, client):
        response = _create(client, hashId="short")
        assert response.status_code == 400
        assert "hashId格式不正确" in response.json()["error"]

    def test_duplicate_hash_id(self, client):
        _create(client)
        response = _create(client, name="另一个名字")
        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_duplicate_name(self, client):
        _create(client)
        response = _create(client, hashId="AbCdEfGh12")
        assert response.status_code == 409


class TestListSources:
    """采集源列表"""

    def test_filter_by_platform_and_active(self, client, add_source):
        add_source()
        add_source(name="微博热搜榜", platform="weibo", hash_id="KqndgxeLl9", is_active=False)

        body = client.get("/api/collect/sources").json()
        assert body["pagination"]["total"] == 2

        body = client.get("/api/collect/sources", params={"platform": "weibo"}).json()
        assert [s["name"] for s in body["data"]] == ["微博热搜榜"]

        body = client.get("/api/collect/sources", params={"isActive": "true"}).json()
        assert [s["name"] for s in body["data"]] == ["知乎热榜"]


class TestUpdateSource:
    """更新采集源"""

    def test_missing_id(self, client):
        response = client.put("/api/collect/sources", json={"isActive": False})
        assert response.status_code == 400
        assert response.json()["error"] == "缺少采集源ID"

    def test_invalid_id(self, client):
        response = client.put("/api/collect/sources", params={"id": "abc"}, json={"isActive": False})
        assert response.status_code == 400
        assert response.json()["error"] == "无效的采集源ID格式"

    def test_no_fields(self, client, add_source):
        source_id = add_source()
        response = client.put("/api/collect/sources", params={"id": source_id}, json={})
        assert response.status_code == 400
        assert response.json()["error"] == "没有提供要更新的字段"

    def test_not_found(self, client):
        response = client.put("/api/collect/sources", params={"id": str(uuid.uuid4())}, json={"isActive": False})
        assert response.status_code == 404

    def test_toggle_active(self, client, add_source):
        source_id = add_source()
        response = client.put("/api/collect/sources", params={"id": source_id}, json={"isActive": False})
        assert response.status_code == 200
        assert response.json()["data"]["isActive"] is False

    def test_rename_conflict(self, client, add_source):
        source_id = add_source()
        add_source(name="微博热搜榜", platform="weibo", hash_id="KqndgxeLl9")
        response = client.put("/api/collect/sources", params={"id": source_id}, json={"name": "微博热搜榜"})
        assert response.status_code == 409


class TestDeleteSource:
    """删除采集源"""

    def test_delete_unused_source(self, client, add_source):
        source_id = add_source()
        response = client.delete("/api/collect/sources", params={"id": source_id})
        assert response.status_code == 200
        assert response.json()["data"]["deletedResults"] == 0
        assert client.get("/api/collect/sources").json()["data"] == []

    def test_delete_with_results_requires_cascade(self, client, add_source, hotlist, db_manager):
        source_id = add_source()
        hotlist.nodes["mproPpoq6O"] = make_items(1)
        client.post("/api/collect/execute", json={"sourceIds": [source_id], "collectType": "full"})

        response = client.delete("/api/collect/sources", params={"id": source_id})
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "采集源有关联数据，无法直接删除"
        assert body["details"]["code"] == "HAS_RELATED_DATA"
        assert body["details"]["resultsCount"] == 1
        assert body["details"]["batchesCount"] == 1

        # 未级联时不做任何修改
        with db_manager.get_session() as session:
            assert session.query(CollectResult).count() == 1

    def test_cascade_delete(self, client, add_source, hotlist, db_manager):
        source_id = add_source()
        other_id = add_source(name="微博热搜榜", platform="weibo", hash_id="KqndgxeLl9")
        hotlist.nodes["mproPpoq6O"] = make_items(2)
        hotlist.nodes["KqndgxeLl9"] = make_items(1, prefix="微博")
        client.post("/api/collect/execute", json={"sourceIds": [source_id, other_id], "collectType": "full"})

        response = client.delete("/api/collect/sources", params={"id": source_id, "cascade": "true"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["deletedResults"] == 2
        assert data["updatedBatches"] == 1

        with db_manager.get_session() as session:
            assert session.query(CollectResult).count() == 1
            assert session.query(CollectHistory).filter(CollectHistory.source_id == source_id).count() == 0
            batch = session.query(CollectBatch).one()
            assert batch.source_ids == [other_id]

    def test_delete_not_found(self, client):
        response = client.delete("/api/collect/sources", params={"id": str(uuid.uuid4())})
        assert response.status_code == 404
