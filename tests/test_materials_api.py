"""
素材 API 测试
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from backend.app.db.models import Article


@pytest.fixture
def seed_materials(db_manager):
    """写入三条素材，采集时间依次递增"""
    base = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    rows = [
        {"title": "AI 大模型发布", "content": "正文一", "source": "知乎热榜", "author": "张三",
         "read_count": 100, "like_count": 5, "status": "pending"},
        {"title": "新能源汽车销量", "content": "关于 ai 的讨论", "source": "微博热搜榜", "author": "李四",
         "read_count": 300, "like_count": 1, "status": "rewritten"},
        {"title": "体育新闻", "content": "正文三", "source": "百度实时热点", "author": "王五",
         "read_count": 200, "like_count": 9, "status": "published"},
    ]
    ids = []
    with db_manager.get_session() as session:
        for offset, data in enumerate(rows):
            article = Article(**data, collect_time=base + timedelta(hours=offset))
            session.add(article)
            session.flush()
            ids.append(article.id)
    return ids


class TestListMaterials:
    """素材列表"""

    def test_default_sort_by_collect_time_desc(self, client, seed_materials):
        response = client.get("/api/materials")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [m["title"] for m in body["data"]] == ["体育新闻", "新能源汽车销量", "AI 大模型发布"]
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 3}

    def test_response_uses_camel_case(self, client, seed_materials):
        item = client.get("/api/materials").json()["data"][0]
        assert "readCount" in item
        assert "sourceUrl" in item
        assert item["sourceUrl"] == ""
        assert item["tags"] == []

    def test_filter_by_status(self, client, seed_materials):
        body = client.get("/api/materials", params={"status": "rewritten"}).json()
        assert [m["title"] for m in body["data"]] == ["新能源汽车销量"]
        assert body["pagination"]["total"] == 1

    def test_search_is_case_insensitive_across_fields(self, client, seed_materials):
        body = client.get("/api/materials", params={"search": "AI"}).json()
        assert {m["title"] for m in body["data"]} == {"AI 大模型发布", "新能源汽车销量"}

    def test_search_by_author(self, client, seed_materials):
        body = client.get("/api/materials", params={"search": "王五"}).json()
        assert [m["title"] for m in body["data"]] == ["体育新闻"]

    def test_sort_by_read_count_asc(self, client, seed_materials):
        body = client.get("/api/materials", params={"sortBy": "readCount", "order": "asc"}).json()
        assert [m["readCount"] for m in body["data"]] == [100, 200, 300]

    def test_pagination(self, client, seed_materials):
        body = client.get("/api/materials", params={"page": 2, "limit": 2}).json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3}

    def test_invalid_limit_returns_400(self, client):
        response = client.get("/api/materials", params={"limit": 500})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("参数验证失败")

    def test_invalid_status_returns_400(self, client):
        response = client.get("/api/materials", params={"status": "archived"})
        assert response.status_code == 400


class TestMaterialDetail:
    """单条素材的查询、更新与删除"""

    def test_get_material(self, client, seed_materials):
        response = client.get(f"/api/materials/{seed_materials[0]}")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "AI 大模型发布"

    def test_invalid_id_format(self, client):
        response = client.get("/api/materials/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["error"] == "无效的素材ID格式"

    def test_missing_material(self, client):
        response = client.get(f"/api/materials/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "素材不存在"

    def test_partial_update_keeps_other_fields(self, client, seed_materials):
        material_id = seed_materials[0]
        response = client.put(f"/api/materials/{material_id}", json={"status": "rewritten"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "rewritten"
        assert data["title"] == "AI 大模型发布"
        assert data["content"] == "正文一"

    def test_update_with_empty_title_rejected(self, client, seed_materials):
        response = client.put(f"/api/materials/{seed_materials[0]}", json={"title": "   "})
        assert response.status_code == 400
        assert "标题不能为空" in response.json()["error"]

    def test_update_with_invalid_url_rejected(self, client, seed_materials):
        response = client.put(f"/api/materials/{seed_materials[0]}", json={"sourceUrl": "not a url"})
        assert response.status_code == 400

    def test_update_clears_optional_text(self, client, seed_materials):
        response = client.put(f"/api/materials/{seed_materials[0]}", json={"author": ""})
        assert response.status_code == 200
        assert response.json()["data"]["author"] == ""

    def test_update_without_body(self, client, seed_materials):
        response = client.put(f"/api/materials/{seed_materials[0]}")
        assert response.status_code == 400
        assert response.json()["error"] == "请求体不能为空"

    def test_update_missing_material(self, client):
        response = client.put(f"/api/materials/{uuid.uuid4()}", json={"status": "published"})
        assert response.status_code == 404

    def test_delete_material(self, client, seed_materials):
        material_id = seed_materials[1]
        response = client.delete(f"/api/materials/{material_id}")
        assert response.status_code == 200
        assert client.get(f"/api/materials/{material_id}").status_code == 404
        assert client.get("/api/materials").json()["pagination"]["total"] == 2

    def test_create_material(self, client):
        response = client.post("/api/materials", json={
            "title": "手动素材",
            "content": "正文",
            "source": "手动添加",
            "sourceUrl": "https://example.com/a",
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["sourceUrl"] == "https://example.com/a"

    def test_created_fields_survive_fetch(self, client):
        payload = {
            "title": "完整素材",
            "content": "正文",
            "source": "手动添加",
            "sourceUrl": "https://example.com/full",
            "author": "作者甲",
            "publishTime": "2024-01-01T10:00:00+08:00",
            "tags": ["AI", "热点"],
            "category": "科技",
            "readCount": 42,
            "likeCount": 7,
            "status": "rewritten",
        }
        material_id = client.post("/api/materials", json=payload).json()["data"]["id"]

        data = client.get(f"/api/materials/{material_id}").json()["data"]
        for field in ("title", "content", "source", "sourceUrl", "author", "tags",
                      "category", "readCount", "likeCount", "status"):
            assert data[field] == payload[field], field
        published = datetime.fromisoformat(data["publishTime"].replace("Z", "+00:00"))
        assert published == datetime(2024, 1, 1, 2, 0, tzinfo=timezone.utc)


class TestBatchMaterials:
    """批量操作"""

    def test_batch_update_status_reports_missing_ids(self, client, seed_materials):
        missing = str(uuid.uuid4())
        response = client.post("/api/materials/batch", json={
            "action": "updateStatus",
            "ids": [seed_materials[0], missing],
            "data": {"status": "published"},
        })
        assert response.status_code == 200
        results = response.json()["data"]["results"]
        assert results["total"] == 2
        assert results["success"] == 1
        assert results["failed"] == 1
        assert results["details"]["failed"] == [{"id": missing, "error": "素材不存在"}]
        assert client.get(f"/api/materials/{seed_materials[0]}").json()["data"]["status"] == "published"

    def test_batch_delete(self, client, seed_materials):
        response = client.post("/api/materials/batch", json={"action": "delete", "ids": seed_materials[:2]})
        assert response.json()["data"]["results"]["success"] == 2
        assert client.get("/api/materials").json()["pagination"]["total"] == 1

    def test_empty_ids_rejected(self, client):
        response = client.post("/api/materials/batch", json={"action": "delete", "ids": []})
        assert response.status_code == 400
        assert "至少需要选择一个项目" in response.json()["error"]

    def test_update_status_requires_status(self, client, seed_materials):
        response = client.post("/api/materials/batch", json={"action": "updateStatus", "ids": seed_materials[:1]})
        assert response.status_code == 400

    def test_unknown_action_rejected(self, client, seed_materials):
        response = client.post("/api/materials/batch", json={"action": "archive", "ids": seed_materials[:1]})
        assert response.status_code == 400
