"""
采集执行、结果、批次与历史 API 测试
"""
from datetime import date, datetime, timedelta, timezone

from conftest import make_items

from backend.app.api.v1.endpoints.collect import resolve_date_range
from backend.app.db.models import Article, CollectHistory, CollectResult, CollectSource


def _execute(client, source_ids, **overrides):
    payload = {"sourceIds": source_ids, "collectType": "full"}
    payload.update(overrides)
    return client.post("/api/collect/execute", json=payload)


class TestExecuteValidation:
    """请求参数校验"""

    def test_requires_sources(self, client):
        response = _execute(client, [])
        assert response.status_code == 400
        assert "请选择至少一个采集源" in response.json()["error"]

    def test_invalid_collect_type(self, client, add_source):
        response = _execute(client, [add_source()], collectType="daily")
        assert response.status_code == 400
        assert "采集类型必须是 keyword 或 full" in response.json()["error"]

    def test_keyword_required(self, client, add_source):
        response = _execute(client, [add_source()], collectType="keyword", keyword="  ")
        assert response.status_code == 400
        assert "关键词采集时必须提供关键词" in response.json()["error"]

    def test_limit_range(self, client, add_source):
        response = _execute(client, [add_source()], limit=101)
        assert response.status_code == 400


class TestExecuteCollect:
    """执行采集"""

    def test_full_collect_saves_results(self, client, add_source, hotlist):
        source_id = add_source()
        hotlist.nodes["mproPpoq6O"] = make_items(5)

        response = _execute(client, [source_id], limit=3)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["success"] is True
        assert data["status"] == "completed"
        assert data["total"] == 3
        assert data["collected"] == 3
        assert data["failed"] == 0
        assert data["errors"] is None
        first = data["results"][0]
        assert first["title"] == "热点0"
        assert first["readCount"] == 10000
        assert first["source"] == "知乎热榜"
        assert first["sourceId"] == source_id
        assert first["collectBatchId"] == data["batchId"]

    def test_default_batch_name(self, client, add_source, hotlist):
        hotlist.nodes["mproPpoq6O"] = make_items(1)
        batch_id = _execute(client, [add_source()]).json()["data"]["batchId"]
        batch = client.get("/api/collect/batches").json()["data"][0]
        assert batch["id"] == batch_id
        assert batch["name"].startswith("一键采集任务_")
        assert batch["status"] == "completed"
        assert batch["completedAt"] is not None

    def test_keyword_collect_uses_search(self, client, add_source, hotlist):
        source_id = add_source()
        hotlist.nodes["mproPpoq6O"] = make_items(2) + [{"title": "人工智能新进展", "extra": "50000"}]

        data = _execute(client, [source_id], collectType="keyword", keyword=" 人工智能 ").json()["data"]
        assert data["collected"] == 1
        assert data["results"][0]["keyword"] == "人工智能"
        assert data["results"][0]["readCount"] == 50000
        assert ("search", "人工智能", "mproPpoq6O") in hotlist.calls

    def test_all_sources_failed(self, client, add_source, hotlist):
        source_id = add_source()
        hotlist.errors["mproPpoq6O"] = "请求超时，请稍后重试"

        response = _execute(client, [source_id])
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["success"] is False
        assert data["status"] == "failed"
        assert data["failed"] == 1
        assert data["errors"] == ["知乎热榜: 请求超时，请稍后重试"]

    def test_partial_failure_is_completed(self, client, add_source, hotlist):
        good = add_source()
        bad = add_source(name="微博热搜榜", platform="weibo", hash_id="KqndgxeLl9")
        hotlist.nodes["mproPpoq6O"] = make_items(2)
        hotlist.errors["KqndgxeLl9"] = "API密钥无效，请检查TOPHUB_ACCESS_KEY配置"

        data = _execute(client, [good, bad]).json()["data"]
        assert data["status"] == "completed"
        assert data["collected"] == 2
        assert data["failed"] == 1
        assert len(data["errors"]) == 1
        assert data["errors"][0].startswith("微博热搜榜:")

    def test_inactive_and_unknown_sources_are_reported(self, client, add_source, hotlist):
        inactive = add_source(is_active=False)
        unknown = "00000000-0000-4000-8000-000000000000"

        data = _execute(client, [inactive, unknown]).json()["data"]
        assert data["status"] == "failed"
        assert data["errors"] == ["知乎热榜: 采集源已禁用", f"{unknown}: 采集源不存在"]
        assert hotlist.calls == []

    def test_history_recorded_per_source(self, client, add_source, hotlist, db_manager):
        source_id = add_source()
        hotlist.nodes["mproPpoq6O"] = make_items(4)
        _execute(client, [source_id])

        with db_manager.get_session() as session:
            history = session.query(CollectHistory).one()
            assert history.source_id == source_id
            assert history.articles_count == 4
            assert history.success_count == 4


class TestResults:
    """采集结果的筛选、选择与删除"""

    def _collect(self, client, add_source, hotlist, count=3):
        hotlist.nodes["mproPpoq6O"] = make_items(count)
        data = _execute(client, [add_source()]).json()["data"]
        return data["batchId"], [r["id"] for r in data["results"]]

    def test_list_by_batch(self, client, add_source, hotlist):
        batch_id, ids = self._collect(client, add_source, hotlist)
        body = client.get("/api/collect/results", params={"batchId": batch_id, "limit": 2}).json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "hasMore": True}

    def test_update_selection(self, client, add_source, hotlist):
        _, ids = self._collect(client, add_source, hotlist)
        response = client.put("/api/collect/results", json={"ids": ids[:2], "isSelected": True})
        assert response.json()["data"] == {"updatedCount": 2, "isSelected": True}

        body = client.get("/api/collect/results", params={"onlySelected": "true"}).json()
        assert {r["id"] for r in body["data"]} == set(ids[:2])

    def test_delete_results(self, client, add_source, hotlist):
        _, ids = self._collect(client, add_source, hotlist)
        response = client.request("DELETE", "/api/collect/results", json={"ids": ids[:1]})
        assert response.json()["data"]["deletedCount"] == 1
        assert client.get("/api/collect/results").json()["pagination"]["total"] == 2

    def test_empty_ids_rejected(self, client):
        response = client.put("/api/collect/results", json={"ids": [], "isSelected": True})
        assert response.status_code == 400


class TestAddToMaterials:
    """采集结果添加到素材库"""

    def test_promote_once(self, client, add_source, hotlist):
        hotlist.nodes["mproPpoq6O"] = make_items(2)
        ids = [r["id"] for r in _execute(client, [add_source()]).json()["data"]["results"]]

        data = client.post("/api/collect/add-to-materials", json={"resultIds": ids}).json()["data"]
        assert data == {"added": 2, "skipped": 0, "total": 2}

        materials = client.get("/api/materials").json()["data"]
        assert len(materials) == 2
        assert {m["status"] for m in materials} == {"pending"}
        assert {m["source"] for m in materials} == {"知乎热榜"}

        # 已添加过的结果被跳过
        again = client.post("/api/collect/add-to-materials", json={"resultIds": ids}).json()["data"]
        assert again == {"added": 0, "skipped": 2, "total": 2}
        assert client.get("/api/materials").json()["pagination"]["total"] == 2

        results = client.get("/api/collect/results").json()["data"]
        assert all(r["addedToMaterials"] for r in results)

    def test_dedupe_by_title(self, client, add_source, hotlist):
        source_id = add_source()
        hotlist.nodes["mproPpoq6O"] = make_items(1)
        first = _execute(client, [source_id]).json()["data"]["results"][0]["id"]
        second = _execute(client, [source_id]).json()["data"]["results"][0]["id"]

        client.post("/api/collect/add-to-materials", json={"resultIds": [first]})
        data = client.post(
            "/api/collect/add-to-materials", json={"resultIds": [second], "dedupe": True}
        ).json()["data"]
        assert data == {"added": 0, "skipped": 1, "total": 1}

    def test_dedupe_within_one_request(self, client, db_manager, add_source):
        source_id = add_source()
        with db_manager.get_session() as session:
            rows = [
                CollectResult(title="同一标题", source="知乎热榜", source_url="https://example.com/same",
                              source_id=source_id)
                for _ in range(2)
            ]
            session.add_all(rows)
            session.flush()
            ids = [row.id for row in rows]

        data = client.post(
            "/api/collect/add-to-materials", json={"resultIds": ids, "dedupe": True}
        ).json()["data"]
        assert data == {"added": 1, "skipped": 1, "total": 2}

        with db_manager.get_session() as session:
            assert session.query(Article).filter(Article.title == "同一标题").count() == 1


class TestHistory:
    """采集历史与统计"""

    def test_history_with_summary_and_stats(self, client, add_source, hotlist):
        source_id = add_source()
        hotlist.nodes["mproPpoq6O"] = make_items(3)
        _execute(client, [source_id])
        _execute(client, [source_id])

        body = client.get("/api/collect/history", params={"range": "today"}).json()
        data = body["data"]
        assert len(data["history"]) == 2
        assert data["history"][0]["source"]["name"] == "知乎热榜"
        assert data["pagination"]["totalRecords"] == 2
        assert data["pagination"]["hasMore"] is False
        assert data["summary"]["totalArticles"] == 6
        assert data["summary"]["averageSuccessRate"] == 100.0
        assert data["filters"]["range"] == "today"
        assert data["stats"]["totalCollects"] == 2
        assert data["stats"]["todayCollects"] == 2
        assert data["stats"]["totalSources"] == 1

    def test_filter_by_platform(self, client, add_source, hotlist):
        zhihu = add_source()
        weibo = add_source(name="微博热搜榜", platform="weibo", hash_id="KqndgxeLl9")
        hotlist.nodes["mproPpoq6O"] = make_items(1)
        hotlist.nodes["KqndgxeLl9"] = make_items(1)
        _execute(client, [zhihu, weibo])

        data = client.get("/api/collect/history", params={"platform": "weibo"}).json()["data"]
        assert [h["sourceId"] for h in data["history"]] == [weibo]

    def test_end_date_includes_whole_day(self, client, add_source, db_manager):
        source_id = add_source()
        with db_manager.get_session() as session:
            session.add(CollectHistory(
                source_id=source_id, articles_count=1, success_count=1,
                collected_at=datetime(2024, 3, 10, 23, 30, tzinfo=timezone.utc),
            ))

        data = client.get("/api/collect/history", params={
            "startDate": "2024-03-10", "endDate": "2024-03-10", "includeStats": "false",
        }).json()["data"]
        assert len(data["history"]) == 1
        assert "stats" not in data

    def test_invalid_page(self, client):
        response = client.get("/api/collect/history", params={"page": 0})
        assert response.status_code == 400
        assert response.json()["error"] == "页码必须大于0"

    def test_invalid_limit(self, client):
        response = client.get("/api/collect/history", params={"limit": 101})
        assert response.status_code == 400
        assert response.json()["error"] == "每页数量必须在1-100之间"

    def test_stats_without_history(self, client, add_source):
        add_source()
        add_source(name="微博热搜榜", platform="weibo", hash_id="KqndgxeLl9", is_active=False)
        data = client.get("/api/collect/stats").json()["data"]
        assert data["totalSources"] == 2
        assert data["activeSources"] == 1
        assert data["totalCollects"] == 0
        assert data["successRate"] == 0
        assert data["lastCollectTime"] is None


class TestResolveDateRange:
    def test_ranges(self):
        today = date(2024, 6, 15)
        assert resolve_date_range("today", today) == (today, today)
        assert resolve_date_range("week", today) == (today - timedelta(days=7), today)
        assert resolve_date_range("month", today) == (today - timedelta(days=30), today)
        assert resolve_date_range(None, today) == (None, None)


class TestTophubEndpoints:
    """热榜连通性与节点列表"""

    def test_connection_ok(self, client, hotlist):
        hotlist.nodes["WnBe01o371"] = make_items(5)
        body = client.get("/api/test-tophub").json()
        assert body["success"] is True
        assert body["data"]["connection"] is True
        assert body["data"]["wechatTest"]["status"] == "success"
        assert len(body["data"]["wechatTest"]["data"]) == 3

    def test_connection_failed(self, client, hotlist):
        hotlist.connected = False
        response = client.get("/api/test-tophub")
        assert response.status_code == 500
        assert response.json()["error"] == "热榜API连接失败"

    def test_nodes(self, client, hotlist):
        hotlist.nodes["mproPpoq6O"] = []
        body = client.get("/api/collect/nodes").json()
        assert body["data"] == [{"hashid": "mproPpoq6O", "name": "mproPpoq6O"}]


class TestServiceEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_preflight(self, client):
        response = client.options("/api/materials")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_unknown_route(self, client):
        response = client.get("/api/nothing")
        assert response.status_code == 404
        assert response.json()["success"] is False


def test_source_defaults_to_active(db_manager):
    with db_manager.get_session() as session:
        session.add(CollectSource(name="临时", platform="test", hash_id="TmpTmp0001"))
    with db_manager.get_session() as session:
        assert session.query(CollectSource).one().is_active is True
