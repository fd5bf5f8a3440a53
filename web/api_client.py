"""
后端 REST API 客户端

所有响应均为 {success, data|error, pagination?, details?, message?} 结构，
成功时解包 data 并转换为对应的 Pydantic 模型，失败时抛出 ApiRequestError。
"""
import logging
from typing import Any, Dict, List, NamedTuple, Optional

import requests
from pydantic.alias_generators import to_camel

from backend.app.schemas import (
    CollectBatch,
    CollectHistory,
    CollectOperationResult,
    CollectResult,
    CollectSource,
    CollectStats,
    Material,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
DEFAULT_BASE_URL = "http://localhost:8000"
HAS_RELATED_DATA = "HAS_RELATED_DATA"


class ApiRequestError(Exception):
    """API 请求失败"""

    def __init__(self, message: str, status: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    @property
    def has_related_data(self) -> bool:
        """是否为"采集源有关联数据"冲突（需要用户确认级联删除）"""
        return (
            self.status == 409
            and isinstance(self.details, dict)
            and self.details.get("code") == HAS_RELATED_DATA
        )


class Page(NamedTuple):
    items: list
    pagination: Dict[str, Any]


def unwrap(envelope: Dict[str, Any]) -> Any:
    """取出成功响应中的 data，失败响应抛出 ApiRequestError"""
    if not envelope.get("success"):
        raise ApiRequestError(envelope.get("error") or "请求失败", details=envelope.get("details"))
    return envelope.get("data")


def _camel_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {to_camel(k): v for k, v in data.items()}


def _encode_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    encoded = {}
    for key, value in (params or {}).items():
        if value is None or value == "":
            continue
        encoded[key] = ("true" if value else "false") if isinstance(value, bool) else value
    return encoded


class ApiClient:
    """后端 API 客户端"""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, session: Any = None, timeout: Optional[float] = 30):
        """
        Args:
            base_url: 后端地址
            session: requests.Session 兼容对象（测试时可传入 FastAPI TestClient）
            timeout: 请求超时（秒），为 None 时不传递
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Dict[str, Any]:
        """
        发送请求并返回响应信封

        Raises:
            ApiRequestError: 网络错误或非 2xx 响应
        """
        url = f"{self.base_url}{API_PREFIX}{endpoint}"
        kwargs: Dict[str, Any] = {"params": _encode_params(params)}
        if json is not None:
            kwargs["json"] = json
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"❌ {method} {endpoint} 网络请求失败: {e}")
            raise ApiRequestError(f"网络请求失败: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            if isinstance(payload, dict):
                message = payload.get("error") or f"请求失败: HTTP {response.status_code}"
                details = payload.get("details", payload)
            else:
                message = f"请求失败: HTTP {response.status_code}"
                details = None
            logger.warning(f"⚠️  {method} {endpoint} -> {response.status_code}: {message}")
            raise ApiRequestError(message, status=response.status_code, details=details)

        if not isinstance(payload, dict):
            raise ApiRequestError("响应格式错误", status=response.status_code)
        return payload

    def _data(self, method: str, endpoint: str, **kwargs) -> Any:
        return unwrap(self.request(method, endpoint, **kwargs))

    # ---- 素材 ----

    def get_materials(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "collectTime",
        order: str = "desc",
    ) -> Page:
        envelope = self.request("GET", "/materials", params={
            "page": page, "limit": limit, "status": status, "search": search, "sortBy": sort_by, "order": order,
        })
        items = [Material.model_validate(m) for m in unwrap(envelope)]
        return Page(items, envelope.get("pagination") or {})

    def get_material(self, material_id: str) -> Material:
        return Material.model_validate(self._data("GET", f"/materials/{material_id}"))

    def create_material(self, data: Dict[str, Any]) -> Material:
        return Material.model_validate(self._data("POST", "/materials", json=_camel_keys(data)))

    def update_material(self, material_id: str, updates: Dict[str, Any]) -> Material:
        """更新素材，updates 使用 snake_case 字段名"""
        return Material.model_validate(
            self._data("PUT", f"/materials/{material_id}", json=_camel_keys(updates))
        )

    def delete_material(self, material_id: str) -> None:
        self._data("DELETE", f"/materials/{material_id}")

    def batch_delete_materials(self, ids: List[str]) -> Dict[str, Any]:
        return self._data("POST", "/materials/batch", json={"action": "delete", "ids": ids})

    def batch_update_materials_status(self, ids: List[str], status: str) -> Dict[str, Any]:
        return self._data("POST", "/materials/batch", json={
            "action": "updateStatus", "ids": ids, "data": {"status": status},
        })

    # ---- 采集源 ----

    def get_collect_sources(self, platform: Optional[str] = None, is_active: Optional[bool] = None) -> List[CollectSource]:
        data = self._data("GET", "/collect/sources", params={"platform": platform, "isActive": is_active})
        return [CollectSource.model_validate(s) for s in data]

    def create_collect_source(self, data: Dict[str, Any]) -> CollectSource:
        return CollectSource.model_validate(self._data("POST", "/collect/sources", json=_camel_keys(data)))

    def update_collect_source(self, source_id: str, updates: Dict[str, Any]) -> CollectSource:
        return CollectSource.model_validate(
            self._data("PUT", "/collect/sources", params={"id": source_id}, json=_camel_keys(updates))
        )

    def delete_collect_source(self, source_id: str, cascade: bool = False) -> Dict[str, Any]:
        """删除采集源；存在关联数据且未级联时抛出 has_related_data 的 ApiRequestError"""
        params: Dict[str, Any] = {"id": source_id}
        if cascade:
            params["cascade"] = True
        return self._data("DELETE", "/collect/sources", params=params)

    def get_hotlist_nodes(self) -> List[Dict[str, Any]]:
        return self._data("GET", "/collect/nodes")

    # ---- 采集执行与结果 ----

    def execute_collect(
        self,
        source_ids: List[str],
        collect_type: str,
        keyword: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        limit: int = 20,
    ) -> CollectOperationResult:
        body = {"sourceIds": source_ids, "collectType": collect_type, "limit": limit}
        for key, value in (("keyword", keyword), ("name", name), ("description", description)):
            if value:
                body[key] = value
        return CollectOperationResult.model_validate(self._data("POST", "/collect/execute", json=body))

    def get_collect_results(
        self,
        batch_id: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        only_selected: bool = False,
    ) -> Page:
        envelope = self.request("GET", "/collect/results", params={
            "batchId": batch_id, "page": page, "limit": limit, "onlySelected": only_selected or None,
        })
        items = [CollectResult.model_validate(r) for r in unwrap(envelope)]
        return Page(items, envelope.get("pagination") or {})

    def update_result_selection(self, ids: List[str], is_selected: bool) -> int:
        data = self._data("PUT", "/collect/results", json={"ids": ids, "isSelected": is_selected})
        return data["updatedCount"]

    def delete_collect_results(self, ids: List[str]) -> int:
        return self._data("DELETE", "/collect/results", json={"ids": ids})["deletedCount"]

    def add_results_to_materials(self, result_ids: List[str], dedupe: bool = False) -> Dict[str, int]:
        return self._data("POST", "/collect/add-to-materials", json={"resultIds": result_ids, "dedupe": dedupe})

    def get_collect_batches(self, page: int = 1, limit: int = 20, status: Optional[str] = None) -> Page:
        envelope = self.request("GET", "/collect/batches", params={"page": page, "limit": limit, "status": status})
        items = [CollectBatch.model_validate(b) for b in unwrap(envelope)]
        return Page(items, envelope.get("pagination") or {})

    def get_collect_history(self, **params) -> Dict[str, Any]:
        """
        获取采集历史

        Args:
            params: page, limit, sourceId, platform, range, startDate, endDate, includeStats

        Returns:
            {"history": [CollectHistory], "pagination", "filters", "summary", "stats"?}
        """
        data = self._data("GET", "/collect/history", params=params)
        data["history"] = [CollectHistory.model_validate(h) for h in data.get("history", [])]
        if data.get("stats"):
            data["stats"] = CollectStats.model_validate(data["stats"])
        return data

    def get_collect_stats(self) -> CollectStats:
        return CollectStats.model_validate(self._data("GET", "/collect/stats"))

    def test_hotlist(self) -> Dict[str, Any]:
        return self._data("GET", "/test-tophub")
