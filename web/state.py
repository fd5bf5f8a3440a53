"""
仪表盘应用状态

集合状态通过纯函数 reducer 更新；需要写服务端的操作先在本地乐观更新，
请求失败时重新拉取该集合（以服务端为准，不做合并）并向上抛出错误。
"""
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, TypeVar

from pydantic import BaseModel

from backend.app.schemas import (
    CollectBatch,
    CollectHistory,
    CollectResult,
    CollectSource,
    CollectStats,
    Material,
)
from web.api_client import ApiClient, ApiRequestError
from web.records import AppConfig, GeneratedImage, PublicationRecord, RewriteRecord, WeChatAccount

logger = logging.getLogger(__name__)

T = TypeVar("T")

ActionKind = Literal["add", "update", "remove", "replace"]


@dataclass(frozen=True)
class Action:
    """状态变更动作

    add: payload 为待追加的记录列表
    update: ids 指定记录，payload 为字段更新字典
    remove: ids 指定记录
    replace: payload 为新的完整列表
    """
    kind: ActionKind
    payload: Any = None
    ids: tuple = ()


def _apply_updates(item: Any, updates: Dict[str, Any]) -> Any:
    if isinstance(item, BaseModel):
        return item.model_copy(update=updates)
    return dataclasses.replace(item, **updates)


def reduce_collection(items: List[T], action: Action) -> List[T]:
    """集合 reducer（纯函数，返回新列表）"""
    if action.kind == "add":
        return list(items) + list(action.payload)
    if action.kind == "update":
        targets = set(action.ids)
        return [_apply_updates(item, action.payload) if item.id in targets else item for item in items]
    if action.kind == "remove":
        targets = set(action.ids)
        return [item for item in items if item.id not in targets]
    if action.kind == "replace":
        return list(action.payload)
    raise ValueError(f"未知的动作类型: {action.kind}")


def reduce_config(config: AppConfig, action: Action) -> AppConfig:
    """配置 reducer：只支持 update / replace"""
    if action.kind == "update":
        return dataclasses.replace(config, **action.payload)
    if action.kind == "replace":
        return action.payload
    raise ValueError(f"配置不支持的动作类型: {action.kind}")


@dataclass
class AppState:
    materials: List[Material] = field(default_factory=list)
    rewrites: List[RewriteRecord] = field(default_factory=list)
    publications: List[PublicationRecord] = field(default_factory=list)
    accounts: List[WeChatAccount] = field(default_factory=list)
    images: List[GeneratedImage] = field(default_factory=list)
    config: AppConfig = field(default_factory=AppConfig)
    collect_sources: List[CollectSource] = field(default_factory=list)
    collect_results: List[CollectResult] = field(default_factory=list)
    collect_batches: List[CollectBatch] = field(default_factory=list)
    collect_history: List[CollectHistory] = field(default_factory=list)
    collect_stats: Optional[CollectStats] = None


class AppStore:
    """应用状态容器"""

    def __init__(self, client: ApiClient, state: Optional[AppState] = None):
        self.client = client
        self.state = state or AppState()
        # 最近一次拉取使用的查询条件，回滚时按相同条件重新拉取
        self.material_query: Dict[str, Any] = {}
        self.material_pagination: Dict[str, Any] = {}
        self.results_query: Dict[str, Any] = {}

    def dispatch(self, entity: str, action: Action) -> None:
        """对指定实体应用动作"""
        current = getattr(self.state, entity)
        if entity == "config":
            updated = reduce_config(current, action)
        else:
            updated = reduce_collection(current, action)
        setattr(self.state, entity, updated)

    def _optimistic(
        self,
        entity: str,
        action: Optional[Action],
        remote: Callable[[], T],
        refetch: Callable[[], None],
    ) -> T:
        """
        两阶段更新：先本地应用，再调用服务端；失败时以服务端数据覆盖本地并抛出

        Args:
            entity: 状态字段名
            action: 本地乐观动作（None 表示无本地预更新）
            remote: 服务端调用
            refetch: 失败时的重新拉取
        """
        if action is not None:
            self.dispatch(entity, action)
        try:
            return remote()
        except ApiRequestError as e:
            logger.warning(f"⚠️  {entity} 更新失败，重新同步: {e.message}")
            try:
                refetch()
            except ApiRequestError as refetch_error:
                logger.error(f"❌ {entity} 重新同步失败: {refetch_error.message}")
            raise

    # ---- 素材 ----

    def refresh_materials(self, **query) -> List[Material]:
        if query:
            self.material_query = query
        page = self.client.get_materials(**self.material_query)
        self.material_pagination = page.pagination
        self.dispatch("materials", Action("replace", page.items))
        return page.items

    def get_material(self, material_id: str) -> Optional[Material]:
        return next((m for m in self.state.materials if m.id == material_id), None)

    def create_material(self, data: Dict[str, Any]) -> Material:
        material = self.client.create_material(data)
        self.dispatch("materials", Action("add", [material]))
        return material

    def update_material(self, material_id: str, updates: Dict[str, Any]) -> Material:
        """乐观更新素材，成功后以服务端返回的记录为准"""
        material = self._optimistic(
            "materials",
            Action("update", updates, (material_id,)),
            lambda: self.client.update_material(material_id, updates),
            self.refresh_materials,
        )
        self.dispatch("materials", Action("update", material.model_dump(), (material_id,)))
        return material

    def delete_material(self, material_id: str) -> None:
        self._optimistic(
            "materials",
            Action("remove", ids=(material_id,)),
            lambda: self.client.delete_material(material_id),
            self.refresh_materials,
        )

    def batch_delete_materials(self, ids: List[str]) -> Dict[str, Any]:
        return self._optimistic(
            "materials",
            Action("remove", ids=tuple(ids)),
            lambda: self.client.batch_delete_materials(ids),
            self.refresh_materials,
        )

    def batch_update_materials_status(self, ids: List[str], status: str) -> Dict[str, Any]:
        return self._optimistic(
            "materials",
            Action("update", {"status": status}, tuple(ids)),
            lambda: self.client.batch_update_materials_status(ids, status),
            self.refresh_materials,
        )

    # ---- 改写 / 配图 / 发布（本地记录） ----

    def add_rewrite(self, record: RewriteRecord) -> None:
        self.dispatch("rewrites", Action("add", [record]))

    def accept_rewrite(self, record: RewriteRecord) -> Material:
        """采纳改写结果：写回标题和正文，状态置为 rewritten"""
        return self.update_material(record.article_id, {
            "title": record.rewritten_title,
            "content": record.rewritten_content,
            "status": "rewritten",
        })

    def add_images(self, images: Iterable[GeneratedImage]) -> None:
        self.dispatch("images", Action("add", list(images)))

    def remove_image(self, image_id: str) -> None:
        self.dispatch("images", Action("remove", ids=(image_id,)))

    def images_for(self, article_id: str) -> List[GeneratedImage]:
        return [img for img in self.state.images if img.article_id == article_id]

    def record_publication(self, record: PublicationRecord) -> None:
        """记录发布结果，发布成功时素材状态置为 published"""
        self.dispatch("publications", Action("add", [record]))
        if record.status == "success":
            self.update_material(record.article_id, {"status": "published"})

    # ---- 账号与配置 ----

    def add_account(self, account: WeChatAccount) -> None:
        self.dispatch("accounts", Action("add", [account]))

    def update_account(self, account_id: str, updates: Dict[str, Any]) -> None:
        self.dispatch("accounts", Action("update", updates, (account_id,)))

    def remove_account(self, account_id: str) -> None:
        self.dispatch("accounts", Action("remove", ids=(account_id,)))

    def update_config(self, updates: Dict[str, Any]) -> None:
        self.dispatch("config", Action("update", updates))

    # ---- 采集源 ----

    def refresh_sources(self) -> List[CollectSource]:
        sources = self.client.get_collect_sources()
        self.dispatch("collect_sources", Action("replace", sources))
        return sources

    def create_source(self, data: Dict[str, Any]) -> CollectSource:
        source = self.client.create_collect_source(data)
        self.dispatch("collect_sources", Action("add", [source]))
        return source

    def update_source(self, source_id: str, updates: Dict[str, Any]) -> CollectSource:
        source = self._optimistic(
            "collect_sources",
            Action("update", updates, (source_id,)),
            lambda: self.client.update_collect_source(source_id, updates),
            self.refresh_sources,
        )
        self.dispatch("collect_sources", Action("update", source.model_dump(), (source_id,)))
        return source

    def delete_source(self, source_id: str, cascade: bool = False) -> Dict[str, Any]:
        """删除采集源；存在关联数据时抛出 has_related_data 错误，由界面确认后以 cascade=True 重试"""
        summary = self._optimistic(
            "collect_sources",
            Action("remove", ids=(source_id,)),
            lambda: self.client.delete_collect_source(source_id, cascade=cascade),
            self.refresh_sources,
        )
        if cascade:
            # 级联删除会移除结果并修改批次
            self.dispatch("collect_results", Action(
                "replace", [r for r in self.state.collect_results if r.source_id != source_id]
            ))
            self.refresh_batches()
        return summary

    # ---- 采集执行与结果 ----

    def execute_collect(self, **request) -> Any:
        result = self.client.execute_collect(**request)
        self.dispatch("collect_results", Action("add", result.results))
        self.refresh_batches()
        return result

    def refresh_results(self, **query) -> List[CollectResult]:
        if query:
            self.results_query = query
        page = self.client.get_collect_results(**self.results_query)
        self.dispatch("collect_results", Action("replace", page.items))
        return page.items

    def set_results_selected(self, ids: List[str], is_selected: bool) -> int:
        return self._optimistic(
            "collect_results",
            Action("update", {"is_selected": is_selected}, tuple(ids)),
            lambda: self.client.update_result_selection(ids, is_selected),
            self.refresh_results,
        )

    def delete_results(self, ids: List[str]) -> int:
        return self._optimistic(
            "collect_results",
            Action("remove", ids=tuple(ids)),
            lambda: self.client.delete_collect_results(ids),
            self.refresh_results,
        )

    def add_results_to_materials(self, ids: List[str], dedupe: bool = False) -> Dict[str, int]:
        summary = self._optimistic(
            "collect_results",
            Action("update", {"added_to_materials": True}, tuple(ids)),
            lambda: self.client.add_results_to_materials(ids, dedupe=dedupe),
            self.refresh_results,
        )
        if dedupe and summary.get("skipped"):
            # 被去重跳过的结果未标记为已添加
            self.refresh_results()
        self.refresh_materials()
        return summary

    def refresh_batches(self, **query) -> List[CollectBatch]:
        page = self.client.get_collect_batches(**query)
        self.dispatch("collect_batches", Action("replace", page.items))
        return page.items

    def refresh_history(self, **query) -> Dict[str, Any]:
        data = self.client.get_collect_history(**query)
        self.dispatch("collect_history", Action("replace", data["history"]))
        if data.get("stats") is not None:
            self.state.collect_stats = data["stats"]
        return data

    def refresh_stats(self) -> CollectStats:
        self.state.collect_stats = self.client.get_collect_stats()
        return self.state.collect_stats
