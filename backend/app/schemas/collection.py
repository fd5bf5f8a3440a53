"""
采集执行、结果、批次与历史相关的 Pydantic 模型
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from backend.app.schemas.common import CamelModel, EmptyStr, TagList
from backend.app.schemas.source import CollectSource

CollectType = Literal["keyword", "full"]
BatchStatus = Literal["pending", "running", "completed", "failed"]


class CollectResult(CamelModel):
    """采集结果响应模型"""
    id: str
    title: str
    content: EmptyStr = ""
    source: EmptyStr = ""
    source_url: EmptyStr = ""
    author: EmptyStr = ""
    publish_time: Optional[datetime] = None
    collect_time: Optional[datetime] = None
    tags: TagList = []
    category: EmptyStr = ""
    read_count: int = 0
    like_count: int = 0
    source_id: EmptyStr = ""
    collect_batch_id: EmptyStr = ""
    keyword: EmptyStr = ""
    is_selected: bool = False
    added_to_materials: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CollectBatch(CamelModel):
    """采集批次响应模型"""
    id: str
    name: str
    description: EmptyStr = ""
    collect_type: CollectType
    keyword: EmptyStr = ""
    source_ids: TagList = []
    total_count: int = 0
    success_count: int = 0
    error_count: int = 0
    status: BatchStatus = "pending"
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CollectHistory(CamelModel):
    """采集历史响应模型"""
    id: str
    source_id: str
    articles_count: int = 0
    success_count: int = 0
    collected_at: Optional[datetime] = None
    source: Optional[CollectSource] = None


class CollectStats(CamelModel):
    """采集统计"""
    total_sources: int = 0
    active_sources: int = 0
    total_collects: int = 0
    today_collects: int = 0
    total_articles: int = 0
    success_rate: float = 0.0
    last_collect_time: Optional[datetime] = None


class CollectExecuteRequest(CamelModel):
    """执行采集请求"""
    source_ids: list[str]
    collect_type: str
    keyword: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    limit: int = Field(20, ge=1, le=100)

    @field_validator("source_ids")
    @classmethod
    def check_source_ids(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("请选择至少一个采集源")
        return value

    @field_validator("collect_type")
    @classmethod
    def check_collect_type(cls, value: str) -> str:
        if value not in ("keyword", "full"):
            raise ValueError("采集类型必须是 keyword 或 full")
        return value

    @model_validator(mode="after")
    def check_keyword(self):
        if self.collect_type == "keyword" and not (self.keyword or "").strip():
            raise ValueError("关键词采集时必须提供关键词")
        return self


class CollectOperationResult(CamelModel):
    """采集执行结果"""
    success: bool
    total: int = 0
    collected: int = 0
    duplicated: int = 0
    failed: int = 0
    batch_id: str
    status: BatchStatus
    results: list[CollectResult] = []
    errors: Optional[list[str]] = None


class ResultSelectionUpdate(CamelModel):
    """更新采集结果选择状态"""
    ids: list[str] = Field(min_length=1)
    is_selected: bool


class ResultIdsRequest(CamelModel):
    """按ID删除采集结果"""
    ids: list[str] = Field(min_length=1)


class AddToMaterialsRequest(CamelModel):
    """将采集结果添加到素材库"""
    result_ids: list[str] = Field(min_length=1)
    dedupe: bool = False
