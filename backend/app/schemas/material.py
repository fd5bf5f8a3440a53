"""
素材相关的 Pydantic 模型
"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator

from backend.app.schemas.common import (
    CamelModel,
    EmptyStr,
    TagList,
    blank_to_none,
    is_valid_uuid,
    validate_url_or_empty,
)

MaterialStatus = Literal["pending", "rewritten", "published"]
SortField = Literal["collectTime", "readCount", "likeCount"]
SortOrder = Literal["asc", "desc"]

# 写入时空字符串存为 NULL 的字段
_NULLABLE_TEXT_FIELDS = ("source_url", "author", "category")
# 不允许写入 NULL 的字段
_REQUIRED_COLUMNS = {"title", "content", "source", "read_count", "like_count", "status"}


def _check_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError("标题不能为空")
    if len(value) > 200:
        raise ValueError("标题不能超过200个字符")
    return value


class Material(CamelModel):
    """素材响应模型"""
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
    status: MaterialStatus = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MaterialCreate(CamelModel):
    """创建素材模型"""
    title: str
    content: str = Field(min_length=1)
    source: str = Field(min_length=1)
    source_url: Optional[str] = None
    author: Optional[str] = None
    publish_time: Optional[datetime] = None
    collect_time: Optional[datetime] = None
    tags: list[str] = []
    category: Optional[str] = None
    read_count: int = Field(0, ge=0)
    like_count: int = Field(0, ge=0)
    status: MaterialStatus = "pending"

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _check_title(value)

    @field_validator("source_url")
    @classmethod
    def check_source_url(cls, value):
        return validate_url_or_empty(value)

    def to_db_dict(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        return blank_to_none(data, _NULLABLE_TEXT_FIELDS)


class MaterialUpdate(CamelModel):
    """更新素材模型（所有字段可选）"""
    title: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    source: Optional[str] = Field(None, min_length=1)
    source_url: Optional[str] = None
    author: Optional[str] = None
    publish_time: Optional[datetime] = None
    tags: Optional[list[str]] = None
    category: Optional[str] = None
    read_count: Optional[int] = Field(None, ge=0)
    like_count: Optional[int] = Field(None, ge=0)
    status: Optional[MaterialStatus] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _check_title(value)

    @field_validator("source_url")
    @classmethod
    def check_source_url(cls, value):
        return validate_url_or_empty(value)

    def to_db_dict(self) -> dict[str, Any]:
        """只包含请求中出现的字段"""
        data = self.model_dump(exclude_unset=True)
        data = {k: v for k, v in data.items() if v is not None or k not in _REQUIRED_COLUMNS}
        return blank_to_none(data, _NULLABLE_TEXT_FIELDS)


class MaterialBatchData(CamelModel):
    status: Optional[MaterialStatus] = None


class MaterialBatchRequest(CamelModel):
    """批量操作请求"""
    action: Literal["delete", "updateStatus"]
    ids: list[str]
    data: Optional[MaterialBatchData] = None

    @field_validator("ids")
    @classmethod
    def check_ids(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("至少需要选择一个项目")
        invalid = [item for item in value if not is_valid_uuid(item)]
        if invalid:
            raise ValueError(f"无效的ID格式: {', '.join(invalid)}")
        return value

    @model_validator(mode="after")
    def check_status(self):
        if self.action == "updateStatus" and (self.data is None or self.data.status is None):
            raise ValueError("批量更新状态时必须提供 data.status")
        return self
