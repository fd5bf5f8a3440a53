"""
采集源相关的 Pydantic 模型
"""
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator

from backend.app.schemas.common import CamelModel, EmptyStr, JsonObject

HASH_ID_PATTERN = re.compile(r"^[a-zA-Z0-9]{10}$")
HASH_ID_ERROR = "hashId格式不正确，应为10位字母数字组合"


def _check_hash_id(value: Optional[str]) -> Optional[str]:
    if value is not None and not HASH_ID_PATTERN.match(value):
        raise ValueError(HASH_ID_ERROR)
    return value


class CollectSourceCreate(CamelModel):
    """创建采集源模型"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    platform: str = Field(min_length=1)
    hash_id: str
    api_endpoint: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    config: dict[str, Any] = {}

    @field_validator("hash_id")
    @classmethod
    def check_hash_id(cls, value):
        return _check_hash_id(value)


class CollectSourceUpdate(CamelModel):
    """更新采集源模型"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1)
    platform: Optional[str] = Field(None, min_length=1)
    hash_id: Optional[str] = None
    api_endpoint: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    config: Optional[dict[str, Any]] = None

    @field_validator("hash_id")
    @classmethod
    def check_hash_id(cls, value):
        return _check_hash_id(value)

    def to_db_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class CollectSource(CamelModel):
    """采集源响应模型"""
    id: str
    name: str
    platform: str
    api_endpoint: EmptyStr = ""
    hash_id: EmptyStr = ""
    category: EmptyStr = ""
    description: EmptyStr = ""
    user_created: bool = False
    is_active: bool = True
    config: JsonObject = {}
    created_at: Optional[datetime] = None
