"""
公共的 Pydantic 类型与工具

接口字段统一使用 camelCase，数据库列使用 snake_case。
"""
import re
from typing import Any, Annotated
from urllib.parse import urlparse

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value: Any) -> bool:
    """检查是否为合法的 UUID 字符串"""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def validate_url_or_empty(value: Any) -> Any:
    """空字符串或带协议和主机的链接"""
    if value is None or value == "":
        return value
    parsed = urlparse(str(value))
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("链接格式不正确")
    return value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def _none_to_dict(value: Any) -> Any:
    return {} if value is None else value


# 可空文本列对外输出为空字符串
EmptyStr = Annotated[str, BeforeValidator(_none_to_empty)]
TagList = Annotated[list[str], BeforeValidator(_none_to_list)]
JsonObject = Annotated[dict[str, Any], BeforeValidator(_none_to_dict)]


class CamelModel(BaseModel):
    """camelCase 别名、可从 ORM 对象构造的基础模型"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def blank_to_none(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """写入数据库前将指定字段的空字符串转换为 None"""
    return {k: (None if k in fields and v == "" else v) for k, v in data.items()}
