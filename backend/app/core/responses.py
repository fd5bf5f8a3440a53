"""
统一响应结构

成功: {"success": true, "data": ..., "pagination"?: {...}, "message"?: "..."}
失败: {"success": false, "error": "...", "details"?: ...}
"""
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    data: Any = None,
    pagination: Optional[dict] = None,
    message: Optional[str] = None,
    status_code: int = 200,
) -> JSONResponse:
    """构造成功响应

    Args:
        data: 响应数据（Pydantic 模型按 camelCase 别名序列化）
        pagination: 分页信息
        message: 附加说明
        status_code: HTTP 状态码

    Returns:
        JSON 响应
    """
    content: dict[str, Any] = {"success": True, "data": jsonable_encoder(data, by_alias=True)}
    if pagination is not None:
        content["pagination"] = pagination
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    error: str,
    status_code: int = 400,
    details: Any = None,
) -> JSONResponse:
    """构造错误响应"""
    content: dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=content)


def build_pagination(page: int, limit: int, total: int, with_has_more: bool = False) -> dict:
    """构造分页信息"""
    pagination = {"page": page, "limit": limit, "total": total}
    if with_has_more:
        pagination["hasMore"] = page * limit < total
    return pagination
