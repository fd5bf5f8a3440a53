"""
统一异常定义
"""
from typing import Any, Optional

from fastapi import HTTPException


class ApiError(HTTPException):
    """携带 details 的 API 错误，由全局处理器转换为统一响应结构"""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details


class BadRequestError(ApiError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(400, message, details)


class NotFoundError(ApiError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(404, message, details)


class ConflictError(ApiError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(409, message, details)


class DataAccessError(Exception):
    """数据存储操作失败（附带底层错误信息）"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class DuplicateRecordError(DataAccessError):
    """唯一约束冲突"""
