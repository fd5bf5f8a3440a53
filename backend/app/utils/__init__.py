"""
工具模块
"""
from backend.app.utils.logger import setup_logger, log_api_request, log_api_error

__all__ = ["setup_logger", "log_api_request", "log_api_error"]
