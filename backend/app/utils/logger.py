"""
统一日志管理模块
"""
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from backend.app.core.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 第三方库默认降噪
_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai")


def _get_formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _create_file_handler(log_path: Path, log_level: int) -> logging.FileHandler:
    """创建文件处理器

    Args:
        log_path: 日志文件路径
        log_level: 日志级别

    Returns:
        配置好的文件处理器
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(_get_formatter())
    return file_handler


def setup_logger(name: str = "", log_file: Optional[str] = None) -> logging.Logger:
    """配置根 logger（只配置一次）并返回指定名称的 logger

    Args:
        name: 日志记录器名称（默认为空，即根 logger）
        log_file: 日志文件路径（可选，默认读取 LOG_FILE）

    Returns:
        日志记录器
    """
    logger = logging.getLogger(name)
    root_logger = logging.getLogger()

    if root_logger.handlers:
        return logger

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_get_formatter())
    root_logger.addHandler(console_handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    target = log_file or settings.LOG_FILE
    if target:
        root_logger.addHandler(_create_file_handler(Path(target), log_level))

    return logger


def log_api_request(logger: logging.Logger, method: str, path: str, params: Optional[dict] = None) -> None:
    """记录 API 请求"""
    cleaned = {k: v for k, v in (params or {}).items() if v is not None}
    if cleaned:
        logger.info(f"📡 {method} {path} {cleaned}")
    else:
        logger.info(f"📡 {method} {path}")


def log_api_error(logger: logging.Logger, method: str, path: str, error: Any) -> None:
    """记录 API 错误"""
    logger.error(f"❌ {method} {path} 失败: {error}")
