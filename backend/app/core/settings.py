"""
统一配置管理模块
"""
import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TOPHUB_BASE_URL = "https://api.tophubdata.com"


class ConfigurationError(RuntimeError):
    """必需配置缺失"""


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """应用配置类"""

    # 启动时必须存在的环境变量
    REQUIRED_KEYS = ("DATABASE_URL", "TOPHUB_ACCESS_KEY")

    def __init__(self):
        self._load_env()

    def _load_env(self):
        """加载环境变量"""
        # backend/app/core/settings.py -> 项目根目录
        self.PROJECT_ROOT: Path = Path(__file__).parent.parent.parent.parent

        # 数据库配置（托管 Postgres 连接串，本地开发可用 sqlite:///）
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")

        # 今日热榜 API 配置
        self.TOPHUB_ACCESS_KEY: str = os.getenv("TOPHUB_ACCESS_KEY", "")
        self.TOPHUB_BASE_URL: str = os.getenv("TOPHUB_BASE_URL", DEFAULT_TOPHUB_BASE_URL)
        self.TOPHUB_TIMEOUT: float = float(os.getenv("TOPHUB_TIMEOUT", "10"))

        # 采集源初始化
        self.SEED_DEFAULT_SOURCES: bool = _get_bool("SEED_DEFAULT_SOURCES", True)

        # Web配置
        self.WEB_HOST: str = os.getenv("WEB_HOST", "0.0.0.0")
        self.API_PORT: int = int(os.getenv("API_PORT", "8000"))

        # 日志配置
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FILE: Optional[str] = os.getenv("LOG_FILE")

    def missing_required(self) -> list[str]:
        """返回缺失的必需配置项"""
        return [key for key in self.REQUIRED_KEYS if not getattr(self, key, "")]

    def validate_required(self) -> None:
        """校验必需配置，缺失时抛出 ConfigurationError"""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(f"缺少必需的环境变量: {', '.join(missing)}")


settings = Settings()
