"""
FastAPI 应用配置
"""
import os
from backend.app.core.paths import setup_python_path

# 确保项目根目录在 Python 路径中
setup_python_path()

from backend.app.core.settings import settings as app_settings


class Settings:
    """FastAPI 应用配置"""

    # API 配置
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Content Ops Dashboard API"
    VERSION: str = "1.0.0"

    # CORS 配置
    # 从环境变量读取，如果没有设置则允许所有来源
    _cors_origins = os.getenv("BACKEND_CORS_ORIGINS", "")
    if _cors_origins:
        BACKEND_CORS_ORIGINS: list = [origin.strip() for origin in _cors_origins.split(",")]
    else:
        BACKEND_CORS_ORIGINS: list = ["*"]

    # 预检请求响应头
    CORS_ALLOW_METHODS: str = "GET, POST, PUT, DELETE, OPTIONS"
    CORS_ALLOW_HEADERS: str = "Content-Type, Authorization"

    # 服务器配置
    HOST: str = app_settings.WEB_HOST
    PORT: int = app_settings.API_PORT


settings = Settings()
