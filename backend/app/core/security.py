"""
CORS 配置与预检请求处理
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from backend.app.core.config import settings


def cors_headers() -> dict[str, str]:
    """所有响应共用的跨域头"""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": settings.CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": settings.CORS_ALLOW_HEADERS,
    }


def setup_cors(app: FastAPI) -> None:
    """配置 CORS 中间件"""
    # 如果允许所有来源，不能同时设置 allow_credentials=True
    allow_all_origins = settings.BACKEND_CORS_ORIGINS == ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=not allow_all_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def answer_preflight(request: Request, call_next):
        # 任意路径的 OPTIONS 请求直接返回 200
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=cors_headers())
        return await call_next(request)
