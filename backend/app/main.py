"""
FastAPI 应用入口
"""
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# 在导入 backend 模块之前，先设置 Python 路径
# backend/app/main.py -> backend/app -> backend -> 项目根
_project_root_str = str(Path(__file__).resolve().parent.parent.parent)
if _project_root_str not in sys.path:
    sys.path.insert(0, _project_root_str)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.api.v1.api import api_router
from backend.app.core.config import settings
from backend.app.core.exceptions import ApiError, DataAccessError, DuplicateRecordError
from backend.app.core.responses import error_response
from backend.app.core.security import setup_cors
from backend.app.services.hotlist import HotlistError
from backend.app.utils import setup_logger, log_api_error

logger = setup_logger(__name__)


def _initialize_database() -> None:
    """校验必需配置、初始化数据库并写入预置采集源"""
    from backend.app.core.settings import settings as app_settings
    from backend.app.db import get_db, seed_default_sources

    app_settings.validate_required()

    db = get_db()
    if app_settings.SEED_DEFAULT_SOURCES:
        with db.get_session() as session:
            seed_default_sources(session)
    logger.info("✅ 数据库已初始化")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理（启动和关闭事件）

    Args:
        app: FastAPI 应用实例
    """
    logger.info("🚀 应用启动中...")

    try:
        _initialize_database()
    except Exception as e:
        logger.error(f"❌ 启动失败: {e}")
        raise

    yield

    logger.info("✅ 应用已关闭")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 配置 CORS
setup_cors(app)

# 注册路由
app.include_router(api_router, prefix=settings.API_PREFIX)


def _format_validation_errors(errors: list) -> str:
    parts = []
    for error in errors:
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求参数验证失败，返回 400

    Args:
        request: FastAPI 请求对象
        exc: 验证错误异常

    Returns:
        统一错误响应
    """
    errors = exc.errors()
    logger.error(f"请求验证失败: {request.method} {request.url.path} {errors}")
    return error_response(
        f"参数验证失败: {_format_validation_errors(errors)}",
        status_code=400,
        details=[{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in errors],
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP 异常（含 ApiError）转换为统一错误响应"""
    details = exc.details if isinstance(exc, ApiError) else None
    if exc.status_code >= 500:
        log_api_error(logger, request.method, request.url.path, exc.detail)
    return error_response(str(exc.detail), status_code=exc.status_code, details=details)


@app.exception_handler(DuplicateRecordError)
async def duplicate_record_handler(request: Request, exc: DuplicateRecordError) -> JSONResponse:
    log_api_error(logger, request.method, request.url.path, exc)
    return error_response(exc.message, status_code=409)


@app.exception_handler(DataAccessError)
async def data_access_handler(request: Request, exc: DataAccessError) -> JSONResponse:
    log_api_error(logger, request.method, request.url.path, exc)
    return error_response(exc.message, status_code=500)


@app.exception_handler(HotlistError)
async def hotlist_error_handler(request: Request, exc: HotlistError) -> JSONResponse:
    log_api_error(logger, request.method, request.url.path, exc)
    return error_response(exc.message, status_code=500)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"❌ {request.method} {request.url.path} 未处理的异常: {exc}", exc_info=True)
    return error_response("服务器内部错误", status_code=500, details=str(exc))


@app.get("/")
async def root() -> JSONResponse:
    """根路径

    Returns:
        API 基本信息
    """
    return JSONResponse({
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs",
    })


@app.get("/health")
async def health_check() -> JSONResponse:
    """健康检查端点"""
    return JSONResponse({"status": "healthy"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
    )
