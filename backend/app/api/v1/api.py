"""
API 路由聚合
"""
from fastapi import APIRouter

from backend.app.api.v1.endpoints import (
    collect,
    collect_sources,
    materials,
    tophub,
)

api_router = APIRouter()

# 路由配置：[(router, prefix, tags), ...]
# collect_sources 需在 collect 之前注册
_ROUTES = [
    (materials, "/materials", ["materials"]),
    (collect_sources, "/collect/sources", ["collect-sources"]),
    (collect, "/collect", ["collect"]),
    (tophub, "", ["tophub"]),
]

# 注册所有路由
for router_module, prefix, tags in _ROUTES:
    api_router.include_router(
        router_module.router,
        prefix=prefix,
        tags=tags
    )
