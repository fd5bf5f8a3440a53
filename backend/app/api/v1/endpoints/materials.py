"""
素材相关 API 端点
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from backend.app.core.dependencies import get_database
from backend.app.core.exceptions import BadRequestError, NotFoundError
from backend.app.core.responses import build_pagination, success_response
from backend.app.db.models import Article
from backend.app.db.repositories import ArticleRepository
from backend.app.schemas.common import is_valid_uuid
from backend.app.schemas.material import (
    Material,
    MaterialBatchRequest,
    MaterialCreate,
    MaterialStatus,
    MaterialUpdate,
    SortField,
    SortOrder,
)
from backend.app.utils import log_api_request

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND_MESSAGE = "素材不存在"


def _validate_material_id(material_id: str) -> None:
    if not is_valid_uuid(material_id):
        raise BadRequestError("无效的素材ID格式")


def _get_material_or_404(db: Session, material_id: str) -> Article:
    _validate_material_id(material_id)
    article = ArticleRepository.get_by_id(db, material_id)
    if not article:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return article


@router.get("")
async def list_materials(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[MaterialStatus] = None,
    search: Optional[str] = None,
    sort_by: SortField = Query("collectTime", alias="sortBy"),
    order: SortOrder = "desc",
    db: Session = Depends(get_database),
):
    """分页获取素材列表"""
    log_api_request(logger, "GET", "/api/materials", {
        "page": page, "limit": limit, "status": status, "search": search, "sortBy": sort_by, "order": order,
    })
    articles, total = ArticleRepository.get_paginated(
        db,
        status=status,
        search=search.strip() if search else None,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    return success_response(
        [Material.model_validate(a) for a in articles],
        pagination=build_pagination(page, limit, total),
    )


@router.post("")
async def create_material(
    payload: MaterialCreate,
    db: Session = Depends(get_database),
):
    """创建素材"""
    log_api_request(logger, "POST", "/api/materials")
    article = ArticleRepository.create(db, payload.to_db_dict())
    db.commit()
    db.refresh(article)
    logger.info(f"✅ 素材已创建: {article.title[:50]}")
    return success_response(Material.model_validate(article), message="素材创建成功")


@router.post("/batch")
async def batch_operate_materials(
    payload: MaterialBatchRequest,
    db: Session = Depends(get_database),
):
    """批量删除素材或批量更新状态"""
    log_api_request(logger, "POST", "/api/materials/batch", {"action": payload.action, "count": len(payload.ids)})

    existing = ArticleRepository.get_existing_ids(db, payload.ids)
    succeeded = [i for i in payload.ids if i in existing]
    failed = [{"id": i, "error": NOT_FOUND_MESSAGE} for i in payload.ids if i not in existing]

    if payload.action == "delete":
        ArticleRepository.batch_delete(db, succeeded)
    else:
        ArticleRepository.batch_update_status(db, succeeded, payload.data.status)
    db.commit()

    logger.info(f"✅ 批量操作 {payload.action}: 成功 {len(succeeded)}，失败 {len(failed)}")
    return success_response({
        "message": "批量操作完成",
        "results": {
            "total": len(payload.ids),
            "success": len(succeeded),
            "failed": len(failed),
            "details": {"success": succeeded, "failed": failed},
        },
    })


@router.get("/{material_id}")
async def get_material(
    material_id: str,
    db: Session = Depends(get_database),
):
    """获取素材详情"""
    log_api_request(logger, "GET", f"/api/materials/{material_id}")
    article = _get_material_or_404(db, material_id)
    return success_response(Material.model_validate(article))


@router.put("/{material_id}")
async def update_material(
    material_id: str,
    payload: Optional[MaterialUpdate] = Body(None),
    db: Session = Depends(get_database),
):
    """更新素材（只更新请求中出现的字段）"""
    log_api_request(logger, "PUT", f"/api/materials/{material_id}")
    _validate_material_id(material_id)
    if payload is None or not payload.model_fields_set:
        raise BadRequestError("请求体不能为空")

    article = ArticleRepository.update(db, material_id, payload.to_db_dict())
    if article is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    db.commit()
    db.refresh(article)
    return success_response(Material.model_validate(article), message="素材更新成功")


@router.delete("/{material_id}")
async def delete_material(
    material_id: str,
    db: Session = Depends(get_database),
):
    """删除素材"""
    log_api_request(logger, "DELETE", f"/api/materials/{material_id}")
    _get_material_or_404(db, material_id)
    ArticleRepository.delete(db, material_id)
    db.commit()
    return success_response({"id": material_id}, message="素材删除成功")
