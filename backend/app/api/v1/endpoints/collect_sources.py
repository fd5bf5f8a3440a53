"""
采集源相关 API 端点
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from backend.app.core.dependencies import get_database
from backend.app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from backend.app.core.responses import success_response
from backend.app.db.models import CollectSource
from backend.app.db.repositories import CollectSourceRepository
from backend.app.schemas.common import is_valid_uuid
from backend.app.schemas.source import (
    CollectSource as CollectSourceSchema,
    CollectSourceCreate,
    CollectSourceUpdate,
)
from backend.app.utils import log_api_request

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_MESSAGE = "该采集源已存在，请检查名称或HashId"
NOT_FOUND_MESSAGE = "采集源不存在"
HAS_RELATED_DATA = "HAS_RELATED_DATA"


def _require_source_id(source_id: Optional[str]) -> str:
    if not source_id:
        raise BadRequestError("缺少采集源ID")
    if not is_valid_uuid(source_id):
        raise BadRequestError("无效的采集源ID格式")
    return source_id


def _get_source_or_404(db: Session, source_id: str) -> CollectSource:
    source = CollectSourceRepository.get_by_id(db, source_id)
    if not source:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return source


@router.get("")
async def list_sources(
    platform: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_database),
):
    """获取采集源列表"""
    log_api_request(logger, "GET", "/api/collect/sources", {"platform": platform, "isActive": is_active})
    sources = CollectSourceRepository.get_filtered(db, platform=platform, is_active=is_active)
    return success_response(
        [CollectSourceSchema.model_validate(s) for s in sources],
        pagination={"total": len(sources)},
    )


@router.post("")
async def create_source(
    payload: CollectSourceCreate,
    db: Session = Depends(get_database),
):
    """创建自定义采集源"""
    log_api_request(logger, "POST", "/api/collect/sources", {"name": payload.name, "hashId": payload.hash_id})

    if CollectSourceRepository.find_conflict(db, name=payload.name, hash_id=payload.hash_id):
        raise ConflictError(DUPLICATE_MESSAGE)

    data = payload.model_dump()
    data["user_created"] = True
    source = CollectSourceRepository.create(db, data)
    db.commit()
    db.refresh(source)
    logger.info(f"✅ 采集源已创建: {source.name} ({source.hash_id})")
    return success_response(CollectSourceSchema.model_validate(source), message="采集源创建成功")


@router.put("")
async def update_source(
    source_id: Optional[str] = Query(None, alias="id"),
    payload: Optional[CollectSourceUpdate] = Body(None),
    db: Session = Depends(get_database),
):
    """更新采集源"""
    log_api_request(logger, "PUT", "/api/collect/sources", {"id": source_id})
    source_id = _require_source_id(source_id)

    updates = payload.to_db_dict() if payload is not None else {}
    if not updates:
        raise BadRequestError("没有提供要更新的字段")

    _get_source_or_404(db, source_id)
    if CollectSourceRepository.find_conflict(
        db, name=updates.get("name"), hash_id=updates.get("hash_id"), exclude_id=source_id
    ):
        raise ConflictError(DUPLICATE_MESSAGE)

    source = CollectSourceRepository.update(db, source_id, updates)
    db.commit()
    db.refresh(source)
    return success_response(CollectSourceSchema.model_validate(source), message="采集源更新成功")


@router.delete("")
async def delete_source(
    source_id: Optional[str] = Query(None, alias="id"),
    cascade: bool = False,
    db: Session = Depends(get_database),
):
    """删除采集源

    存在关联的采集结果或批次时，需要 cascade=true 才会级联删除，否则返回 409。
    """
    log_api_request(logger, "DELETE", "/api/collect/sources", {"id": source_id, "cascade": cascade})
    source_id = _require_source_id(source_id)
    source = _get_source_or_404(db, source_id)
    source_name = source.name

    usage = CollectSourceRepository.check_usage(db, source_id)
    if not cascade and (usage["hasResults"] or usage["hasBatches"]):
        logger.warning(f"⚠️  采集源 {source_name} 存在关联数据: {usage}")
        raise ConflictError(
            "采集源有关联数据，无法直接删除",
            details={"code": HAS_RELATED_DATA, **usage},
        )

    summary = CollectSourceRepository.delete(db, source_id, cascade=cascade)
    db.commit()
    logger.info(
        f"🗑️  采集源已删除: {source_name}，删除结果 {summary['deletedResults']} 条，"
        f"更新批次 {summary['updatedBatches']} 个"
    )
    return success_response({"id": source_id, **summary}, message="采集源删除成功")
