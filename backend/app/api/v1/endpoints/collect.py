"""
采集执行、采集结果、批次与历史 API 端点
"""
import logging
import math
from datetime import date, timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.app.core.dependencies import get_collect_service, get_database, get_tophub_client
from backend.app.core.exceptions import BadRequestError, DataAccessError
from backend.app.core.responses import build_pagination, success_response
from backend.app.db.models import utcnow
from backend.app.db.repositories import (
    CollectBatchRepository,
    CollectHistoryRepository,
    CollectResultRepository,
)
from backend.app.schemas.collection import (
    AddToMaterialsRequest,
    BatchStatus,
    CollectBatch,
    CollectExecuteRequest,
    CollectHistory,
    CollectResult,
    CollectStats,
    ResultIdsRequest,
    ResultSelectionUpdate,
)
from backend.app.services.collector import CollectService
from backend.app.services.hotlist import TophubClient
from backend.app.utils import log_api_request

logger = logging.getLogger(__name__)

router = APIRouter()

HistoryRange = Literal["today", "week", "month"]


def resolve_date_range(range_name: Optional[str], today: Optional[date] = None) -> tuple[Optional[date], Optional[date]]:
    """
    将 today/week/month 转换为日期区间

    Args:
        range_name: 时间范围名称
        today: 当天日期（默认 UTC 当天）

    Returns:
        (起始日期, 结束日期)
    """
    today = today or utcnow().date()
    if range_name == "today":
        return today, today
    if range_name == "week":
        return today - timedelta(days=7), today
    if range_name == "month":
        return today - timedelta(days=30), today
    return None, None


@router.post("/execute")
def execute_collect(
    payload: CollectExecuteRequest,
    db: Session = Depends(get_database),
    service: CollectService = Depends(get_collect_service),
):
    """执行采集：创建批次，逐个采集源拉取热榜并保存结果"""
    log_api_request(logger, "POST", "/api/collect/execute", {
        "collectType": payload.collect_type, "keyword": payload.keyword, "sources": len(payload.source_ids),
    })
    result = service.execute(db, payload)
    message = f"采集完成：获取 {result.total} 条，保存 {result.collected} 条"
    if result.failed:
        message += f"，{result.failed} 个采集源失败"
    return success_response(result, message=message)


@router.get("/results")
async def list_results(
    batch_id: Optional[str] = Query(None, alias="batchId"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    only_selected: bool = Query(False, alias="onlySelected"),
    db: Session = Depends(get_database),
):
    """获取采集结果（按采集时间倒序）"""
    log_api_request(logger, "GET", "/api/collect/results", {"batchId": batch_id, "page": page, "limit": limit})
    rows, total = CollectResultRepository.get_paginated(
        db, batch_id=batch_id, only_selected=only_selected, page=page, limit=limit
    )
    return success_response(
        [CollectResult.model_validate(r) for r in rows],
        pagination=build_pagination(page, limit, total, with_has_more=True),
    )


@router.put("/results")
async def update_result_selection(
    payload: ResultSelectionUpdate,
    db: Session = Depends(get_database),
):
    """批量更新采集结果的选择状态"""
    log_api_request(logger, "PUT", "/api/collect/results", {"count": len(payload.ids), "isSelected": payload.is_selected})
    updated = CollectResultRepository.update_selection(db, payload.ids, payload.is_selected)
    db.commit()
    return success_response(
        {"updatedCount": updated, "isSelected": payload.is_selected},
        message=f"已更新 {updated} 条采集结果",
    )


@router.delete("/results")
async def delete_results(
    payload: ResultIdsRequest,
    db: Session = Depends(get_database),
):
    """删除采集结果"""
    log_api_request(logger, "DELETE", "/api/collect/results", {"count": len(payload.ids)})
    deleted = CollectResultRepository.delete(db, payload.ids)
    db.commit()
    return success_response({"deletedCount": deleted}, message=f"已删除 {deleted} 条采集结果")


@router.post("/add-to-materials")
async def add_results_to_materials(
    payload: AddToMaterialsRequest,
    db: Session = Depends(get_database),
):
    """将采集结果添加到素材库（已添加过的结果会被跳过）"""
    log_api_request(logger, "POST", "/api/collect/add-to-materials", {"count": len(payload.result_ids)})
    summary = CollectResultRepository.add_to_materials(db, payload.result_ids, dedupe=payload.dedupe)
    db.commit()
    logger.info(f"✅ 添加到素材库: 新增 {summary['added']} 条，跳过 {summary['skipped']} 条")
    return success_response(
        summary,
        message=f"成功添加 {summary['added']} 条素材，跳过 {summary['skipped']} 条",
    )


@router.get("/batches")
async def list_batches(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[BatchStatus] = None,
    db: Session = Depends(get_database),
):
    """获取采集批次列表（按创建时间倒序）"""
    log_api_request(logger, "GET", "/api/collect/batches", {"page": page, "limit": limit, "status": status})
    rows, total = CollectBatchRepository.get_paginated(db, status=status, page=page, limit=limit)
    return success_response(
        [CollectBatch.model_validate(b) for b in rows],
        pagination=build_pagination(page, limit, total, with_has_more=True),
    )


@router.get("/history")
async def list_history(
    page: int = 1,
    limit: int = 20,
    source_id: Optional[str] = Query(None, alias="sourceId"),
    platform: Optional[str] = None,
    range_name: Optional[HistoryRange] = Query(None, alias="range"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    include_stats: bool = Query(True, alias="includeStats"),
    db: Session = Depends(get_database),
):
    """获取采集历史，可附带全局统计"""
    log_api_request(logger, "GET", "/api/collect/history", {
        "page": page, "limit": limit, "sourceId": source_id, "platform": platform, "range": range_name,
    })
    if page < 1:
        raise BadRequestError("页码必须大于0")
    if limit < 1 or limit > 100:
        raise BadRequestError("每页数量必须在1-100之间")

    range_start, range_end = resolve_date_range(range_name)
    final_start = start_date or range_start
    final_end = end_date or range_end

    rows, total = CollectHistoryRepository.get_paginated(
        db,
        source_id=source_id,
        platform=platform,
        start_date=final_start,
        end_date=final_end,
        page=page,
        limit=limit,
    )
    history = [CollectHistory.model_validate(h) for h in rows]

    stats = None
    if include_stats:
        try:
            stats = CollectStats.model_validate(CollectHistoryRepository.get_stats(db))
        except DataAccessError as e:
            # 统计失败不影响历史查询
            logger.error(f"❌ 获取采集统计失败: {e}")

    total_articles = sum(h.articles_count for h in history)
    total_success = sum(h.success_count for h in history)
    average_rate = (total_success / total_articles * 100) if total_articles > 0 else 0

    data = {
        "history": history,
        "pagination": {
            "totalRecords": total,
            "currentPage": page,
            "totalPages": math.ceil(total / limit),
            "hasMore": page * limit < total,
            "recordsOnPage": len(history),
        },
        "filters": {
            "sourceId": source_id,
            "platform": platform,
            "startDate": final_start,
            "endDate": final_end,
            "range": range_name,
        },
        "summary": {
            "totalArticles": total_articles,
            "totalSuccess": total_success,
            "averageSuccessRate": round(average_rate, 2),
            "totalHistoryRecords": total,
        },
    }
    if stats is not None:
        data["stats"] = stats
    return success_response(data, message=f"获取到 {len(history)} 条采集历史记录")


@router.get("/stats")
async def get_collect_stats(db: Session = Depends(get_database)):
    """获取采集统计"""
    log_api_request(logger, "GET", "/api/collect/stats")
    return success_response(CollectStats.model_validate(CollectHistoryRepository.get_stats(db)))


@router.get("/nodes")
def list_hotlist_nodes(client: TophubClient = Depends(get_tophub_client)):
    """获取热榜节点列表（用于添加采集源时查找 hashId）"""
    log_api_request(logger, "GET", "/api/collect/nodes")
    nodes = client.get_all_nodes()
    return success_response(nodes, pagination={"total": len(nodes)})
