"""
热榜采集服务

一次执行对应一个采集批次：按顺序逐个采集源调用热榜 API，
单个采集源失败只记录错误，不影响其他采集源。
"""
import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import DataAccessError
from backend.app.db.models import CollectSource, utcnow
from backend.app.db.repositories import (
    CollectBatchRepository,
    CollectHistoryRepository,
    CollectResultRepository,
    CollectSourceRepository,
)
from backend.app.schemas.collection import (
    CollectExecuteRequest,
    CollectOperationResult,
    CollectResult as CollectResultSchema,
)
from backend.app.services.hotlist import HotlistError, TophubClient, extract_items

logger = logging.getLogger(__name__)

_WAN_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*万")
_INT_PATTERN = re.compile(r"(\d+)")


def parse_hot_value(value: Any) -> int:
    """
    解析热度文本为整数

    "1829 万热度" -> 18290000，"50000" -> 50000，无法解析时返回 0

    Args:
        value: 热度文本（通常来自条目的 extra 字段）

    Returns:
        热度数值
    """
    if not isinstance(value, str):
        return 0
    match = _WAN_PATTERN.search(value)
    if match:
        return math.floor(float(match.group(1)) * 10000)
    match = _INT_PATTERN.search(value)
    if match:
        return int(match.group(1))
    return 0


def default_batch_name(collect_type: str, now: Optional[datetime] = None) -> str:
    """生成默认批次名称"""
    prefix = "关键词" if collect_type == "keyword" else "一键"
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"{prefix}采集任务_{stamp}"


class CollectService:
    """热榜采集服务"""

    def __init__(self, hotlist_client: TophubClient):
        self.hotlist_client = hotlist_client

    def _fetch_items(self, source: CollectSource, request: CollectExecuteRequest) -> List[Dict[str, Any]]:
        """调用热榜 API 获取条目（截取前 limit 条）"""
        if request.collect_type == "keyword":
            data = self.hotlist_client.search_node_content(request.keyword.strip(), hashid=source.hash_id, page=1)
        else:
            data = self.hotlist_client.get_node_detail(source.hash_id)
        return extract_items(data)[:request.limit]

    @staticmethod
    def build_result_row(
        item: Dict[str, Any],
        source: CollectSource,
        batch_id: str,
        keyword: Optional[str],
        collect_time: datetime,
    ) -> Dict[str, Any]:
        """
        将热榜条目映射为采集结果记录

        Args:
            item: 热榜条目
            source: 采集源
            batch_id: 批次ID
            keyword: 关键词（仅关键词采集）
            collect_time: 采集时间

        Returns:
            采集结果字段字典
        """
        return {
            "title": item.get("title") or "无标题",
            "content": item.get("desc") or item.get("description") or "",
            "source": source.name,
            "source_url": item.get("url") or item.get("link") or None,
            "author": item.get("author") or None,
            "publish_time": None,
            "collect_time": collect_time,
            "tags": [],
            "category": source.category,
            "read_count": parse_hot_value(item.get("extra")),
            "like_count": 0,
            "source_id": source.id,
            "collect_batch_id": batch_id,
            "keyword": keyword,
            "is_selected": False,
            "added_to_materials": False,
        }

    def _collect_source(
        self,
        session: Session,
        source: CollectSource,
        request: CollectExecuteRequest,
        batch_id: str,
    ) -> tuple[int, list]:
        """采集单个采集源并写入结果和历史，返回 (条目数, 已保存的结果)"""
        items = self._fetch_items(source, request)
        keyword = request.keyword.strip() if request.collect_type == "keyword" else None
        now = utcnow()
        rows = [self.build_result_row(item, source, batch_id, keyword, now) for item in items]
        created = CollectResultRepository.batch_create(session, rows) if rows else []
        CollectHistoryRepository.create(
            session,
            source_id=source.id,
            articles_count=len(items),
            success_count=len(created),
            collected_at=now,
        )
        session.commit()
        return len(items), created

    def execute(self, session: Session, request: CollectExecuteRequest) -> CollectOperationResult:
        """
        执行一次采集

        Args:
            session: 数据库会话
            request: 采集请求

        Returns:
            采集执行结果
        """
        batch = CollectBatchRepository.create(session, {
            "name": request.name or default_batch_name(request.collect_type),
            "description": request.description,
            "collect_type": request.collect_type,
            "keyword": request.keyword.strip() if request.collect_type == "keyword" else None,
            "source_ids": list(request.source_ids),
            "status": "running",
            "started_at": utcnow(),
        })
        session.commit()
        batch_id = batch.id
        logger.info(f"🚀 开始采集批次 {batch_id}，共 {len(request.source_ids)} 个采集源")

        total_count = 0
        success_count = 0
        error_count = 0
        errors: List[str] = []
        results: list = []

        try:
            for source_id in request.source_ids:
                source = CollectSourceRepository.get_by_id(session, source_id)
                if source is None:
                    error_count += 1
                    errors.append(f"{source_id}: 采集源不存在")
                    continue
                if not source.is_active:
                    error_count += 1
                    errors.append(f"{source.name}: 采集源已禁用")
                    continue
                if not source.hash_id:
                    error_count += 1
                    errors.append(f"{source.name}: 未配置hashId")
                    continue

                # 回滚后对象会过期，先取出名称
                source_name = source.name
                try:
                    fetched, created = self._collect_source(session, source, request, batch_id)
                except (HotlistError, DataAccessError, SQLAlchemyError) as e:
                    session.rollback()
                    error_count += 1
                    errors.append(f"{source_name}: {e}")
                    logger.warning(f"⚠️  采集源 {source_name} 采集失败: {e}")
                    continue

                total_count += fetched
                success_count += len(created)
                results.extend(CollectResultSchema.model_validate(r) for r in created)
                logger.info(f"✅ {source_name}: 获取 {fetched} 条，保存 {len(created)} 条")

            status = "failed" if error_count == len(request.source_ids) else "completed"
            CollectBatchRepository.update(session, batch_id, {
                "total_count": total_count,
                "success_count": success_count,
                "error_count": error_count,
                "status": status,
                "completed_at": utcnow(),
            })
            session.commit()
        except Exception:
            logger.error(f"❌ 采集批次 {batch_id} 执行异常，标记为失败", exc_info=True)
            session.rollback()
            CollectBatchRepository.update(session, batch_id, {
                "status": "failed",
                "completed_at": utcnow(),
            })
            session.commit()
            raise

        logger.info(
            f"📦 采集批次 {batch_id} 完成: 状态={status}, 条目={total_count}, "
            f"保存={success_count}, 失败源={error_count}"
        )
        return CollectOperationResult(
            success=success_count > 0,
            total=total_count,
            collected=success_count,
            duplicated=0,
            failed=error_count,
            batch_id=batch_id,
            status=status,
            results=results,
            errors=errors or None,
        )
