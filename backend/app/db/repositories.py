"""
数据访问层 - 封装常用数据库查询

所有存储异常统一包装为 DataAccessError（唯一约束冲突为 DuplicateRecordError），
错误信息中附带底层数据库的报错内容。
"""
import functools
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import DataAccessError, DuplicateRecordError
from backend.app.db.models import (
    Article,
    CollectBatch,
    CollectHistory,
    CollectResult,
    CollectSource,
    utcnow,
)

logger = logging.getLogger(__name__)

# 排序字段（接口参数 -> 列）
ARTICLE_SORT_COLUMNS = {
    "collectTime": Article.collect_time,
    "readCount": Article.read_count,
    "likeCount": Article.like_count,
}

# 采集结果与素材共有的描述字段
_ARTICLE_FIELDS = (
    "title", "content", "source", "source_url", "author", "publish_time",
    "collect_time", "tags", "category", "read_count", "like_count",
)


def store_operation(action: str):
    """将 SQLAlchemy 异常包装为 DataAccessError

    Args:
        action: 操作名称（用于错误信息）
    """
    def decorator(func_):
        @functools.wraps(func_)
        def wrapper(*args, **kwargs):
            try:
                return func_(*args, **kwargs)
            except IntegrityError as e:
                logger.error(f"❌ {action}失败（约束冲突）: {e.orig}")
                raise DuplicateRecordError(f"{action}失败: {e.orig}", e) from e
            except SQLAlchemyError as e:
                logger.error(f"❌ {action}失败: {e}")
                raise DataAccessError(f"{action}失败: {e}", e) from e
        return wrapper
    return decorator


def _paginate(query, page: int, limit: int) -> list:
    return query.offset((page - 1) * limit).limit(limit).all()


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


class ArticleRepository:
    """素材数据访问类"""

    @staticmethod
    @store_operation("获取素材列表")
    def get_paginated(
        session: Session,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "collectTime",
        order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Article], int]:
        """
        分页查询素材

        Args:
            session: 数据库会话
            status: 状态筛选
            search: 标题、正文、作者的模糊搜索（不区分大小写）
            sort_by: 排序字段 collectTime/readCount/likeCount
            order: asc/desc
            page: 页码（从1开始）
            limit: 每页数量

        Returns:
            (当前页素材, 符合条件的总数)
        """
        query = session.query(Article)

        if status:
            query = query.filter(Article.status == status)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Article.title.ilike(pattern),
                    Article.content.ilike(pattern),
                    Article.author.ilike(pattern),
                )
            )

        total = query.count()

        column = ARTICLE_SORT_COLUMNS.get(sort_by, Article.collect_time)
        ordering = column.asc() if order == "asc" else column.desc()
        rows = _paginate(query.order_by(ordering, Article.id), page, limit)
        return rows, total

    @staticmethod
    @store_operation("获取素材")
    def get_by_id(session: Session, article_id: str) -> Optional[Article]:
        return session.query(Article).filter(Article.id == article_id).first()

    @staticmethod
    @store_operation("创建素材")
    def create(session: Session, data: dict[str, Any]) -> Article:
        article = Article(**data)
        session.add(article)
        session.flush()
        return article

    @staticmethod
    @store_operation("批量创建素材")
    def batch_create(session: Session, rows: list[dict[str, Any]]) -> list[Article]:
        articles = [Article(**row) for row in rows]
        session.add_all(articles)
        session.flush()
        return articles

    @staticmethod
    @store_operation("更新素材")
    def update(session: Session, article_id: str, data: dict[str, Any]) -> Optional[Article]:
        """更新素材字段，素材不存在时返回 None"""
        article = session.query(Article).filter(Article.id == article_id).first()
        if article is None:
            return None
        for field, value in data.items():
            setattr(article, field, value)
        article.updated_at = utcnow()
        session.flush()
        return article

    @staticmethod
    @store_operation("删除素材")
    def delete(session: Session, article_id: str) -> bool:
        deleted = session.query(Article).filter(Article.id == article_id).delete(synchronize_session=False)
        session.flush()
        return deleted > 0

    @staticmethod
    @store_operation("查询素材")
    def get_existing_ids(session: Session, ids: list[str]) -> set[str]:
        if not ids:
            return set()
        rows = session.query(Article.id).filter(Article.id.in_(ids)).all()
        return {row.id for row in rows}

    @staticmethod
    @store_operation("批量更新素材状态")
    def batch_update_status(session: Session, ids: list[str], status: str) -> int:
        if not ids:
            return 0
        updated = (
            session.query(Article)
            .filter(Article.id.in_(ids))
            .update({Article.status: status, Article.updated_at: utcnow()}, synchronize_session=False)
        )
        session.flush()
        return updated

    @staticmethod
    @store_operation("批量删除素材")
    def batch_delete(session: Session, ids: list[str]) -> int:
        if not ids:
            return 0
        deleted = session.query(Article).filter(Article.id.in_(ids)).delete(synchronize_session=False)
        session.flush()
        return deleted

    @staticmethod
    @store_operation("检查素材是否重复")
    def exists(session: Session, title: str, source_url: Optional[str] = None) -> bool:
        """按标题（以及链接，若提供）判断素材是否已存在"""
        query = session.query(Article.id).filter(Article.title == title)
        if source_url:
            query = query.filter(Article.source_url == source_url)
        return query.first() is not None


class CollectSourceRepository:
    """采集源数据访问类"""

    @staticmethod
    @store_operation("获取采集源列表")
    def get_filtered(
        session: Session,
        platform: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[CollectSource]:
        query = session.query(CollectSource)
        if platform:
            query = query.filter(CollectSource.platform == platform)
        if is_active is not None:
            query = query.filter(CollectSource.is_active == is_active)
        return query.order_by(CollectSource.created_at.desc(), CollectSource.name).all()

    @staticmethod
    @store_operation("获取采集源")
    def get_by_id(session: Session, source_id: str) -> Optional[CollectSource]:
        return session.query(CollectSource).filter(CollectSource.id == source_id).first()

    @staticmethod
    @store_operation("查询采集源")
    def find_conflict(
        session: Session,
        name: Optional[str] = None,
        hash_id: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> Optional[CollectSource]:
        """查找名称或 hashId 相同的采集源"""
        conditions = []
        if name:
            conditions.append(CollectSource.name == name)
        if hash_id:
            conditions.append(CollectSource.hash_id == hash_id)
        if not conditions:
            return None
        query = session.query(CollectSource).filter(or_(*conditions))
        if exclude_id:
            query = query.filter(CollectSource.id != exclude_id)
        return query.first()

    @staticmethod
    @store_operation("统计采集源")
    def count(session: Session) -> int:
        return session.query(func.count(CollectSource.id)).scalar() or 0

    @staticmethod
    @store_operation("创建采集源")
    def create(session: Session, data: dict[str, Any]) -> CollectSource:
        source = CollectSource(**data)
        session.add(source)
        session.flush()
        return source

    @staticmethod
    @store_operation("更新采集源")
    def update(session: Session, source_id: str, data: dict[str, Any]) -> Optional[CollectSource]:
        source = session.query(CollectSource).filter(CollectSource.id == source_id).first()
        if source is None:
            return None
        for field, value in data.items():
            setattr(source, field, value)
        session.flush()
        return source

    @staticmethod
    @store_operation("检查采集源使用情况")
    def check_usage(session: Session, source_id: str) -> dict[str, Any]:
        """
        检查采集源是否被采集结果或采集批次引用

        Returns:
            {"hasResults", "resultsCount", "hasBatches", "batchesCount"}
        """
        results_count = (
            session.query(func.count(CollectResult.id))
            .filter(CollectResult.source_id == source_id)
            .scalar()
        ) or 0
        batches_count = len(CollectBatchRepository.list_referencing(session, source_id))
        return {
            "hasResults": results_count > 0,
            "resultsCount": results_count,
            "hasBatches": batches_count > 0,
            "batchesCount": batches_count,
        }

    @staticmethod
    @store_operation("删除采集源")
    def delete(session: Session, source_id: str, cascade: bool = False) -> dict[str, int]:
        """
        删除采集源

        Args:
            session: 数据库会话
            source_id: 采集源ID
            cascade: 是否级联删除采集结果，并从批次的 source_ids 中移除该ID

        Returns:
            {"deletedResults", "updatedBatches"}
        """
        deleted_results = 0
        updated_batches = 0

        if cascade:
            deleted_results = (
                session.query(CollectResult)
                .filter(CollectResult.source_id == source_id)
                .delete(synchronize_session=False)
            )
            for batch in CollectBatchRepository.list_referencing(session, source_id):
                batch.source_ids = [sid for sid in batch.source_ids if sid != source_id]
                updated_batches += 1

        # 采集历史只是执行日志，随采集源一起删除
        session.query(CollectHistory).filter(
            CollectHistory.source_id == source_id
        ).delete(synchronize_session=False)
        session.query(CollectSource).filter(CollectSource.id == source_id).delete(synchronize_session=False)
        session.flush()
        return {"deletedResults": deleted_results, "updatedBatches": updated_batches}


class CollectBatchRepository:
    """采集批次数据访问类"""

    @staticmethod
    @store_operation("创建采集批次")
    def create(session: Session, data: dict[str, Any]) -> CollectBatch:
        batch = CollectBatch(**data)
        session.add(batch)
        session.flush()
        return batch

    @staticmethod
    @store_operation("更新采集批次")
    def update(session: Session, batch_id: str, data: dict[str, Any]) -> Optional[CollectBatch]:
        batch = session.query(CollectBatch).filter(CollectBatch.id == batch_id).first()
        if batch is None:
            return None
        for field, value in data.items():
            setattr(batch, field, value)
        session.flush()
        return batch

    @staticmethod
    @store_operation("获取采集批次")
    def get_by_id(session: Session, batch_id: str) -> Optional[CollectBatch]:
        return session.query(CollectBatch).filter(CollectBatch.id == batch_id).first()

    @staticmethod
    @store_operation("获取采集批次列表")
    def get_paginated(
        session: Session,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[CollectBatch], int]:
        query = session.query(CollectBatch)
        if status:
            query = query.filter(CollectBatch.status == status)
        total = query.count()
        rows = _paginate(query.order_by(CollectBatch.created_at.desc(), CollectBatch.id), page, limit)
        return rows, total

    @staticmethod
    def list_referencing(session: Session, source_id: str) -> list[CollectBatch]:
        """返回 source_ids 中包含指定采集源的批次"""
        # source_ids 为 JSON 列，包含关系在 Python 侧判断以兼容不同数据库
        batches = session.query(CollectBatch).all()
        return [b for b in batches if source_id in (b.source_ids or [])]


class CollectResultRepository:
    """采集结果数据访问类"""

    @staticmethod
    @store_operation("保存采集结果")
    def batch_create(session: Session, rows: list[dict[str, Any]]) -> list[CollectResult]:
        results = [CollectResult(**row) for row in rows]
        session.add_all(results)
        session.flush()
        return results

    @staticmethod
    @store_operation("获取采集结果")
    def get_paginated(
        session: Session,
        batch_id: Optional[str] = None,
        only_selected: bool = False,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[CollectResult], int]:
        query = session.query(CollectResult)
        if batch_id:
            query = query.filter(CollectResult.collect_batch_id == batch_id)
        if only_selected:
            query = query.filter(CollectResult.is_selected.is_(True))
        total = query.count()
        rows = _paginate(query.order_by(CollectResult.collect_time.desc(), CollectResult.id), page, limit)
        return rows, total

    @staticmethod
    @store_operation("更新采集结果选择状态")
    def update_selection(session: Session, ids: list[str], is_selected: bool) -> int:
        updated = (
            session.query(CollectResult)
            .filter(CollectResult.id.in_(ids))
            .update(
                {CollectResult.is_selected: is_selected, CollectResult.updated_at: utcnow()},
                synchronize_session=False,
            )
        )
        session.flush()
        return updated

    @staticmethod
    @store_operation("删除采集结果")
    def delete(session: Session, ids: list[str]) -> int:
        deleted = session.query(CollectResult).filter(CollectResult.id.in_(ids)).delete(synchronize_session=False)
        session.flush()
        return deleted

    @staticmethod
    @store_operation("添加到素材库")
    def add_to_materials(session: Session, ids: list[str], dedupe: bool = False) -> dict[str, int]:
        """
        将采集结果转为素材（状态 pending），并标记为已添加

        已添加过的结果会被跳过；dedupe=True 时标题（及链接）已存在于素材库的结果也会被跳过。

        Returns:
            {"added", "skipped", "total"}
        """
        rows = (
            session.query(CollectResult)
            .filter(CollectResult.id.in_(ids), CollectResult.added_to_materials.is_(False))
            .all()
        )
        if not rows:
            return {"added": 0, "skipped": len(ids), "total": len(ids)}

        now = utcnow()
        promoted = []
        new_articles = []
        seen = set()
        for row in rows:
            key = (row.title, row.source_url or "")
            if dedupe and (key in seen or ArticleRepository.exists(session, row.title, row.source_url)):
                logger.info(f"⏭️  素材已存在，跳过: {row.title[:50]}")
                continue
            seen.add(key)
            fields = {name: getattr(row, name) for name in _ARTICLE_FIELDS}
            fields["content"] = fields["content"] or ""
            new_articles.append({**fields, "status": "pending", "created_at": now, "updated_at": now})
            row.added_to_materials = True
            row.updated_at = now
            promoted.append(row)

        ArticleRepository.batch_create(session, new_articles)
        return {"added": len(promoted), "skipped": len(ids) - len(promoted), "total": len(ids)}


class CollectHistoryRepository:
    """采集历史数据访问类"""

    @staticmethod
    @store_operation("记录采集历史")
    def create(
        session: Session,
        source_id: str,
        articles_count: int,
        success_count: int,
        collected_at: Optional[datetime] = None,
    ) -> CollectHistory:
        history = CollectHistory(
            source_id=source_id,
            articles_count=articles_count,
            success_count=success_count,
            collected_at=collected_at or utcnow(),
        )
        session.add(history)
        session.flush()
        return history

    @staticmethod
    @store_operation("获取采集历史")
    def get_paginated(
        session: Session,
        source_id: Optional[str] = None,
        platform: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[CollectHistory], int]:
        """
        分页查询采集历史（按采集时间倒序）

        Args:
            session: 数据库会话
            source_id: 采集源ID
            platform: 采集源平台
            start_date: 起始日期（含）
            end_date: 结束日期（含当天）
            page: 页码
            limit: 每页数量

        Returns:
            (当前页记录, 总数)
        """
        query = session.query(CollectHistory)
        if source_id:
            query = query.filter(CollectHistory.source_id == source_id)
        if platform:
            query = query.join(CollectSource, CollectHistory.source_id == CollectSource.id).filter(
                CollectSource.platform == platform
            )
        if start_date:
            query = query.filter(CollectHistory.collected_at >= _day_start(start_date))
        if end_date:
            query = query.filter(CollectHistory.collected_at < _day_start(end_date + timedelta(days=1)))

        total = query.count()
        rows = _paginate(query.order_by(CollectHistory.collected_at.desc(), CollectHistory.id), page, limit)
        return rows, total

    @staticmethod
    @store_operation("获取统计数据")
    def get_stats(session: Session) -> dict[str, Any]:
        """
        汇总采集统计

        Returns:
            totalSources, activeSources, totalCollects, todayCollects,
            totalArticles, successRate（百分比）, lastCollectTime
        """
        total_sources = session.query(func.count(CollectSource.id)).scalar() or 0
        active_sources = (
            session.query(func.count(CollectSource.id))
            .filter(CollectSource.is_active.is_(True))
            .scalar()
        ) or 0

        total_collects, total_articles, total_success, last_collect = session.query(
            func.count(CollectHistory.id),
            func.coalesce(func.sum(CollectHistory.articles_count), 0),
            func.coalesce(func.sum(CollectHistory.success_count), 0),
            func.max(CollectHistory.collected_at),
        ).one()

        today_collects = (
            session.query(func.count(CollectHistory.id))
            .filter(CollectHistory.collected_at >= _day_start(utcnow().date()))
            .scalar()
        ) or 0

        total_articles = int(total_articles or 0)
        success_rate = (int(total_success or 0) / total_articles * 100) if total_articles > 0 else 0.0

        if isinstance(last_collect, datetime) and last_collect.tzinfo is None:
            last_collect = last_collect.replace(tzinfo=timezone.utc)

        return {
            "totalSources": total_sources,
            "activeSources": active_sources,
            "totalCollects": total_collects or 0,
            "todayCollects": today_collects,
            "totalArticles": total_articles,
            "successRate": success_rate,
            "lastCollectTime": last_collect,
        }
