"""
应聘申请 CRUD 操作
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.application import Application
from app.models.evaluation import Evaluation
from app.models.job_role import JobRole
from app.models.base import utcnow
from .base import CRUDBase


class CRUDApplication(CRUDBase[Application]):
    """应聘申请 CRUD 操作类"""

    def _filtered(
        self,
        query,
        *,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        job_role_id: Optional[str] = None,
        search: Optional[str] = None
    ):
        # owner_id 为 None 表示不限制归属（管理员）
        if owner_id:
            query = query.join(JobRole, JobRole.id == self.model.job_role_id).where(
                JobRole.created_by == owner_id
            )
        if status:
            query = query.where(self.model.status == status)
        if job_role_id:
            query = query.where(self.model.job_role_id == job_role_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                self.model.candidate_name.ilike(pattern),
                self.model.candidate_email.ilike(pattern),
            ))
        return query

    async def get_detail(self, db: AsyncSession, id: str) -> Optional[Application]:
        """获取申请详情（预加载岗位和评估）"""
        result = await db.execute(
            select(self.model)
            .options(
                selectinload(self.model.job_role),
                selectinload(self.model.evaluation),
            )
            .where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def exists_for_candidate(
        self,
        db: AsyncSession,
        *,
        job_role_id: str,
        candidate_email: str
    ) -> bool:
        """检查候选人是否已投递过该岗位"""
        result = await db.execute(
            select(self.model.id).where(
                self.model.job_role_id == job_role_id,
                self.model.candidate_email == candidate_email,
            ).limit(1)
        )
        return result.first() is not None

    async def get_multi_filtered(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 20,
        **filters
    ) -> List[Application]:
        """按条件查询申请列表（预加载岗位和评估）"""
        query = self._filtered(
            select(self.model).options(
                selectinload(self.model.job_role),
                selectinload(self.model.evaluation),
            ),
            **filters
        )
        query = query.order_by(self.model.applied_at.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_filtered(self, db: AsyncSession, **filters) -> int:
        """按条件统计申请数量"""
        query = self._filtered(select(func.count(self.model.id)), **filters)
        result = await db.execute(query)
        return result.scalar() or 0

    async def count_by_statuses(
        self,
        db: AsyncSession,
        statuses: List[str],
        *,
        owner_id: Optional[str] = None
    ) -> int:
        """统计处于给定状态的申请数量"""
        query = self._filtered(select(func.count(self.model.id)), owner_id=owner_id)
        result = await db.execute(query.where(self.model.status.in_(statuses)))
        return result.scalar() or 0

    async def get_many_for_role(
        self,
        db: AsyncSession,
        *,
        job_role_id: str,
        ids: List[str]
    ) -> List[Application]:
        """获取岗位下指定 ID 的申请（预加载评估），不属于该岗位的 ID 被忽略"""
        result = await db.execute(
            select(self.model)
            .options(selectinload(self.model.evaluation))
            .where(self.model.job_role_id == job_role_id, self.model.id.in_(ids))
        )
        return list(result.scalars().all())

    async def weekly_counts(
        self,
        db: AsyncSession,
        *,
        owner_id: Optional[str] = None,
        weeks: int = 8,
        now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        最近若干周（含本周）每周的申请数量，按时间正序

        周从周一开始；没有申请的周计数为 0。SQLite 没有按周截断的函数，
        因此只查询时间列，在内存中分桶
        """
        now = now or utcnow()
        today = now.astimezone(timezone.utc).date()
        first_week = today - timedelta(days=today.weekday()) - timedelta(weeks=weeks - 1)
        since = datetime(first_week.year, first_week.month, first_week.day, tzinfo=timezone.utc)

        query = self._filtered(select(self.model.applied_at), owner_id=owner_id)
        result = await db.execute(query.where(self.model.applied_at >= since))

        counts = {first_week + timedelta(weeks=i): 0 for i in range(weeks)}
        for (applied_at,) in result.all():
            # SQLite 取回的时间不带时区，按 UTC 处理
            if applied_at.tzinfo is None:
                applied_at = applied_at.replace(tzinfo=timezone.utc)
            day = applied_at.astimezone(timezone.utc).date()
            week_start = day - timedelta(days=day.weekday())
            if week_start in counts:
                counts[week_start] += 1

        return [
            {"week_start": week_start.isoformat(), "count": count}
            for week_start, count in counts.items()
        ]

    async def remove_with_evaluation(self, db: AsyncSession, *, db_obj: Application) -> None:
        """删除申请及其评估（在调用方的事务内）"""
        result = await db.execute(
            select(Evaluation).where(Evaluation.application_id == db_obj.id)
        )
        for evaluation in result.scalars().all():
            await db.delete(evaluation)
        await db.delete(db_obj)
        await db.flush()


application_crud = CRUDApplication(Application)
