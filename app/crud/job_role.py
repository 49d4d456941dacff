"""
招聘岗位 CRUD 操作
"""
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.job_role import JobRole
from app.models.application import Application
from app.models.evaluation import Evaluation
from .base import CRUDBase


def _applications_count():
    """每个岗位的申请数量（关联子查询）"""
    return (
        select(func.count(Application.id))
        .where(Application.job_role_id == JobRole.id)
        .correlate(JobRole)
        .scalar_subquery()
    )


class CRUDJobRole(CRUDBase[JobRole]):
    """岗位 CRUD 操作类"""

    def _filtered(
        self,
        query,
        *,
        status: Optional[str] = None,
        department: Optional[str] = None,
        employment_type: Optional[str] = None,
        search: Optional[str] = None,
        created_by: Optional[str] = None
    ):
        if status:
            query = query.where(self.model.status == status)
        if department:
            query = query.where(self.model.department.ilike(f"%{department}%"))
        if employment_type:
            query = query.where(self.model.employment_type == employment_type)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                self.model.title.ilike(pattern),
                self.model.description.ilike(pattern),
            ))
        if created_by:
            query = query.where(self.model.created_by == created_by)
        return query

    async def get_with_count(
        self,
        db: AsyncSession,
        id: str
    ) -> Optional[Tuple[JobRole, int]]:
        """获取岗位详情及其申请数量"""
        result = await db.execute(
            select(self.model, _applications_count())
            .options(selectinload(self.model.owner))
            .where(self.model.id == id)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1] or 0

    async def get_multi_filtered(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 20,
        **filters
    ) -> List[Tuple[JobRole, int]]:
        """按条件查询岗位列表（附带申请数量）"""
        query = self._filtered(
            select(self.model, _applications_count()).options(selectinload(self.model.owner)),
            **filters
        )
        query = query.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return [(row[0], row[1] or 0) for row in result.all()]

    async def count_filtered(self, db: AsyncSession, **filters) -> int:
        """按条件统计岗位数量"""
        query = self._filtered(select(func.count()).select_from(self.model), **filters)
        result = await db.execute(query)
        return result.scalar() or 0

    async def role_stats(
        self,
        db: AsyncSession,
        *,
        created_by: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """各岗位的申请数和平均分，按申请数倒序"""
        applications_count = func.count(func.distinct(Application.id))
        query = self._filtered(
            select(
                self.model.id,
                self.model.title,
                self.model.status,
                applications_count,
                func.avg(Evaluation.score),
            )
            .outerjoin(Application, Application.job_role_id == self.model.id)
            .outerjoin(Evaluation, Evaluation.application_id == Application.id),
            created_by=created_by,
        )
        query = query.group_by(self.model.id).order_by(
            applications_count.desc(), self.model.created_at.desc()
        )
        result = await db.execute(query)
        return [
            {
                "id": id,
                "title": title,
                "status": status,
                "applications_count": count or 0,
                "average_score": round(float(average)) if average is not None else 0,
            }
            for id, title, status, count, average in result.all()
        ]

    async def count_applications(self, db: AsyncSession, id: str) -> int:
        """统计岗位下的申请数量"""
        result = await db.execute(
            select(func.count(Application.id)).where(Application.job_role_id == id)
        )
        return result.scalar() or 0


job_role_crud = CRUDJobRole(JobRole)
