"""
AI 评估 CRUD 操作
"""
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.application import Application
from app.models.evaluation import Evaluation
from app.models.job_role import JobRole
from app.models.base import utcnow
from .base import CRUDBase

# 排序字段白名单
SORT_COLUMNS = {
    "evaluation_date": Evaluation.evaluation_date,
    "score": Evaluation.score,
    "candidate_name": Application.candidate_name,
    "job_title": JobRole.title,
}


# 仪表盘分数段（标签, 下限, 上限）
SCORE_BUCKETS = [
    ("90-100", 90, 100),
    ("80-89", 80, 89),
    ("70-79", 70, 79),
    ("60-69", 60, 69),
    ("0-59", 0, 59),
]

class CRUDEvaluation(CRUDBase[Evaluation]):
    """评估 CRUD 操作类"""

    def _filtered(
        self,
        query,
        *,
        owner_id: Optional[str] = None,
        job_role_id: Optional[str] = None,
        min_score: Optional[int] = None,
        max_score: Optional[int] = None
    ):
        query = (
            query.join(Application, Application.id == self.model.application_id)
            .join(JobRole, JobRole.id == Application.job_role_id)
        )
        if owner_id:
            query = query.where(JobRole.created_by == owner_id)
        if job_role_id:
            query = query.where(Application.job_role_id == job_role_id)
        if min_score is not None:
            query = query.where(self.model.score >= min_score)
        if max_score is not None:
            query = query.where(self.model.score <= max_score)
        return query

    async def get_by_application(
        self,
        db: AsyncSession,
        application_id: str
    ) -> Optional[Evaluation]:
        """获取申请对应的评估"""
        result = await db.execute(
            select(self.model).where(self.model.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def get_detail(self, db: AsyncSession, id: str) -> Optional[Evaluation]:
        """获取评估详情（预加载申请及岗位）"""
        result = await db.execute(
            select(self.model)
            .options(selectinload(self.model.application).selectinload(Application.job_role))
            .where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_multi_filtered(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 20,
        sort_by: str = "evaluation_date",
        sort_order: str = "desc",
        **filters
    ) -> List[Tuple[Evaluation, Application, JobRole]]:
        """按条件查询评估列表，返回 (评估, 申请, 岗位) 三元组"""
        column = SORT_COLUMNS.get(sort_by, Evaluation.evaluation_date)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        query = self._filtered(select(self.model, Application, JobRole), **filters)
        query = query.order_by(ordering).offset(skip).limit(limit)
        result = await db.execute(query)
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def count_filtered(self, db: AsyncSession, **filters) -> int:
        """按条件统计评估数量"""
        query = self._filtered(select(func.count(self.model.id)), **filters)
        result = await db.execute(query)
        return result.scalar() or 0

    async def get_stats(self, db: AsyncSession, **filters) -> Dict[str, Any]:
        """分数统计：总数、均值、极值与高/中/低分布"""
        query = self._filtered(
            select(
                func.count(self.model.id),
                func.avg(self.model.score),
                func.min(self.model.score),
                func.max(self.model.score),
                func.sum(case((self.model.score >= 80, 1), else_=0)),
                func.sum(case(((self.model.score >= 60) & (self.model.score < 80), 1), else_=0)),
                func.sum(case((self.model.score < 60, 1), else_=0)),
            ),
            **filters
        )
        total, average, minimum, maximum, high, medium, low = (await db.execute(query)).one()
        return {
            "total": total or 0,
            "average_score": round(float(average), 2) if average is not None else 0,
            "min_score": minimum,
            "max_score": maximum,
            "distribution": {
                "high": high or 0,
                "medium": medium or 0,
                "low": low or 0,
            },
        }

    async def average_score(self, db: AsyncSession, *, owner_id: Optional[str] = None) -> Optional[float]:
        """评估平均分，无评估时返回 None"""
        query = self._filtered(select(func.avg(self.model.score)), owner_id=owner_id)
        result = await db.execute(query)
        average = result.scalar()
        return float(average) if average is not None else None

    async def top_candidates(
        self,
        db: AsyncSession,
        *,
        owner_id: Optional[str] = None,
        limit: int = 5
    ) -> List[Dict[str, Any]]:
        """得分最高的候选人"""
        query = self._filtered(
            select(self.model.score, Application, JobRole.title),
            owner_id=owner_id,
        )
        query = query.order_by(self.model.score.desc(), Application.applied_at.desc()).limit(limit)
        result = await db.execute(query)
        return [
            {
                "id": application.id,
                "candidate_name": application.candidate_name,
                "candidate_email": application.candidate_email,
                "job_title": title,
                "score": score,
                "applied_at": application.applied_at,
            }
            for score, application, title in result.all()
        ]

    async def score_buckets(
        self,
        db: AsyncSession,
        *,
        owner_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """按分数段统计评估数量，分数段固定且按分数从高到低排列"""
        counts = [
            func.sum(case(((self.model.score >= low) & (self.model.score <= high), 1), else_=0))
            for _, low, high in SCORE_BUCKETS
        ]
        row = (await db.execute(self._filtered(select(*counts), owner_id=owner_id))).one()
        return [
            {"range": label, "count": count or 0}
            for (label, _, _), count in zip(SCORE_BUCKETS, row)
        ]

    async def upsert(
        self,
        db: AsyncSession,
        *,
        application_id: str,
        data: Dict[str, Any]
    ) -> Evaluation:
        """已有评估时原地覆盖，否则新建"""
        existing = await self.get_by_application(db, application_id)
        if existing is None:
            return await self.create(db, obj_in={"application_id": application_id, **data})

        for field, value in data.items():
            setattr(existing, field, value)
        existing.evaluation_date = utcnow()
        await db.flush()
        await db.refresh(existing)
        return existing


evaluation_crud = CRUDEvaluation(Evaluation)
