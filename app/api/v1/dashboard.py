"""
仪表盘 API 路由

统计范围为当前用户创建的岗位
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.core.response import success_response, DictResponse
from app.crud import job_role_crud, application_crud, evaluation_crud
from app.models.application import ApplicationStatus
from app.models.user import User

router = APIRouter()

# 待处理的申请状态
PENDING_REVIEW_STATUSES = [ApplicationStatus.PENDING.value, ApplicationStatus.REVIEWING.value]

TOP_CANDIDATES_LIMIT = 5
TREND_WEEKS = 8


@router.get("/stats", summary="获取仪表盘统计", response_model=DictResponse)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    岗位数、候选人数、平均分（取整）和待处理申请数
    """
    total_roles = await job_role_crud.count_filtered(db, created_by=user.id)
    total_candidates = await application_crud.count_filtered(db, owner_id=user.id)
    average = await evaluation_crud.average_score(db, owner_id=user.id)
    pending_reviews = await application_crud.count_by_statuses(
        db, PENDING_REVIEW_STATUSES, owner_id=user.id
    )

    return success_response(data={
        "total_roles": total_roles,
        "total_candidates": total_candidates,
        "average_score": round(average) if average is not None else 0,
        "pending_reviews": pending_reviews,
    })


@router.get("/activity", summary="获取最近动态", response_model=DictResponse)
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=50, description="返回条数"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    最近的申请和新建岗位，按时间倒序合并
    """
    applications = await application_crud.get_multi_filtered(db, limit=limit, owner_id=user.id)
    roles = await job_role_crud.get_multi_filtered(db, limit=limit, created_by=user.id)

    activities = [
        {
            "id": a.id,
            "type": "application",
            "title": f"新申请: {a.job_role.title if a.job_role else ''}",
            "description": f"{a.candidate_name} 投递了该岗位",
            "time": a.applied_at,
            "score": a.evaluation.score if a.evaluation else None,
        }
        for a in applications
    ]
    activities.extend(
        {
            "id": role.id,
            "type": "role",
            "title": f"新建岗位: {role.title}",
            "description": f"所属部门: {role.department or '未指定'}",
            "time": role.created_at,
            "score": None,
        }
        for role, _ in roles
    )
    activities.sort(key=lambda item: item["time"], reverse=True)

    return success_response(data={"activities": activities[:limit]})


@router.get("/analytics", summary="获取招聘分析数据", response_model=DictResponse)
async def get_dashboard_analytics(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    分析面板：高分候选人、分数段分布、岗位统计和近 8 周投递趋势
    """
    average = await evaluation_crud.average_score(db, owner_id=user.id)

    return success_response(data={
        "total_candidates": await application_crud.count_filtered(db, owner_id=user.id),
        "total_roles": await job_role_crud.count_filtered(db, created_by=user.id),
        "average_score": round(average) if average is not None else 0,
        "top_candidates": await evaluation_crud.top_candidates(
            db, owner_id=user.id, limit=TOP_CANDIDATES_LIMIT
        ),
        "score_distribution": await evaluation_crud.score_buckets(db, owner_id=user.id),
        "role_stats": await job_role_crud.role_stats(db, created_by=user.id),
        "weekly_applications": await application_crud.weekly_counts(
            db, owner_id=user.id, weeks=TREND_WEEKS
        ),
    })
