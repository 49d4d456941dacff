"""
AI 评估 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, ensure_owner, owner_scope
from app.core.database import get_db
from app.core.response import (
    success_response,
    paged_response,
    ResponseModel,
    PagedResponseModel,
    MessageResponse,
)
from app.core.exceptions import NotFoundException
from app.crud import application_crud, evaluation_crud
from app.crud.evaluation import SORT_COLUMNS
from app.models.application import Application
from app.models.evaluation import (
    Evaluation,
    ReevaluateRequest,
    EvaluationResponse,
    EvaluationListResponse,
    EvaluationStats,
)
from app.models.job_role import JobRole
from app.models.user import User
from app.services.submission import SubmissionPipeline, get_submission_pipeline

router = APIRouter()


def evaluation_item(
    evaluation: Evaluation,
    application: Optional[Application],
    job_role: Optional[JobRole],
) -> dict:
    """评估响应，附带候选人和岗位信息"""
    item = EvaluationListResponse.model_validate(evaluation)
    if application:
        item.candidate_name = application.candidate_name
        item.candidate_email = application.candidate_email
        item.application_status = application.status
        item.job_role_id = application.job_role_id
    if job_role:
        item.job_title = job_role.title
    return item.model_dump()


@router.get("", summary="获取评估列表", response_model=PagedResponseModel[EvaluationListResponse])
async def get_evaluations(
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    job_role_id: Optional[str] = Query(None, description="岗位ID筛选"),
    min_score: Optional[int] = Query(None, ge=0, le=100, description="最低分"),
    max_score: Optional[int] = Query(None, ge=0, le=100, description="最高分"),
    sort_by: str = Query("evaluation_date", description="排序字段"),
    sort_order: str = Query("desc", description="排序方向 asc/desc"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    获取评估列表，非管理员只能看到自己岗位下的评估

    无效的排序字段按评估时间处理，无效的排序方向按倒序处理
    """
    if sort_by not in SORT_COLUMNS:
        sort_by = "evaluation_date"
    if sort_order not in ("asc", "desc"):
        sort_order = "desc"

    skip = (page - 1) * page_size
    filters = {
        "owner_id": owner_scope(user),
        "job_role_id": job_role_id,
        "min_score": min_score,
        "max_score": max_score,
    }

    rows = await evaluation_crud.get_multi_filtered(
        db, skip=skip, limit=page_size, sort_by=sort_by, sort_order=sort_order, **filters
    )
    total = await evaluation_crud.count_filtered(db, **filters)

    items = [evaluation_item(e, a, r) for e, a, r in rows]
    return paged_response(items, total, page, page_size)


@router.get("/stats", summary="获取评估统计", response_model=ResponseModel[EvaluationStats])
async def get_evaluation_stats(
    job_role_id: Optional[str] = Query(None, description="岗位ID筛选"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    分数统计：总数、平均分、最高/最低分及高/中/低分布
    """
    stats = await evaluation_crud.get_stats(
        db, owner_id=owner_scope(user), job_role_id=job_role_id
    )
    return success_response(data=stats)


@router.get(
    "/application/{application_id}",
    summary="获取申请的评估",
    response_model=ResponseModel[EvaluationListResponse],
)
async def get_evaluation_by_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    根据申请 ID 获取评估
    """
    application = await application_crud.get_detail(db, application_id)
    if not application:
        raise NotFoundException(f"应聘申请不存在: {application_id}")
    ensure_owner(user, application.job_role.created_by if application.job_role else None)
    if not application.evaluation:
        raise NotFoundException("该申请尚未完成评估")

    return success_response(
        data=evaluation_item(application.evaluation, application, application.job_role)
    )


@router.post("/reevaluate", summary="重新评估", response_model=ResponseModel[EvaluationResponse])
async def reevaluate(
    data: ReevaluateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
):
    """
    同步重新评估简历，已有评估时覆盖原结果
    """
    application = await application_crud.get_detail(db, data.application_id)
    if not application:
        raise NotFoundException(f"应聘申请不存在: {data.application_id}")
    ensure_owner(user, application.job_role.created_by if application.job_role else None)

    evaluation = await pipeline.reevaluate(db, data.application_id)
    return success_response(
        data=EvaluationResponse.model_validate(evaluation).model_dump(),
        message="重新评估完成"
    )


@router.get("/{evaluation_id}", summary="获取评估详情", response_model=ResponseModel[EvaluationListResponse])
async def get_evaluation(
    evaluation_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    根据 ID 获取评估详情
    """
    evaluation = await evaluation_crud.get_detail(db, evaluation_id)
    if not evaluation:
        raise NotFoundException(f"评估不存在: {evaluation_id}")

    application = evaluation.application
    job_role = application.job_role if application else None
    ensure_owner(user, job_role.created_by if job_role else None)

    return success_response(data=evaluation_item(evaluation, application, job_role))


@router.delete("/{evaluation_id}", summary="删除评估", response_model=MessageResponse)
async def delete_evaluation(
    evaluation_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    删除评估记录（申请本身保留）
    """
    evaluation = await evaluation_crud.get_detail(db, evaluation_id)
    if not evaluation:
        raise NotFoundException(f"评估不存在: {evaluation_id}")

    application = evaluation.application
    job_role = application.job_role if application else None
    ensure_owner(user, job_role.created_by if job_role else None)

    await evaluation_crud.remove(db, db_obj=evaluation)
    return success_response(message="评估删除成功")
