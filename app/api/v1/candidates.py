"""
候选人对比 API 路由

候选人的列表、详情和删除由 /applications 接口提供
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents.comparison import CandidateComparator, CandidateProfile, get_candidate_comparator
from app.api.deps import get_current_user, ensure_owner
from app.core.database import get_db
from app.core.response import success_response, ResponseModel
from app.core.exceptions import BadRequestException, NotFoundException
from app.crud import application_crud, job_role_crud
from app.models.evaluation import CandidateCompareRequest, CandidateComparison
from app.models.user import User

router = APIRouter()


@router.post("/compare", summary="对比候选人", response_model=ResponseModel[CandidateComparison])
async def compare_candidates(
    payload: CandidateCompareRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    comparator: CandidateComparator = Depends(get_candidate_comparator),
):
    """
    对同一岗位下已完成评估的候选人进行 AI 横向对比
    """
    job_role = await job_role_crud.get(db, payload.role_id)
    if not job_role:
        raise NotFoundException("岗位不存在")
    ensure_owner(user, job_role.created_by)

    # 保持请求中的顺序去重
    candidate_ids = list(dict.fromkeys(payload.candidate_ids))
    if len(candidate_ids) < 2:
        raise BadRequestException("至少需要选择两名不同的候选人")

    applications = await application_crud.get_many_for_role(
        db, job_role_id=job_role.id, ids=candidate_ids
    )
    if len(applications) != len(candidate_ids):
        raise NotFoundException("部分候选人不存在或不属于该岗位")

    without_evaluation = [a.candidate_name for a in applications if a.evaluation is None]
    if without_evaluation:
        raise BadRequestException(f"以下候选人尚未完成评估: {', '.join(without_evaluation)}")

    by_id = {application.id: application for application in applications}
    profiles = [
        CandidateProfile(
            id=application.id,
            name=application.candidate_name,
            score=application.evaluation.score,
            strengths=list(application.evaluation.strengths or []),
            weaknesses=list(application.evaluation.weaknesses or []),
            summary=application.evaluation.summary or "",
        )
        for application in (by_id[candidate_id] for candidate_id in candidate_ids)
    ]

    result = await comparator.compare(job_role.title, job_role.description, profiles)
    return success_response(
        data=CandidateComparison(
            role_id=job_role.id,
            job_title=job_role.title,
            **result.to_dict(),
        ).model_dump(),
        message="对比完成",
    )
