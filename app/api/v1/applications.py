"""
应聘申请 API 路由
"""
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, ensure_owner, owner_scope
from app.core.database import get_db
from app.core.response import (
    success_response,
    created_response,
    paged_response,
    ResponseModel,
    PagedResponseModel,
    MessageResponse,
)
from app.core.exceptions import NotFoundException, BadRequestException
from app.crud import application_crud
from app.models.application import (
    Application,
    ApplicationStatus,
    ApplicationUpdate,
    ApplicationResponse,
    ApplicationListResponse,
    ApplicationDetailResponse,
)
from app.models.user import User
from app.services.submission import SubmissionPipeline, get_submission_pipeline

router = APIRouter()


def application_list_item(application: Application) -> dict:
    """列表项：附带岗位名称和评分摘要（需预加载 job_role 和 evaluation）"""
    item = ApplicationListResponse.model_validate(application)
    if application.job_role:
        item.job_title = application.job_role.title
        item.department = application.job_role.department
    if application.evaluation:
        item.score = application.evaluation.score
        item.evaluation_summary = application.evaluation.summary
    return item.model_dump()


async def get_owned_application(
    application_id: str,
    db: AsyncSession,
    user: User,
) -> Application:
    """获取申请详情并校验归属"""
    application = await application_crud.get_detail(db, application_id)
    if not application:
        raise NotFoundException(f"应聘申请不存在: {application_id}")
    ensure_owner(user, application.job_role.created_by if application.job_role else None)
    return application


@router.post(
    "",
    status_code=201,
    summary="投递简历",
    response_model=ResponseModel[ApplicationResponse],
)
async def submit_application(
    background_tasks: BackgroundTasks,
    cv: Optional[UploadFile] = File(None, description="简历文件（PDF）"),
    job_role_id: Optional[str] = Form(None, alias="jobRoleId"),
    candidate_name: Optional[str] = Form(None, alias="candidateName"),
    candidate_email: Optional[str] = Form(None, alias="candidateEmail"),
    candidate_phone: Optional[str] = Form(None, alias="candidatePhone"),
    db: AsyncSession = Depends(get_db),
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
):
    """
    候选人投递简历（无需登录）

    AI 评分在响应返回后于后台执行
    """
    file_bytes = None
    if cv:
        # 先按声明的大小拒绝，避免把超大文件读入内存
        pipeline.check_size(cv.size)
        file_bytes = await cv.read()
    application = await pipeline.submit(
        db,
        background_tasks,
        file_bytes=file_bytes,
        content_type=cv.content_type if cv else None,
        job_role_id=job_role_id,
        candidate_name=candidate_name,
        candidate_email=candidate_email,
        candidate_phone=candidate_phone,
    )
    return created_response(
        data=ApplicationResponse.model_validate(application).model_dump(),
        message="简历投递成功",
    )


@router.get("", summary="获取应聘申请列表", response_model=PagedResponseModel[ApplicationListResponse])
async def get_applications(
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    status: Optional[ApplicationStatus] = Query(None, description="状态筛选"),
    job_role_id: Optional[str] = Query(None, description="岗位ID筛选"),
    search: Optional[str] = Query(None, description="按候选人姓名或邮箱搜索"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    获取应聘申请列表，非管理员只能看到自己岗位下的申请
    """
    skip = (page - 1) * page_size
    filters = {
        "owner_id": owner_scope(user),
        "status": status.value if status else None,
        "job_role_id": job_role_id,
        "search": search,
    }

    applications = await application_crud.get_multi_filtered(
        db, skip=skip, limit=page_size, **filters
    )
    total = await application_crud.count_filtered(db, **filters)

    items = [application_list_item(a) for a in applications]
    return paged_response(items, total, page, page_size)


@router.get("/{application_id}", summary="获取应聘申请详情", response_model=ResponseModel[ApplicationDetailResponse])
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    获取应聘申请详情（含岗位信息和 AI 评估）
    """
    application = await get_owned_application(application_id, db, user)

    response = ApplicationDetailResponse.model_validate(application)
    if application.job_role:
        response.job_title = application.job_role.title
        response.department = application.job_role.department
        response.job_description = application.job_role.description
        response.job_requirements = application.job_role.requirements
        response.job_creator_id = application.job_role.created_by
    if application.evaluation:
        response.score = application.evaluation.score
        response.evaluation_summary = application.evaluation.summary

    return success_response(data=response.model_dump())


@router.patch("/{application_id}", summary="更新应聘申请", response_model=ResponseModel[ApplicationResponse])
async def update_application(
    application_id: str,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    更新应聘申请状态或候选人信息
    """
    application = await get_owned_application(application_id, db, user)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise BadRequestException("没有需要更新的字段")

    application = await application_crud.update(db, db_obj=application, obj_in=update_data)
    return success_response(
        data=ApplicationResponse.model_validate(application).model_dump(),
        message="应聘申请更新成功"
    )


@router.delete("/{application_id}", summary="删除应聘申请", response_model=MessageResponse)
async def delete_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
):
    """
    删除应聘申请（同时删除 AI 评估和简历文件）
    """
    await get_owned_application(application_id, db, user)
    await pipeline.delete(db, application_id)
    return success_response(message="应聘申请删除成功")
