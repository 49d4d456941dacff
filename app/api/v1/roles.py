"""
招聘岗位 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, ensure_owner
from app.core.database import get_db
from app.core.response import (
    success_response,
    created_response,
    paged_response,
    ResponseModel,
    PagedResponseModel,
    DictResponse,
)
from app.core.exceptions import NotFoundException, BadRequestException
from app.crud import job_role_crud, application_crud, user_crud
from app.models.application import ApplicationStatus, ApplicationListResponse
from app.models.job_role import (
    JobRole,
    JobRoleStatus,
    EmploymentType,
    JobRoleCreate,
    JobRoleUpdate,
    JobRoleResponse,
)
from app.models.user import User
from .applications import application_list_item

router = APIRouter()


def role_item(role: JobRole, applications_count: int, owner: Optional[User]) -> dict:
    """岗位响应，附带创建人信息和申请数量"""
    item = JobRoleResponse.model_validate(role)
    item.applications_count = applications_count
    if owner:
        item.creator_name = owner.full_name
        item.creator_company = owner.company_name
    return item.model_dump()


async def get_owned_role(role_id: str, db: AsyncSession, user: User) -> JobRole:
    """获取岗位并校验归属"""
    role = await job_role_crud.get(db, role_id)
    if not role:
        raise NotFoundException(f"岗位不存在: {role_id}")
    ensure_owner(user, role.created_by)
    return role


@router.get("", summary="获取岗位列表", response_model=PagedResponseModel[JobRoleResponse])
async def get_roles(
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    status: str = Query(JobRoleStatus.ACTIVE.value, description="岗位状态，all 表示不限"),
    department: Optional[str] = Query(None, description="部门（模糊匹配）"),
    employment_type: Optional[EmploymentType] = Query(None, description="用工类型"),
    search: Optional[str] = Query(None, description="按名称或描述搜索"),
    created_by: Optional[str] = Query(None, description="创建人ID"),
    db: AsyncSession = Depends(get_db),
):
    """
    获取岗位列表（公开），默认只返回开放中的岗位
    """
    if status != "all" and status not in {s.value for s in JobRoleStatus}:
        raise BadRequestException(f"无效的岗位状态: {status}")

    skip = (page - 1) * page_size
    filters = {
        "status": None if status == "all" else status,
        "department": department,
        "employment_type": employment_type.value if employment_type else None,
        "search": search,
        "created_by": created_by,
    }

    rows = await job_role_crud.get_multi_filtered(db, skip=skip, limit=page_size, **filters)
    total = await job_role_crud.count_filtered(db, **filters)

    items = [role_item(role, count, role.owner) for role, count in rows]
    return paged_response(items, total, page, page_size)


@router.post("", status_code=201, summary="创建岗位", response_model=ResponseModel[JobRoleResponse])
async def create_role(
    data: JobRoleCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    创建新岗位，创建人为当前用户
    """
    role = await job_role_crud.create(db, obj_in={
        **data.model_dump(),
        "created_by": user.id,
        "status": JobRoleStatus.ACTIVE.value,
    })
    return created_response(data=role_item(role, 0, user), message="岗位创建成功")


@router.get("/{role_id}", summary="获取岗位详情", response_model=ResponseModel[JobRoleResponse])
async def get_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    根据 ID 获取岗位详情（公开）
    """
    found = await job_role_crud.get_with_count(db, role_id)
    if not found:
        raise NotFoundException(f"岗位不存在: {role_id}")

    role, count = found
    return success_response(data=role_item(role, count, role.owner))


@router.patch("/{role_id}", summary="更新岗位", response_model=ResponseModel[JobRoleResponse])
async def update_role(
    role_id: str,
    data: JobRoleUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    更新岗位信息或状态
    """
    role = await get_owned_role(role_id, db, user)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise BadRequestException("没有需要更新的字段")

    role = await job_role_crud.update(db, db_obj=role, obj_in=update_data)
    count = await job_role_crud.count_applications(db, role.id)
    owner = await user_crud.get(db, role.created_by) if role.created_by else None
    return success_response(
        data=role_item(role, count, owner),
        message="岗位更新成功"
    )


@router.delete("/{role_id}", summary="删除岗位", response_model=DictResponse)
async def delete_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    删除岗位

    已有申请的岗位不会被删除，而是改为关闭状态
    """
    role = await get_owned_role(role_id, db, user)

    if await job_role_crud.count_applications(db, role.id) > 0:
        await job_role_crud.update(db, db_obj=role, obj_in={"status": JobRoleStatus.CLOSED.value})
        return success_response(
            data={"id": role.id, "deleted": False, "status": JobRoleStatus.CLOSED.value},
            message="岗位已有申请，已改为关闭状态"
        )

    await job_role_crud.remove(db, db_obj=role)
    return success_response(
        data={"id": role_id, "deleted": True},
        message="岗位删除成功"
    )


@router.get(
    "/{role_id}/applications",
    summary="获取岗位下的申请",
    response_model=PagedResponseModel[ApplicationListResponse],
)
async def get_role_applications(
    role_id: str,
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    status: Optional[ApplicationStatus] = Query(None, description="状态筛选"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    获取岗位下的所有申请（附带评分）
    """
    await get_owned_role(role_id, db, user)

    skip = (page - 1) * page_size
    filters = {
        "job_role_id": role_id,
        "status": status.value if status else None,
    }
    applications = await application_crud.get_multi_filtered(
        db, skip=skip, limit=page_size, **filters
    )
    total = await application_crud.count_filtered(db, **filters)

    items = [application_list_item(a) for a in applications]
    return paged_response(items, total, page, page_size)
