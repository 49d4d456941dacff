"""
用户档案 API 路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.core.exceptions import BadRequestException
from app.core.response import success_response, ResponseModel
from app.crud import user_crud
from app.models.user import User, UserUpdate, UserResponse

router = APIRouter()


@router.get("/me", summary="获取当前用户档案", response_model=ResponseModel[UserResponse])
async def get_me(user: User = Depends(get_current_user)):
    """
    首次访问时按认证信息自动建档
    """
    return success_response(data=UserResponse.model_validate(user).model_dump())


@router.patch("/me", summary="更新当前用户档案", response_model=ResponseModel[UserResponse])
async def update_me(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    更新姓名、头像和公司名称，角色不可自行修改
    """
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise BadRequestException("没有需要更新的字段")

    user = await user_crud.update(db, db_obj=user, obj_in=update_data)
    return success_response(
        data=UserResponse.model_validate(user).model_dump(),
        message="档案更新成功"
    )
