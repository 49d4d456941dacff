"""
API 公共依赖

身份认证由外部认证网关完成，网关通过 X-User-Id / X-User-Email 请求头
传递已验证的用户身份
"""
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import UnauthorizedException, ForbiddenException
from app.crud import user_crud
from app.models.user import User


async def get_optional_user(
    x_user_id: Optional[str] = Header(None, description="认证网关传递的用户ID"),
    x_user_email: Optional[str] = Header(None, description="认证网关传递的用户邮箱"),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """获取当前用户，未认证时返回 None"""
    if not x_user_id:
        return None
    if not x_user_email:
        raise UnauthorizedException("认证信息不完整")
    return await user_crud.get_or_create(db, id=x_user_id, email=x_user_email)


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """获取当前用户，未认证时返回 401"""
    if user is None:
        raise UnauthorizedException()
    return user


def ensure_owner(user: User, created_by: Optional[str]) -> None:
    """岗位创建者或管理员才能管理岗位及其申请、评估"""
    if user.is_admin or (created_by is not None and created_by == user.id):
        return
    raise ForbiddenException()


def owner_scope(user: User) -> Optional[str]:
    """列表查询的归属过滤条件，管理员不受限"""
    return None if user.is_admin else user.id
