"""
用户 CRUD 操作
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.models.user import User, UserRole
from .base import CRUDBase


class CRUDUser(CRUDBase[User]):
    """用户 CRUD 操作类"""

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        """根据邮箱获取用户"""
        result = await db.execute(
            select(self.model).where(self.model.email == email)
        )
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        db: AsyncSession,
        *,
        id: str,
        email: str,
        role: str = UserRole.RECRUITER.value
    ) -> User:
        """
        获取用户档案，不存在时按认证信息创建

        首次出现的用户默认为招聘专员
        """
        user = await self.get(db, id)
        if user:
            return user
        user = await self.create(db, obj_in={"id": id, "email": email, "role": role})
        logger.info("新建用户档案: id={}, email={}", id, email)
        return user


user_crud = CRUDUser(User)
