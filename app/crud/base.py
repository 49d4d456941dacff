"""
CRUD 基类模块 - SQLModel 版

只负责 flush，事务的提交和回滚由调用方（get_db 或投递流程）决定
"""
from typing import Generic, TypeVar, Type, Optional, Any, Dict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.models.base import utcnow

ModelType = TypeVar("ModelType", bound=SQLModel)


class CRUDBase(Generic[ModelType]):
    """单表通用操作，列表查询由子类按各自的筛选条件实现"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: str) -> Optional[ModelType]:
        result = await db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: SQLModel | Dict[str, Any]
    ) -> ModelType:
        """
        创建记录

        obj_in 可以是字段字典，也可以是请求 Schema
        """
        if isinstance(obj_in, dict):
            db_obj = self.model(**obj_in)
        else:
            db_obj = self.model.model_validate(obj_in)

        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: SQLModel | Dict[str, Any]
    ) -> ModelType:
        """
        更新记录，值为 None 的字段保留原值

        refresh 之后关系属性会过期，需要关联数据时请重新查询
        """
        if isinstance(obj_in, dict):
            changes = obj_in
        else:
            changes = obj_in.model_dump(exclude_unset=True)

        for field, value in changes.items():
            if value is not None:
                setattr(db_obj, field, value)
        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = utcnow()

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def remove(self, db: AsyncSession, *, db_obj: ModelType) -> None:
        await db.delete(db_obj)
        await db.flush()
