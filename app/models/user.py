"""
用户模型模块

用户身份由外部认证服务签发，这里只保存档案和角色，
作为岗位归属和权限判断的依据
"""
from typing import Optional
from enum import Enum
from sqlalchemy import CheckConstraint
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, TimestampResponse


class UserRole(str, Enum):
    """用户角色枚举"""
    ADMIN = "admin"
    RECRUITER = "recruiter"
    HR_MANAGER = "hr_manager"


# ==================== 基础字段定义 ====================

class UserBase(SQLModelBase):
    """用户档案字段"""
    full_name: Optional[str] = Field(None, max_length=255, description="姓名")
    avatar_url: Optional[str] = Field(None, description="头像地址")
    company_name: Optional[str] = Field(None, max_length=255, description="公司名称")


# ==================== 表模型 ====================

class User(UserBase, TimestampMixin, table=True):
    """用户表模型"""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'recruiter', 'hr_manager')",
            name="ck_users_role",
        ),
    )

    # 主键沿用认证服务中的用户 ID
    id: str = Field(primary_key=True, max_length=64, description="用户ID")
    email: str = Field(..., max_length=255, unique=True, index=True, description="邮箱")
    role: str = Field(UserRole.RECRUITER.value, max_length=50, description="角色")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"


# ==================== 请求 Schema ====================

class UserUpdate(UserBase):
    """更新个人档案请求 - 角色不可自行修改"""
    pass


# ==================== 响应 Schema ====================

class UserResponse(TimestampResponse):
    """用户档案响应"""
    email: str
    full_name: Optional[str]
    avatar_url: Optional[str]
    company_name: Optional[str]
    role: str
