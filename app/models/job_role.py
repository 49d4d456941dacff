"""
招聘岗位模型模块 - SQLModel 版本

岗位描述是 AI 评分的输入，岗位状态决定是否接受新的申请
"""
from typing import Optional, TYPE_CHECKING
from enum import Enum
from sqlalchemy import CheckConstraint, Column as SAColumn, String, ForeignKey
from sqlmodel import Field, Relationship

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse

if TYPE_CHECKING:
    from .user import User


class JobRoleStatus(str, Enum):
    """岗位状态枚举"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class EmploymentType(str, Enum):
    """用工类型枚举"""
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"


# ==================== 基础字段定义 ====================

class JobRoleBase(SQLModelBase):
    """岗位基础字段 - 用于创建和继承"""
    title: str = Field(..., min_length=3, max_length=255, description="岗位名称", index=True)
    description: str = Field(..., min_length=10, description="岗位描述/JD")
    requirements: Optional[str] = Field(None, description="任职要求")
    department: Optional[str] = Field(None, max_length=100, description="所属部门")
    location: Optional[str] = Field(None, max_length=255, description="工作地点")
    employment_type: EmploymentType = Field(EmploymentType.FULL_TIME, description="用工类型")
    salary_range: Optional[str] = Field(None, max_length=100, description="薪资范围")


# ==================== 表模型 ====================

class JobRole(JobRoleBase, TimestampMixin, IDMixin, table=True):
    """岗位表模型"""
    __tablename__ = "job_roles"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'closed')",
            name="ck_job_roles_status",
        ),
        CheckConstraint(
            "employment_type IN ('full-time', 'part-time', 'contract', 'internship')",
            name="ck_job_roles_employment_type",
        ),
    )

    employment_type: str = Field(EmploymentType.FULL_TIME.value, max_length=50, description="用工类型")
    status: str = Field(JobRoleStatus.ACTIVE.value, max_length=20, index=True, description="岗位状态")
    created_by: Optional[str] = Field(
        default=None,
        sa_column=SAColumn(String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True),
        description="创建人ID"
    )

    owner: Optional["User"] = Relationship()

    @property
    def is_open(self) -> bool:
        return self.status == JobRoleStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<JobRole(id={self.id}, title={self.title}, status={self.status})>"


# ==================== 请求 Schema ====================

class JobRoleCreate(JobRoleBase):
    """创建岗位请求"""
    pass


class JobRoleUpdate(SQLModelBase):
    """更新岗位请求 - 所有字段可选"""
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, min_length=10)
    requirements: Optional[str] = None
    department: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    employment_type: Optional[EmploymentType] = None
    salary_range: Optional[str] = Field(None, max_length=100)
    status: Optional[JobRoleStatus] = None


# ==================== 响应 Schema ====================

class JobRoleResponse(TimestampResponse):
    """岗位详情响应"""
    title: str
    description: str
    requirements: Optional[str]
    department: Optional[str]
    location: Optional[str]
    employment_type: str
    salary_range: Optional[str]
    status: str
    created_by: Optional[str]
    creator_name: Optional[str] = None
    creator_company: Optional[str] = None
    applications_count: int = Field(0, description="申请数量")
