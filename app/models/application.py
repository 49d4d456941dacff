"""
应聘申请模型模块 - SQLModel 版本

Application 连接岗位与候选人提交的简历文件，
每份申请至多对应一条 AI 评估记录
"""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from enum import Enum
from sqlalchemy import CheckConstraint, Column as SAColumn, String, ForeignKey
from sqlmodel import SQLModel, Field, Relationship
from pydantic import EmailStr

from .base import SQLModelBase, IDMixin, utcnow
from .evaluation import EvaluationResponse

if TYPE_CHECKING:
    from .job_role import JobRole
    from .evaluation import Evaluation


class ApplicationStatus(str, Enum):
    """应聘申请状态枚举"""
    PENDING = "pending"              # 待处理
    REVIEWING = "reviewing"          # 审核中
    INTERVIEWED = "interviewed"      # 已面试
    HIRED = "hired"                  # 已录用
    REJECTED = "rejected"            # 已拒绝


# ==================== 表模型 ====================

class Application(IDMixin, SQLModel, table=True):
    """
    应聘申请表模型

    (job_role_id, candidate_email) 的唯一性只由提交前的查重保证，
    数据库层没有唯一约束
    """
    __tablename__ = "applications"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'reviewing', 'interviewed', 'hired', 'rejected')",
            name="ck_applications_status",
        ),
    )

    job_role_id: str = Field(
        sa_column=SAColumn(String(36), ForeignKey("job_roles.id", ondelete="CASCADE"), index=True, nullable=False),
        description="岗位ID"
    )

    # 候选人信息
    candidate_name: str = Field(..., max_length=255, description="候选人姓名")
    candidate_email: str = Field(..., max_length=255, index=True, description="候选人邮箱")
    candidate_phone: Optional[str] = Field(None, max_length=50, description="联系电话")

    # 简历文件
    cv_file_key: str = Field(..., max_length=512, description="对象存储键")
    cv_file_path: str = Field(..., description="简历文件定位地址")
    cv_text: Optional[str] = Field(None, description="简历文本")

    status: str = Field(ApplicationStatus.PENDING.value, max_length=20, index=True, description="申请状态")
    applied_at: datetime = Field(default_factory=utcnow, nullable=False, index=True, description="投递时间")
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, description="更新时间")

    # 关联关系
    job_role: Optional["JobRole"] = Relationship()
    evaluation: Optional["Evaluation"] = Relationship(
        back_populates="application",
        sa_relationship_kwargs={"uselist": False, "cascade": "all, delete-orphan", "passive_deletes": True}
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status})>"


# ==================== 请求 Schema ====================

class ApplicationSubmit(SQLModelBase):
    """投递表单字段（multipart 中的文本字段）"""
    job_role_id: str = Field(..., min_length=1, max_length=36, alias="jobRoleId", description="岗位ID")
    candidate_name: str = Field(..., min_length=2, max_length=255, alias="candidateName", description="候选人姓名")
    candidate_email: EmailStr = Field(..., max_length=255, alias="candidateEmail", description="候选人邮箱")
    candidate_phone: Optional[str] = Field(None, max_length=50, alias="candidatePhone", description="联系电话")


class ApplicationUpdate(SQLModelBase):
    """更新应聘申请请求"""
    status: Optional[ApplicationStatus] = None
    candidate_name: Optional[str] = Field(None, min_length=2, max_length=255)
    candidate_email: Optional[EmailStr] = Field(None, max_length=255)
    candidate_phone: Optional[str] = Field(None, max_length=50)


# ==================== 响应 Schema ====================

class ApplicationResponse(SQLModelBase):
    """应聘申请响应"""
    id: str
    job_role_id: str
    candidate_name: str
    candidate_email: str
    candidate_phone: Optional[str]
    cv_file_path: str
    status: str
    applied_at: datetime
    updated_at: datetime


class ApplicationListResponse(ApplicationResponse):
    """应聘申请列表项响应（附带岗位和评分摘要）"""
    job_title: Optional[str] = None
    department: Optional[str] = None
    score: Optional[int] = None
    evaluation_summary: Optional[str] = None


class ApplicationDetailResponse(ApplicationListResponse):
    """应聘申请详情响应"""
    cv_text: Optional[str] = None
    job_description: Optional[str] = None
    job_requirements: Optional[str] = None
    job_creator_id: Optional[str] = None
    evaluation: Optional[EvaluationResponse] = None
