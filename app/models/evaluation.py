"""
AI 评估模型模块 - SQLModel 版本

每份应聘申请至多一条评估记录，重新评估时原地覆盖
"""
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import CheckConstraint, UniqueConstraint, Column as SAColumn, String, ForeignKey, JSON
from sqlmodel import SQLModel, Field, Relationship

from .base import SQLModelBase, IDMixin, utcnow

if TYPE_CHECKING:
    from .application import Application


# 优势/不足条目数量，评分结果会被截断或补齐到该长度
EVALUATION_ITEM_COUNT = 3


# ==================== 表模型 ====================

class Evaluation(IDMixin, SQLModel, table=True):
    """评估表模型"""
    __tablename__ = "evaluations"
    __table_args__ = (
        UniqueConstraint("application_id", name="uq_evaluations_application"),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_evaluations_score"),
    )

    application_id: str = Field(
        sa_column=SAColumn(String(36), ForeignKey("applications.id", ondelete="CASCADE"), index=True, nullable=False),
        description="应聘申请ID"
    )
    score: int = Field(..., ge=0, le=100, description="匹配分数")
    strengths: List[str] = Field(default_factory=list, sa_column=SAColumn(JSON, nullable=False), description="优势")
    weaknesses: List[str] = Field(default_factory=list, sa_column=SAColumn(JSON, nullable=False), description="不足")
    summary: str = Field(..., description="评估总结")
    model_used: Optional[str] = Field(None, max_length=100, description="评估所用模型")
    evaluation_date: datetime = Field(default_factory=utcnow, nullable=False, index=True, description="评估时间")
    created_at: datetime = Field(default_factory=utcnow, nullable=False, description="创建时间")

    application: Optional["Application"] = Relationship(back_populates="evaluation")

    def __repr__(self) -> str:
        return f"<Evaluation(id={self.id}, application_id={self.application_id}, score={self.score})>"


# ==================== 请求 Schema ====================

class ReevaluateRequest(SQLModelBase):
    """重新评估请求"""
    application_id: str = Field(..., min_length=1, description="应聘申请ID")


class CandidateCompareRequest(SQLModelBase):
    """候选人对比请求，候选人 ID 即应聘申请 ID"""
    candidate_ids: List[str] = Field(..., min_length=2, max_length=10, description="应聘申请ID列表")
    role_id: str = Field(..., min_length=1, description="岗位ID")


# ==================== 响应 Schema ====================

class EvaluationResponse(SQLModelBase):
    """评估响应"""
    id: str
    application_id: str
    score: int
    strengths: List[str]
    weaknesses: List[str]
    summary: str
    model_used: Optional[str]
    evaluation_date: datetime
    created_at: datetime


class EvaluationListResponse(EvaluationResponse):
    """评估列表项响应（附带候选人和岗位信息）"""
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None
    application_status: Optional[str] = None
    job_role_id: Optional[str] = None
    job_title: Optional[str] = None


class CandidateRanking(SQLModelBase):
    """对比排序项"""
    rank: int
    application_id: str
    candidate_name: str
    score: int
    reason: str


class CandidateComparison(SQLModelBase):
    """候选人对比结果"""
    role_id: str
    job_title: str
    ranking: List[CandidateRanking]
    recommended_id: str
    summary: str
    model: Optional[str] = None


class ScoreDistribution(SQLModelBase):
    """分数分布"""
    high: int = Field(0, description=">= 80")
    medium: int = Field(0, description="60 ~ 79")
    low: int = Field(0, description="< 60")


class EvaluationStats(SQLModelBase):
    """评估统计"""
    total: int = 0
    average_score: float = 0
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    distribution: ScoreDistribution = Field(default_factory=ScoreDistribution)
