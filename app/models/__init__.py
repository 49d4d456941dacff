"""
SQLModel 模型模块

使用 SQLModel 统一 ORM Model 和 Pydantic Schema
"""
from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow, new_id
from .user import User, UserRole, UserUpdate, UserResponse
from .job_role import (
    JobRole, JobRoleStatus, EmploymentType,
    JobRoleCreate, JobRoleUpdate, JobRoleResponse
)
from .evaluation import (
    Evaluation, EVALUATION_ITEM_COUNT, ReevaluateRequest,
    EvaluationResponse, EvaluationListResponse, EvaluationStats, ScoreDistribution,
    CandidateCompareRequest, CandidateRanking, CandidateComparison
)
from .application import (
    Application, ApplicationStatus, ApplicationSubmit, ApplicationUpdate,
    ApplicationResponse, ApplicationListResponse, ApplicationDetailResponse
)

__all__ = [
    # Base
    "SQLModelBase",
    "TimestampMixin",
    "IDMixin",
    "TimestampResponse",
    "utcnow",
    "new_id",
    # User
    "User",
    "UserRole",
    "UserUpdate",
    "UserResponse",
    # JobRole
    "JobRole",
    "JobRoleStatus",
    "EmploymentType",
    "JobRoleCreate",
    "JobRoleUpdate",
    "JobRoleResponse",
    # Application
    "Application",
    "ApplicationStatus",
    "ApplicationSubmit",
    "ApplicationUpdate",
    "ApplicationResponse",
    "ApplicationListResponse",
    "ApplicationDetailResponse",
    # Evaluation
    "Evaluation",
    "EVALUATION_ITEM_COUNT",
    "ReevaluateRequest",
    "EvaluationResponse",
    "EvaluationListResponse",
    "EvaluationStats",
    "ScoreDistribution",
    "CandidateCompareRequest",
    "CandidateRanking",
    "CandidateComparison",
]
