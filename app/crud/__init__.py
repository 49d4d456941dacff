"""
CRUD 操作模块
"""
from .user import user_crud
from .job_role import job_role_crud
from .application import application_crud
from .evaluation import evaluation_crud

__all__ = [
    "user_crud",
    "job_role_crud",
    "application_crud",
    "evaluation_crud",
]
