"""
API v1 路由模块
"""
from . import users, roles, applications, evaluations, dashboard, candidates

__all__ = [
    "users",
    "roles",
    "applications",
    "evaluations",
    "dashboard",
    "candidates",
]
