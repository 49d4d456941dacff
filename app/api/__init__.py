"""
API 路由模块
"""
from fastapi import APIRouter

from .v1 import users, roles, applications, evaluations, dashboard, candidates

# 创建主路由
api_router = APIRouter()

# 注册各模块路由
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["用户档案"]
)
api_router.include_router(
    roles.router,
    prefix="/roles",
    tags=["岗位管理"]
)
api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["应聘申请"]
)
api_router.include_router(
    evaluations.router,
    prefix="/evaluations",
    tags=["AI评估"]
)
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["仪表盘"]
)
api_router.include_router(
    candidates.router,
    prefix="/candidates",
    tags=["候选人对比"]
)
