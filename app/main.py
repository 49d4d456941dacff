"""
FastAPI 主应用入口

招聘管理系统后端：岗位发布、简历投递与 AI 简历评分
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from loguru import logger

from app.agents.llm_client import get_llm_client
from app.api import api_router
from app.core.config import settings
from app.core.database import init_db, close_db
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from app.core.response import success_response, DictResponse
from app.services.storage import LocalObjectStore, get_object_store

API_VERSION = "1.0.0"
API_PREFIX = "/api/v1"


def route_operation_id(route: APIRoute) -> str:
    """OpenAPI operationId 直接使用路由函数名"""
    return route.name


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "启动 {} (env={}, debug={}, storage={}, model={})",
        settings.app_name, settings.app_env, settings.debug,
        settings.storage_backend, settings.llm_model,
    )
    await init_db()

    store = get_object_store()
    if isinstance(store, LocalObjectStore):
        store.ensure_root()
        logger.info("简历存储目录: {}", store.root)

    if not get_llm_client().is_configured():
        logger.warning("LLM API Key 未配置，简历评分将使用兜底结果")

    yield

    await close_db()
    logger.info("{} 已停止", settings.app_name)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def register_system_routes(app: FastAPI) -> None:
    """健康检查和根路径，不属于业务 API 版本"""

    @app.get("/health", tags=["系统"], response_model=DictResponse)
    async def health_check():
        return success_response(data={
            "status": "healthy",
            "storage_backend": settings.storage_backend,
            "llm_configured": get_llm_client().is_configured(),
        })

    @app.get("/", tags=["系统"], response_model=DictResponse)
    async def root():
        return success_response(data={
            "name": settings.app_name,
            "version": API_VERSION,
            "api": API_PREFIX,
            "docs": "/docs" if settings.debug else None,
        })


def create_app() -> FastAPI:
    """
    创建 FastAPI 应用实例

    测试中每次调用都会得到新的实例，便于覆盖依赖
    """
    app = FastAPI(
        title=settings.app_name,
        description="岗位管理、简历投递与 AI 评分 API",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        generate_unique_id_function=route_operation_id,
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)
    register_system_routes(app)

    # 通配来源时浏览器不允许携带凭据
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
