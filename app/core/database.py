"""
数据库配置模块

使用 SQLAlchemy 2.0 异步模式，连接池通过会话工厂显式注入
"""
from pathlib import Path
from typing import AsyncGenerator
from fastapi import Depends
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

from .config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite 默认不检查外键，每个新连接上打开 PRAGMA foreign_keys"""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """基于引擎创建异步会话工厂"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# 创建异步引擎
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,  # 开发环境打印 SQL
    future=True,
)
enable_sqlite_foreign_keys(engine)

# 创建异步会话工厂
AsyncSessionLocal = create_session_factory(engine)

# 所有表模型均继承 SQLModel，元数据统一挂在 SQLModel.metadata 上
Base = SQLModel


def get_session_factory() -> async_sessionmaker:
    """
    会话工厂依赖注入

    后台任务通过它获取独立会话，测试中可整体覆盖
    """
    return AsyncSessionLocal


async def get_db(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """
    数据库会话依赖注入

    使用方式:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(target: AsyncEngine = engine):
    """初始化数据库（创建所有表）"""
    # 导入模型以注册表结构
    from app import models  # noqa: F401

    url = target.url
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(target: AsyncEngine = engine):
    """关闭数据库连接"""
    await target.dispose()
