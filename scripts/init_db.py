"""
数据库初始化脚本：创建数据表，可选写入管理员账号

用法：
    python scripts/init_db.py
    python scripts/init_db.py --admin-id <用户ID> --admin-email admin@example.com
"""
import argparse
import asyncio
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

from loguru import logger  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.database import AsyncSessionLocal, close_db, init_db  # noqa: E402
from app.crud import user_crud  # noqa: E402
from app.models.user import UserRole  # noqa: E402


async def seed_admin(user_id: str, email: str) -> None:
    """创建管理员账号，已存在时提升为管理员"""
    async with AsyncSessionLocal() as session:
        user = await user_crud.get_or_create(
            session, id=user_id, email=email, role=UserRole.ADMIN.value
        )
        if user.role != UserRole.ADMIN.value:
            await user_crud.update(session, db_obj=user, obj_in={"role": UserRole.ADMIN.value})
        await session.commit()
    logger.info("管理员账号已就绪: id={}, email={}", user_id, email)


async def main(admin_id: str | None, admin_email: str | None) -> None:
    logger.info("数据库地址: {}", settings.database_url)
    await init_db()
    logger.info("数据表创建完成")

    if admin_id and admin_email:
        await seed_admin(admin_id, admin_email)
    elif admin_id or admin_email:
        logger.warning("管理员 ID 和邮箱需要同时提供，已跳过管理员初始化")

    await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="初始化数据库")
    parser.add_argument("--admin-id", default=settings.admin_user_id, help="管理员用户ID")
    parser.add_argument("--admin-email", default=settings.admin_email, help="管理员邮箱")
    args = parser.parse_args()
    asyncio.run(main(args.admin_id, args.admin_email))
