"""
对象存储初始化脚本：创建本地存储目录或 S3 存储桶

用法：
    python scripts/setup_storage.py
"""
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

from loguru import logger  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.services.storage import LocalObjectStore, S3ObjectStore, build_object_store  # noqa: E402


def setup() -> bool:
    store = build_object_store(settings)

    if isinstance(store, LocalObjectStore):
        store.ensure_root()
        logger.info("本地存储目录已就绪: {}", store.root)
        return True

    if isinstance(store, S3ObjectStore):
        try:
            created = store.ensure_bucket()
        except Exception as e:
            logger.error("存储桶初始化失败: {}", e)
            return False
        logger.info("存储桶 {}: {}", "已创建" if created else "已存在", store.bucket)
        return True

    return False


if __name__ == "__main__":
    sys.exit(0 if setup() else 1)
