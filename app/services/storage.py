"""
对象存储服务

支持本地目录和 S3 兼容存储两种后端，put 返回可用于检索的定位地址，
delete 对不存在的键不报错
"""
import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import StorageError


class ObjectStore(ABC):
    """对象存储接口"""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """上传文件，返回定位地址"""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """删除文件，键不存在时静默返回"""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """文件是否存在"""


class LocalObjectStore(ObjectStore):
    """本地目录存储，定位地址为 file:// 或配置的公开访问地址"""

    def __init__(self, root: str | Path, public_base_url: Optional[str] = None):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise StorageError(f"非法的存储键: {key}")
        return path

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            logger.error("本地文件写入失败: key={}, error={}", key, exc)
            raise StorageError(f"文件存储失败: {exc}") from exc

        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return path.as_uri()

    async def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise StorageError(f"文件删除失败: {exc}") from exc

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path(key).is_file)


class S3ObjectStore(ObjectStore):
    """S3 兼容存储，定位地址为 s3://bucket/key 或配置的公开访问地址"""

    def __init__(
        self,
        bucket: str,
        *,
        endpoint: Optional[str] = None,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

        if client is None:
            s3_kwargs = {}
            if endpoint:
                s3_kwargs["endpoint_url"] = endpoint
            if region:
                s3_kwargs["region_name"] = region
            client = boto3.client(
                "s3",
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(signature_version="s3v4"),
                **s3_kwargs,
            )
        self._client = client

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 上传失败: bucket={}, key={}, error={}", self.bucket, key, exc)
            raise StorageError(f"文件存储失败: {exc}") from exc

        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"s3://{self.bucket}/{key}"

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"文件删除失败: {exc}") from exc

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"文件查询失败: {exc}") from exc
        return True

    def ensure_bucket(self) -> bool:
        """存储桶不存在时创建，返回是否新建"""
        try:
            self._client.head_bucket(Bucket=self.bucket)
            return False
        except ClientError:
            params = {"Bucket": self.bucket}
            # us-east-1 不接受 LocationConstraint，其余区域必须指定
            if self.region and self.region != "us-east-1":
                params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
            self._client.create_bucket(**params)
            return True


def build_object_store(config: Optional[Settings] = None) -> ObjectStore:
    """根据配置创建对象存储"""
    config = config or default_settings
    if config.storage_backend == "s3":
        return S3ObjectStore(
            config.s3_bucket,
            endpoint=config.s3_endpoint,
            region=config.s3_region,
            access_key=config.s3_access_key,
            secret_key=config.s3_secret_key,
            public_base_url=config.storage_public_base_url,
        )
    return LocalObjectStore(config.local_storage_dir, config.storage_public_base_url)


_object_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """获取对象存储单例（FastAPI 依赖）"""
    global _object_store
    if _object_store is None:
        _object_store = build_object_store()
        logger.info("对象存储初始化: backend={}", default_settings.storage_backend)
    return _object_store
