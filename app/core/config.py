"""
应用配置模块

使用 pydantic-settings 管理环境变量和应用配置
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
import json

# 项目根目录
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """应用配置类"""

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # 应用基础配置
    app_name: str = "Recruit-API"
    app_env: str = "development"
    debug: bool = True

    # 数据库配置
    database_url: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'recruit.db'}"

    # CORS 配置
    cors_origins: List[str] = ["*"]

    # LLM 评分配置
    llm_model: str = "llama-3.1-8b-instant"
    llm_api_key: str = ""
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 1000
    llm_timeout: int = 60
    llm_max_concurrency: int = 5
    llm_rate_limit: int = 60

    # 对象存储配置
    storage_backend: str = "local"
    local_storage_dir: str = str(BASE_DIR / "data" / "cvs")
    storage_public_base_url: Optional[str] = None
    s3_endpoint: Optional[str] = None
    s3_region: Optional[str] = None
    s3_bucket: str = "cvs"
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None

    # 上传限制（字节）
    max_upload_size: int = 10 * 1024 * 1024

    # 初始化脚本使用的管理员账号
    admin_user_id: Optional[str] = None
    admin_email: Optional[str] = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("database_url", mode="before")
    @classmethod
    def fix_database_path(cls, v):
        if isinstance(v, str) and "./data/" in v:
            return v.replace("./data/", str(BASE_DIR / "data") + "/")
        return v

    @field_validator("local_storage_dir")
    @classmethod
    def fix_storage_dir(cls, v: str) -> str:
        path = Path(v)
        return str(path if path.is_absolute() else BASE_DIR / path)

    @field_validator("storage_backend")
    @classmethod
    def check_storage_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("local", "s3"):
            raise ValueError(f"不支持的存储后端: {v}")
        return v

    @property
    def is_development(self) -> bool:
        """是否为开发环境"""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """是否为生产环境"""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()


# 全局配置实例
settings = get_settings()
