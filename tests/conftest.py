"""
测试配置文件

提供测试用的 fixtures：独立的 SQLite 数据库、替身服务（对象存储/文本提取/AI 评分/LLM）、
测试客户端和测试数据工厂
"""
import asyncio
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from app.agents.comparison import CandidateComparator, get_candidate_comparator
from app.agents.scoring import ScoringResult, get_scoring_client
from app.core.database import (
    create_session_factory,
    enable_sqlite_foreign_keys,
    get_session_factory,
    init_db,
)
from app.core.exceptions import ExtractionError, StorageError
from app.crud import user_crud
from app.main import create_app
from app.models.user import UserRole
from app.services.extractor import get_text_extractor
from app.services.storage import ObjectStore, get_object_store

PDF_BYTES = b"%PDF-1.4\n% fake pdf for tests\n%%EOF\n"
CV_TEXT = "张三，5 年 Python 后端开发经验，熟悉 FastAPI、PostgreSQL 和 Docker。"


# ========== 替身服务 ==========

class FakeObjectStore(ObjectStore):
    """内存对象存储，记录调用情况"""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.put_calls: List[str] = []
        self.deleted: List[str] = []
        self.fail_put = False
        self.fail_delete = False

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.put_calls.append(key)
        if self.fail_put:
            raise StorageError("模拟上传失败")
        self.objects[key] = data
        return f"memory://cvs/{key}"

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise StorageError("模拟删除失败")
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self.objects


class FakeExtractor:
    """返回固定文本的提取器"""

    def __init__(self, text: str = CV_TEXT):
        self.text = text
        self.fail = False

    async def extract(self, data: bytes) -> str:
        if self.fail:
            raise ExtractionError()
        return self.text


class FakeLLM:
    """按预设返回 JSON 或抛出异常的 LLM 替身"""

    model = "fake-llm"
    timeout = 5

    def __init__(self, response: Any = None, error: Exception = None, delay: float = 0, configured: bool = True):
        self.response = response
        self.error = error
        self.delay = delay
        self.configured = configured
        self.prompts: List[Tuple[str, str]] = []

    def is_configured(self) -> bool:
        return self.configured

    async def complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        self.prompts.append((system_prompt, user_prompt))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response


class FakeScoringClient:
    """返回固定结果的评分客户端，记录调用参数"""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []
        self.result = ScoringResult(
            score=85,
            strengths=["后端经验扎实", "熟悉 FastAPI", "具备容器化经验"],
            weaknesses=["缺少团队管理经验", "前端经验较少", "未提及测试实践"],
            summary="候选人与岗位匹配度较高。",
            model="fake-model",
        )

    async def evaluate(self, cv_text: str, job_description: str) -> ScoringResult:
        self.calls.append((cv_text, job_description))
        return self.result


# ========== 数据库与服务 fixtures ==========

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    每个测试一个独立的 SQLite 文件数据库

    请求会话和后台任务会话各自从同一个工厂获取连接
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_foreign_keys(engine)
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def scorer() -> FakeScoringClient:
    return FakeScoringClient()


@pytest.fixture
def llm() -> FakeLLM:
    """候选人对比使用的 LLM 替身，测试中按需设置 response"""
    return FakeLLM()


@pytest.fixture
def comparator(llm: FakeLLM) -> CandidateComparator:
    return CandidateComparator(llm=llm)


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker,
    store: FakeObjectStore,
    extractor: FakeExtractor,
    scorer: FakeScoringClient,
    comparator: CandidateComparator,
) -> AsyncGenerator[AsyncClient, None]:
    """
    提供测试用的 HTTP 客户端

    覆盖会话工厂和外部服务依赖
    """
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_text_extractor] = lambda: extractor
    app.dependency_overrides[get_scoring_client] = lambda: scorer
    app.dependency_overrides[get_candidate_comparator] = lambda: comparator

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ========== 测试数据工厂 ==========

def auth_headers(user_id: str = "user-1", email: Optional[str] = None) -> Dict[str, str]:
    """认证网关传递的身份请求头"""
    return {"X-User-Id": user_id, "X-User-Email": email or f"{user_id}@example.com"}


@dataclass
class DataFactory:
    """
    测试数据工厂类

    集中管理测试数据创建，避免各测试文件重复代码
    """
    client: AsyncClient
    session_factory: async_sessionmaker
    headers: Dict[str, str] = field(default_factory=auth_headers)
    _counter: int = field(default=0, repr=False)

    def _next_id(self) -> str:
        """生成唯一后缀，避免数据冲突"""
        self._counter += 1
        return str(self._counter)

    async def create_admin(self, user_id: str = "admin-1") -> Dict[str, str]:
        """写入管理员账号，返回其身份请求头"""
        headers = auth_headers(user_id)
        async with self.session_factory() as session:
            await user_crud.get_or_create(
                session, id=user_id, email=headers["X-User-Email"], role=UserRole.ADMIN.value
            )
            await session.commit()
        return headers

    async def create_role(self, headers: Optional[Dict[str, str]] = None, **overrides) -> dict:
        """创建岗位，返回完整响应数据"""
        suffix = self._next_id()
        data = {
            "title": f"Python 后端工程师 {suffix}",
            "description": "负责招聘系统后端服务的设计与开发。",
            "requirements": "3 年以上 Python 经验",
            "department": "技术部",
            "location": "上海",
            "employment_type": "full-time",
            "salary_range": "20k-30k",
            **overrides
        }
        resp = await self.client.post("/api/v1/roles", json=data, headers=headers or self.headers)
        assert resp.status_code == 201, f"创建岗位失败: {resp.text}"
        return resp.json()["data"]

    async def submit(
        self,
        job_role_id: str,
        *,
        email: Optional[str] = None,
        name: str = "Zhang San",
        phone: Optional[str] = "13800000000",
        content: bytes = PDF_BYTES,
        content_type: str = "application/pdf",
    ):
        """投递简历，返回原始响应"""
        form = {
            "jobRoleId": job_role_id,
            "candidateName": name,
            "candidateEmail": email or f"candidate{self._next_id()}@example.com",
        }
        if phone:
            form["candidatePhone"] = phone
        return await self.client.post(
            "/api/v1/applications",
            data=form,
            files={"cv": ("resume.pdf", content, content_type)},
        )

    async def create_application(self, job_role_id: Optional[str] = None, **kwargs) -> dict:
        """投递简历，自动创建依赖的岗位"""
        if job_role_id is None:
            role = await self.create_role()
            job_role_id = role["id"]
        resp = await self.submit(job_role_id, **kwargs)
        assert resp.status_code == 201, f"投递失败: {resp.text}"
        return resp.json()["data"]


@pytest_asyncio.fixture
async def factory(client: AsyncClient, session_factory: async_sessionmaker) -> DataFactory:
    """提供测试数据工厂实例"""
    return DataFactory(client=client, session_factory=session_factory)
