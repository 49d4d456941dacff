"""
简历投递流程测试

直接调用 SubmissionPipeline，验证补偿删除和后台评分
"""
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from fastapi import BackgroundTasks
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker
from tests.conftest import PDF_BYTES, FakeExtractor, FakeObjectStore, FakeScoringClient

from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ExtractionError,
    InvalidStateException,
    NotFoundException,
)
from app.crud import application_crud, evaluation_crud, job_role_crud, user_crud
from app.models.application import Application
from app.models.evaluation import Evaluation
from app.services.submission import SubmissionPipeline, build_storage_key


@pytest.fixture
def pipeline(
    session_factory: async_sessionmaker,
    store: FakeObjectStore,
    extractor: FakeExtractor,
    scorer: FakeScoringClient,
) -> SubmissionPipeline:
    return SubmissionPipeline(store, extractor, scorer, session_factory, max_upload_size=1024)


@pytest_asyncio.fixture
async def role_id(session_factory: async_sessionmaker) -> str:
    """预先写入一个开放岗位"""
    async with session_factory() as session:
        await user_crud.get_or_create(session, id="user-1", email="user-1@example.com")
        role = await job_role_crud.create(session, obj_in={
            "title": "数据工程师",
            "description": "负责数据管道的建设和维护。",
            "requirements": "熟悉 SQL",
            "created_by": "user-1",
        })
        await session.commit()
        return role.id


async def count_rows(session_factory: async_sessionmaker, model) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar()


async def submit(pipeline: SubmissionPipeline, session_factory, role_id: str, tasks=None, **overrides):
    fields = {
        "file_bytes": PDF_BYTES,
        "content_type": "application/pdf",
        "job_role_id": role_id,
        "candidate_name": "Chen Qi",
        "candidate_email": "chenqi@example.com",
        "candidate_phone": None,
    }
    fields.update(overrides)
    async with session_factory() as session:
        return await pipeline.submit(session, tasks or BackgroundTasks(), **fields)


def test_build_storage_key():
    """测试存储键：随机前缀 + 清洗后的姓名"""
    key = build_storage_key("张 San/../x")
    prefix, _, rest = key.partition("_")
    assert len(prefix) == 36
    assert rest == "__San____x.pdf"
    assert build_storage_key("Li") != build_storage_key("Li")


@pytest.mark.asyncio
async def test_submit_runs_background_evaluation(pipeline, session_factory, role_id, store, scorer):
    """测试投递成功后后台任务写入评估"""
    tasks = BackgroundTasks()
    application = await submit(pipeline, session_factory, role_id, tasks)

    assert application.cv_file_key in store.objects
    assert application.cv_file_path == f"memory://cvs/{application.cv_file_key}"
    assert await count_rows(session_factory, Evaluation) == 0

    await tasks()

    async with session_factory() as session:
        evaluation = await evaluation_crud.get_by_application(session, application.id)
    assert evaluation is not None
    assert evaluation.score == 85
    assert evaluation.model_used == "fake-model"
    # 只用岗位描述评分，任职要求不参与
    assert scorer.calls[0][1] == "负责数据管道的建设和维护。"


@pytest.mark.asyncio
async def test_database_failure_discards_file(pipeline, session_factory, role_id, store):
    """测试写库失败时删除已上传的文件"""
    with patch.object(application_crud, "create", new_callable=AsyncMock, side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError):
            await submit(pipeline, session_factory, role_id)

    assert len(store.put_calls) == 1
    assert store.deleted == store.put_calls
    assert store.objects == {}
    assert await count_rows(session_factory, Application) == 0


@pytest.mark.asyncio
async def test_extraction_failure_discards_file(pipeline, session_factory, role_id, store, extractor):
    """测试文本提取失败时删除已上传的文件"""
    extractor.fail = True

    with pytest.raises(ExtractionError):
        await submit(pipeline, session_factory, role_id)

    assert store.objects == {}
    assert await count_rows(session_factory, Application) == 0


@pytest.mark.asyncio
async def test_unexpected_extractor_error_discards_file(pipeline, session_factory, role_id, store, extractor):
    """测试提取器抛出任意异常时同样删除已上传的文件"""
    extractor.extract = AsyncMock(side_effect=RuntimeError("worker pool gone"))

    with pytest.raises(RuntimeError):
        await submit(pipeline, session_factory, role_id)

    assert len(store.put_calls) == 1
    assert store.objects == {}
    assert await count_rows(session_factory, Application) == 0


@pytest.mark.asyncio
async def test_compensation_failure_is_logged(pipeline, session_factory, role_id, store, extractor):
    """测试补偿删除失败只记录日志，原始错误照常抛出"""
    extractor.fail = True
    store.fail_delete = True
    messages = []
    handler_id = logger.add(messages.append, level="ERROR")
    try:
        with pytest.raises(ExtractionError):
            await submit(pipeline, session_factory, role_id)
    finally:
        logger.remove(handler_id)

    assert any("文件可能残留" in message for message in messages)


@pytest.mark.asyncio
async def test_rejected_before_upload(pipeline, session_factory, role_id, store):
    """测试校验失败、岗位未开放和重复投递都不会上传文件"""
    with pytest.raises(BadRequestException):
        await submit(pipeline, session_factory, role_id, content_type="image/png")
    with pytest.raises(BadRequestException):
        await submit(pipeline, session_factory, role_id, file_bytes=b"%PDF" + b"0" * 2048)
    with pytest.raises(BadRequestException):
        pipeline.check_size(2048)
    pipeline.check_size(None)
    with pytest.raises(BadRequestException):
        await submit(pipeline, session_factory, role_id, candidate_email="bad")
    with pytest.raises(NotFoundException):
        await submit(pipeline, session_factory, "missing-role")

    async with session_factory() as session:
        role = await job_role_crud.get(session, role_id)
        await job_role_crud.update(session, db_obj=role, obj_in={"status": "closed"})
        await session.commit()
    with pytest.raises(NotFoundException):
        await submit(pipeline, session_factory, role_id)

    assert store.put_calls == []


@pytest.mark.asyncio
async def test_duplicate_submission(pipeline, session_factory, role_id, store):
    """测试同一邮箱重复投递同一岗位"""
    await submit(pipeline, session_factory, role_id)
    with pytest.raises(ConflictException):
        await submit(pipeline, session_factory, role_id, candidate_name="Chen Qi 2")

    assert len(store.put_calls) == 1


@pytest.mark.asyncio
async def test_evaluation_after_delete_is_logged(pipeline, session_factory, role_id):
    """测试申请已删除时后台评分写入失败只记录日志"""
    application = await submit(pipeline, session_factory, role_id)
    async with session_factory() as session:
        await pipeline.delete(session, application.id)

    messages = []
    handler_id = logger.add(messages.append, level="ERROR")
    try:
        await pipeline.evaluate_in_background(application.id, "cv", "job")
    finally:
        logger.remove(handler_id)

    assert any("AI 评估结果保存失败" in message for message in messages)
    assert await count_rows(session_factory, Evaluation) == 0


@pytest.mark.asyncio
async def test_reevaluate(pipeline, session_factory, role_id, scorer):
    """测试重新评估：覆盖已有评估，文本为空或申请不存在时报错"""
    tasks = BackgroundTasks()
    application = await submit(pipeline, session_factory, role_id, tasks)
    await tasks()

    async with session_factory() as session:
        original = await evaluation_crud.get_by_application(session, application.id)

    scorer.result.score = 55
    async with session_factory() as session:
        evaluation = await pipeline.reevaluate(session, application.id)
    assert evaluation.id == original.id
    assert evaluation.score == 55
    assert await count_rows(session_factory, Evaluation) == 1

    async with session_factory() as session:
        with pytest.raises(NotFoundException):
            await pipeline.reevaluate(session, "missing")


@pytest.mark.asyncio
async def test_reevaluate_requires_cv_text(pipeline, session_factory, role_id, extractor, scorer):
    extractor.text = "   "
    application = await submit(pipeline, session_factory, role_id)

    async with session_factory() as session:
        with pytest.raises(InvalidStateException):
            await pipeline.reevaluate(session, application.id)
    assert scorer.calls == []


@pytest.mark.asyncio
async def test_delete_keeps_going_when_file_removal_fails(pipeline, session_factory, role_id, store):
    """测试文件删除失败不影响数据删除"""
    tasks = BackgroundTasks()
    application = await submit(pipeline, session_factory, role_id, tasks)
    await tasks()
    store.fail_delete = True

    async with session_factory() as session:
        await pipeline.delete(session, application.id)

    assert await count_rows(session_factory, Application) == 0
    assert await count_rows(session_factory, Evaluation) == 0
    assert application.cv_file_key in store.objects

    async with session_factory() as session:
        with pytest.raises(NotFoundException):
            await pipeline.delete(session, application.id)
