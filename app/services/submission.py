"""
简历投递流程

上传文件 -> 提取文本 -> 写入申请记录（单事务）-> 返回 -> 后台 AI 评分。
提交前的任一步失败都会删除已上传的文件；提交之后的失败只记录日志
"""
import re
import uuid
from typing import Optional

from fastapi import BackgroundTasks, Depends
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.agents.scoring import ScoringClient, get_scoring_client
from app.core.config import settings
from app.core.database import get_session_factory
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    InvalidStateException,
    NotFoundException,
)
from app.crud import application_crud, evaluation_crud, job_role_crud
from app.models.application import Application, ApplicationStatus, ApplicationSubmit
from app.models.evaluation import Evaluation
from .extractor import PdfTextExtractor, get_text_extractor
from .storage import ObjectStore, get_object_store

ACCEPTED_CONTENT_TYPE = "application/pdf"
FILE_EXTENSION = ".pdf"


def build_storage_key(candidate_name: str) -> str:
    """随机 ID + 候选人姓名（非字母数字替换为下划线）+ 扩展名"""
    safe_name = re.sub(r"[^a-zA-Z0-9]", "_", candidate_name)
    return f"{uuid.uuid4()}_{safe_name}{FILE_EXTENSION}"


class SubmissionPipeline:
    """简历投递、重新评估和删除"""

    def __init__(
        self,
        store: ObjectStore,
        extractor: PdfTextExtractor,
        scorer: ScoringClient,
        session_factory: async_sessionmaker,
        max_upload_size: Optional[int] = None,
    ):
        self.store = store
        self.extractor = extractor
        self.scorer = scorer
        self.session_factory = session_factory
        self.max_upload_size = max_upload_size or settings.max_upload_size

    def _validate_file(self, file_bytes: Optional[bytes], content_type: Optional[str]) -> None:
        if not file_bytes:
            raise BadRequestException("请上传简历文件")
        if content_type != ACCEPTED_CONTENT_TYPE:
            raise BadRequestException("只接受 PDF 格式的简历")
        self.check_size(len(file_bytes))

    def check_size(self, size: Optional[int]) -> None:
        """文件大小校验，size 未知时跳过"""
        if size is not None and size > self.max_upload_size:
            raise BadRequestException(
                f"文件大小超过限制（{self.max_upload_size} 字节）"
            )

    @staticmethod
    def _validate_fields(**fields) -> ApplicationSubmit:
        try:
            return ApplicationSubmit.model_validate(fields)
        except ValidationError as exc:
            raise BadRequestException(
                "投递信息验证失败",
                data={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    async def discard_file(self, key: str) -> bool:
        """补偿删除已上传的文件，失败只记录日志"""
        try:
            await self.store.delete(key)
        except Exception as exc:
            logger.error("简历文件删除失败，文件可能残留: key={}, error={}", key, exc)
            return False
        return True

    async def submit(
        self,
        db: AsyncSession,
        background_tasks: BackgroundTasks,
        *,
        file_bytes: Optional[bytes],
        content_type: Optional[str],
        job_role_id: Optional[str],
        candidate_name: Optional[str],
        candidate_email: Optional[str],
        candidate_phone: Optional[str] = None,
    ) -> Application:
        """
        提交应聘申请

        返回已提交的申请；AI 评分作为后台任务在响应之后执行
        """
        # 1. 校验文件和表单字段
        self._validate_file(file_bytes, content_type)
        form = self._validate_fields(
            job_role_id=job_role_id,
            candidate_name=candidate_name,
            candidate_email=candidate_email,
            candidate_phone=candidate_phone or None,
        )

        # 2. 岗位必须存在且处于开放状态
        job_role = await job_role_crud.get(db, form.job_role_id)
        if job_role is None or not job_role.is_open:
            raise NotFoundException("岗位不存在或未开放")
        job_description = job_role.description

        # 3. 查重（非原子，并发的相同投递可能同时通过）
        if await application_crud.exists_for_candidate(
            db, job_role_id=form.job_role_id, candidate_email=form.candidate_email
        ):
            raise ConflictException("该候选人已投递过此岗位")

        # 4. 上传文件
        key = build_storage_key(form.candidate_name)
        locator = await self.store.put(key, file_bytes, content_type)

        # 5. 提取文本
        try:
            cv_text = await self.extractor.extract(file_bytes)
        except Exception:
            await self.discard_file(key)
            raise

        # 6. 写入申请记录
        try:
            application = await application_crud.create(db, obj_in={
                "job_role_id": form.job_role_id,
                "candidate_name": form.candidate_name,
                "candidate_email": form.candidate_email,
                "candidate_phone": form.candidate_phone,
                "cv_file_key": key,
                "cv_file_path": locator,
                "cv_text": cv_text,
                "status": ApplicationStatus.PENDING.value,
            })
            await db.commit()
        except Exception:
            await db.rollback()
            await self.discard_file(key)
            raise

        logger.info(
            "收到新申请: id={}, job_role_id={}, email={}",
            application.id, application.job_role_id, application.candidate_email
        )

        # 7. 后台评分
        background_tasks.add_task(
            self.evaluate_in_background, application.id, cv_text, job_description
        )
        return application

    async def evaluate_in_background(
        self,
        application_id: str,
        cv_text: str,
        job_description: str
    ) -> None:
        """后台评分并写入评估记录，任何失败只记录日志"""
        logger.info("开始 AI 评估: application_id={}", application_id)
        try:
            result = await self.scorer.evaluate(cv_text, job_description)
            async with self.session_factory() as session:
                await evaluation_crud.create(
                    session, obj_in={"application_id": application_id, **result.to_record()}
                )
                await session.commit()
        except Exception as exc:
            logger.error("AI 评估结果保存失败: application_id={}, error={}", application_id, exc)
            return

        if result.is_fallback:
            logger.warning("AI 评估降级为兜底结果: application_id={}", application_id)
        else:
            logger.info("AI 评估完成: application_id={}, score={}", application_id, result.score)

    async def reevaluate(self, db: AsyncSession, application_id: str) -> Evaluation:
        """同步重新评估，已有评估时原地覆盖"""
        application = await application_crud.get_detail(db, application_id)
        if application is None:
            raise NotFoundException("申请不存在")
        if application.job_role is None:
            raise NotFoundException("岗位不存在")
        if not (application.cv_text or "").strip():
            raise InvalidStateException("简历文本为空，无法重新评估")

        result = await self.scorer.evaluate(
            application.cv_text, application.job_role.description
        )
        evaluation = await evaluation_crud.upsert(
            db, application_id=application.id, data=result.to_record()
        )
        await db.commit()
        logger.info(
            "重新评估完成: application_id={}, score={}, fallback={}",
            application.id, evaluation.score, result.is_fallback
        )
        return evaluation

    async def delete(self, db: AsyncSession, application_id: str) -> None:
        """删除申请及其评估，提交后再删除简历文件"""
        application = await application_crud.get(db, application_id)
        if application is None:
            raise NotFoundException("申请不存在")
        key = application.cv_file_key

        try:
            await application_crud.remove_with_evaluation(db, db_obj=application)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("申请已删除: id={}", application_id)
        await self.discard_file(key)


def get_submission_pipeline(
    store: ObjectStore = Depends(get_object_store),
    extractor: PdfTextExtractor = Depends(get_text_extractor),
    scorer: ScoringClient = Depends(get_scoring_client),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SubmissionPipeline:
    """FastAPI 依赖"""
    return SubmissionPipeline(store, extractor, scorer, session_factory)
