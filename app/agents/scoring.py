# -*- coding: utf-8 -*-
"""
简历评分服务：调用 LLM 对简历与岗位描述进行匹配评分。

evaluate() 不会向外抛出异常，任何调用失败或返回格式错误都会降级为
固定内容的兜底评估（is_fallback=True），供后台任务直接落库。
"""
from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from app.core.exceptions import ScoringError
from app.models.evaluation import EVALUATION_ITEM_COUNT
from .llm_client import LLMClient, get_llm_client
from .prompts import get_prompt, get_config

FALLBACK_STRENGTHS = [
    "评估待完成",
    "需要人工审核",
    "暂无自动评估结果",
]
FALLBACK_WEAKNESSES = [
    "自动评估处理出错",
    "评估信息不可用",
    "需要人工补充评估",
]
FALLBACK_SUMMARY = "自动评估失败，需要人工审核该候选人。"

STRENGTH_PLACEHOLDER = "暂无更多优势信息"
WEAKNESS_PLACEHOLDER = "暂无更多不足信息"
DEFAULT_SUMMARY = "模型未给出评估总结。"


@dataclass
class ScoringResult:
    """评分结果，is_fallback 标记是否为兜底内容"""
    score: int
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    summary: str = ""
    model: Optional[str] = None
    is_fallback: bool = False

    def to_record(self) -> Dict[str, Any]:
        """转换为 Evaluation 表字段"""
        return {
            "score": self.score,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "summary": self.summary,
            "model_used": self.model,
        }


def _parse_score(value: Any) -> int:
    """解析分数：非数值按 0 处理，并限制在 [0, 100]"""
    if isinstance(value, bool):
        return 0
    try:
        score = float(str(value).strip())
    except (TypeError, ValueError):
        return 0
    if math.isnan(score):
        return 0
    # 先按浮点数截断，inf 也能落到边界
    return int(max(0.0, min(100.0, score)))


def _fit_items(value: Any, size: int, placeholder: str) -> List[str]:
    """将条目列表截断或补齐到固定长度"""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ScoringError(f"条目格式错误: {type(value).__name__}")
    items = [str(item).strip() for item in value if item is not None and str(item).strip()]
    items = items[:size]
    items.extend([placeholder] * (size - len(items)))
    return items


class ScoringClient:
    """简历评分客户端"""

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        item_count: int = EVALUATION_ITEM_COUNT,
        timeout: Optional[float] = None,
    ):
        self._llm = llm or get_llm_client()
        self.item_count = item_count
        self.timeout = timeout if timeout is not None else self._llm.timeout

    @property
    def model(self) -> str:
        return self._llm.model

    def fallback(self) -> ScoringResult:
        """固定内容的兜底评估"""
        return ScoringResult(
            score=0,
            strengths=_fit_items(FALLBACK_STRENGTHS, self.item_count, STRENGTH_PLACEHOLDER),
            weaknesses=_fit_items(FALLBACK_WEAKNESSES, self.item_count, WEAKNESS_PLACEHOLDER),
            summary=FALLBACK_SUMMARY,
            model=self.model,
            is_fallback=True,
        )

    def normalize(self, data: Any) -> ScoringResult:
        """
        校验并修正模型输出。

        缺少 score/strengths/weaknesses 或不是 JSON 对象时抛出 ScoringError。
        """
        if not isinstance(data, dict):
            raise ScoringError(f"评分结果不是 JSON 对象: {type(data).__name__}")
        missing = [key for key in ("score", "strengths", "weaknesses") if key not in data]
        if missing:
            raise ScoringError(f"评分结果缺少字段: {', '.join(missing)}")

        summary = data.get("summary")
        summary = str(summary).strip() if summary else ""
        return ScoringResult(
            score=_parse_score(data["score"]),
            strengths=_fit_items(data["strengths"], self.item_count, STRENGTH_PLACEHOLDER),
            weaknesses=_fit_items(data["weaknesses"], self.item_count, WEAKNESS_PLACEHOLDER),
            summary=summary or DEFAULT_SUMMARY,
            model=self.model,
        )

    def _build_prompts(self, cv_text: str, job_description: str) -> tuple[str, str]:
        max_chars = int(get_config("scoring", "max_cv_chars"))
        if len(cv_text) > max_chars:
            cv_text = cv_text[:max_chars] + "...(内容已截断)"
        system_prompt = get_prompt("scoring", "system_prompt")
        user_prompt = get_prompt(
            "scoring",
            "user_prompt",
            item_count=self.item_count,
            job_description=job_description,
            cv_text=cv_text,
        )
        return system_prompt, user_prompt

    async def evaluate(self, cv_text: str, job_description: str) -> ScoringResult:
        """对简历进行评分，失败时返回兜底结果"""
        if not self._llm.is_configured():
            logger.warning("LLM API Key 未配置，返回兜底评估")
            return self.fallback()

        try:
            system_prompt, user_prompt = self._build_prompts(cv_text, job_description)
            data = await asyncio.wait_for(
                self._llm.complete_json(system_prompt, user_prompt),
                timeout=self.timeout,
            )
            result = self.normalize(data)
        except asyncio.TimeoutError:
            logger.warning("简历评分超时（{}s），返回兜底评估", self.timeout)
            return self.fallback()
        except Exception as exc:
            logger.warning("简历评分失败，返回兜底评估: {}", str(exc)[:500])
            return self.fallback()

        logger.info("简历评分完成: score={}", result.score)
        return result


_scoring_client: Optional[ScoringClient] = None


def get_scoring_client() -> ScoringClient:
    """获取 ScoringClient 单例（FastAPI 依赖）"""
    global _scoring_client
    if _scoring_client is None:
        _scoring_client = ScoringClient()
    return _scoring_client
