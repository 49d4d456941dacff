# -*- coding: utf-8 -*-
"""
候选人对比服务：基于已有评估结果，调用 LLM 对同一岗位的多名候选人排序。

与评分不同，对比是同步请求，失败直接抛出 ScoringError（500），不做兜底。
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from app.core.exceptions import ScoringError
from .llm_client import LLMClient, get_llm_client
from .prompts import get_prompt, get_config

DEFAULT_REASON = "模型未给出排序理由，按评分排列。"
DEFAULT_SUMMARY = "模型未给出对比总结。"


@dataclass
class CandidateProfile:
    """参与对比的候选人及其评估摘要"""
    id: str
    name: str
    score: int
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class ComparisonResult:
    ranking: List[Dict[str, Any]]
    recommended_id: str
    summary: str
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ranking": self.ranking,
            "recommended_id": self.recommended_id,
            "summary": self.summary,
            "model": self.model,
        }


class CandidateComparator:
    """候选人对比客户端"""

    def __init__(self, llm: Optional[LLMClient] = None, timeout: Optional[float] = None):
        self._llm = llm or get_llm_client()
        self.timeout = timeout if timeout is not None else self._llm.timeout

    @property
    def model(self) -> str:
        return self._llm.model

    def normalize(self, data: Any, candidates: List[CandidateProfile]) -> ComparisonResult:
        """
        校验并修正模型给出的排序。

        未知或重复的 ID 被丢弃，遗漏的候选人按评分补到末尾，
        推荐人不在候选人中时取排序第一位。
        """
        if not isinstance(data, dict):
            raise ScoringError(f"对比结果不是 JSON 对象: {type(data).__name__}")
        ranking_in = data.get("ranking")
        if not isinstance(ranking_in, list):
            raise ScoringError("对比结果缺少 ranking 列表")

        by_id = {candidate.id: candidate for candidate in candidates}
        ordered: List[tuple[CandidateProfile, str]] = []
        seen = set()
        for entry in ranking_in:
            if not isinstance(entry, dict):
                continue
            candidate_id = str(entry.get("id", "")).strip()
            if candidate_id not in by_id or candidate_id in seen:
                continue
            seen.add(candidate_id)
            reason = str(entry.get("reason") or "").strip()
            ordered.append((by_id[candidate_id], reason or DEFAULT_REASON))

        remaining = sorted(
            (c for c in candidates if c.id not in seen),
            key=lambda c: c.score,
            reverse=True,
        )
        ordered.extend((candidate, DEFAULT_REASON) for candidate in remaining)

        ranking = [
            {
                "rank": index,
                "application_id": candidate.id,
                "candidate_name": candidate.name,
                "score": candidate.score,
                "reason": reason,
            }
            for index, (candidate, reason) in enumerate(ordered, start=1)
        ]

        recommended_id = str(data.get("recommended_id") or "").strip()
        if recommended_id not in by_id:
            recommended_id = ranking[0]["application_id"]

        summary = data.get("summary")
        summary = str(summary).strip() if summary else ""
        return ComparisonResult(
            ranking=ranking,
            recommended_id=recommended_id,
            summary=summary or DEFAULT_SUMMARY,
            model=self.model,
        )

    def _build_prompts(
        self,
        job_title: str,
        job_description: str,
        candidates: List[CandidateProfile],
    ) -> tuple[str, str]:
        max_chars = int(get_config("comparison", "max_summary_chars"))
        blocks = []
        for candidate in candidates:
            summary = candidate.summary[:max_chars]
            blocks.append(
                f"- ID: {candidate.id}\n"
                f"  姓名: {candidate.name}\n"
                f"  评分: {candidate.score}\n"
                f"  优势: {'；'.join(candidate.strengths)}\n"
                f"  不足: {'；'.join(candidate.weaknesses)}\n"
                f"  总结: {summary}"
            )
        system_prompt = get_prompt("comparison", "system_prompt")
        user_prompt = get_prompt(
            "comparison",
            "user_prompt",
            job_title=job_title,
            job_description=job_description,
            candidates="\n".join(blocks),
        )
        return system_prompt, user_prompt

    async def compare(
        self,
        job_title: str,
        job_description: str,
        candidates: List[CandidateProfile],
    ) -> ComparisonResult:
        """对比候选人，LLM 未配置、调用失败或结果无效时抛出 ScoringError"""
        if len(candidates) < 2:
            raise ScoringError("至少需要两名候选人才能对比")
        if not self._llm.is_configured():
            raise ScoringError("LLM API Key 未配置，无法对比候选人")

        try:
            system_prompt, user_prompt = self._build_prompts(job_title, job_description, candidates)
            data = await asyncio.wait_for(
                self._llm.complete_json(system_prompt, user_prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("候选人对比超时（{}s）", self.timeout)
            raise ScoringError("候选人对比超时") from exc
        except Exception as exc:
            logger.warning("候选人对比失败: {}", str(exc)[:500])
            raise ScoringError("候选人对比失败") from exc

        result = self.normalize(data, candidates)
        logger.info("候选人对比完成: candidates={}, recommended={}", len(candidates), result.recommended_id)
        return result


_comparator: Optional[CandidateComparator] = None


def get_candidate_comparator() -> CandidateComparator:
    """获取 CandidateComparator 单例（FastAPI 依赖）"""
    global _comparator
    if _comparator is None:
        _comparator = CandidateComparator()
    return _comparator
