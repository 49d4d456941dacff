"""
LLM Agent 模块

管理 LLM 客户端、简历评分和候选人对比服务
"""
from .llm_client import LLMClient, RateLimiter, get_llm_client
from .scoring import ScoringClient, ScoringResult, get_scoring_client
from .comparison import CandidateComparator, CandidateProfile, ComparisonResult, get_candidate_comparator

__all__ = [
    "LLMClient",
    "RateLimiter",
    "get_llm_client",
    "ScoringClient",
    "ScoringResult",
    "get_scoring_client",
    "CandidateComparator",
    "CandidateProfile",
    "ComparisonResult",
    "get_candidate_comparator",
]
