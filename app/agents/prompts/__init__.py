# -*- coding: utf-8 -*-
"""
评分与候选人对比的 prompt 模板（scoring.yaml、comparison.yaml）及其加载器。
"""

from .loader import PromptLoader, get_prompt, get_config, get_prompt_loader

__all__ = [
    "PromptLoader",
    "get_prompt",
    "get_config",
    "get_prompt_loader",
]
