# -*- coding: utf-8 -*-
"""
Prompt 加载器模块。

从同目录的 YAML 文件读取 prompt 模板和配置项，模板变量使用 {variable} 语法。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml
from loguru import logger


class PromptLoader:
    """
    Prompt 配置加载器，带缓存；hot_reload 为 True 时每次重新读取文件。
    """

    def __init__(self, base_path: Path | str | None = None, hot_reload: bool = False):
        self.base_path = Path(base_path) if base_path is not None else Path(__file__).parent
        self.hot_reload = hot_reload
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load(self, name: str) -> Dict[str, Any]:
        """
        加载 {name}.yaml。

        Raises:
            FileNotFoundError: 配置文件不存在
            yaml.YAMLError: YAML 解析失败
        """
        if not self.hot_reload and name in self._cache:
            return self._cache[name]

        file_path = self.base_path / f"{name}.yaml"
        if not file_path.exists():
            raise FileNotFoundError(f"Prompt 配置文件不存在: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error("解析 YAML 失败 {}: {}", file_path, e)
            raise
        self._cache[name] = data
        return data

    def get_config(self, name: str, key: str | None = None) -> Any:
        """获取配置值，key 支持点号分隔的嵌套键，None 返回整个文件内容。"""
        data = self.load(name)
        if key is None:
            return data

        value: Any = data
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                raise KeyError(f"配置键不存在: {name}.{key}")
            value = value[part]
        return value

    def get(self, name: str, key: str, **kwargs) -> str:
        """
        获取 prompt 并替换模板变量。

        Raises:
            KeyError: key 不存在或模板变量缺失
            TypeError: 对应的值不是字符串
        """
        value = self.get_config(name, key)
        if not isinstance(value, str):
            raise TypeError(f"期望字符串类型的 prompt，但 {name}.{key} 是 {type(value).__name__}")
        if not kwargs:
            return value
        try:
            return value.format(**kwargs)
        except KeyError as e:
            logger.error("Prompt 模板变量缺失: {} in {}.{}", e, name, key)
            raise


_loader: PromptLoader | None = None


def get_prompt_loader() -> PromptLoader:
    """获取全局 PromptLoader 单例，开发环境启用热加载。"""
    global _loader
    if _loader is None:
        from app.core.config import settings
        _loader = PromptLoader(hot_reload=settings.is_development)
    return _loader


def get_prompt(name: str, key: str, **kwargs) -> str:
    """
    便捷函数：获取格式化后的 prompt。

    Example:
        >>> prompt = get_prompt("scoring", "user_prompt", cv_text="...", job_description="...")
    """
    return get_prompt_loader().get(name, key, **kwargs)


def get_config(name: str, key: str | None = None) -> Any:
    """便捷函数：获取配置值。"""
    return get_prompt_loader().get_config(name, key)
