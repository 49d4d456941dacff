"""
统一的 LLM 客户端封装。

基于 OpenAI 兼容接口（默认 Groq），提供速率限制、并发控制和 JSON 解析。
"""
import asyncio
import json
import time
from typing import Dict, List, Any, Optional
from openai import AsyncOpenAI
from loguru import logger

from app.core.config import Settings, settings as default_settings


class RateLimiter:
    """令牌桶速率限制器，rate 为每分钟请求数，<= 0 表示不限制。"""

    def __init__(self, rate: int):
        self.rate = rate
        self.tokens = float(rate)
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.rate, self.tokens + elapsed * (self.rate / 60.0))
        self.last_update = now

    async def acquire(self) -> None:
        if self.rate <= 0:
            return
        while True:
            async with self._lock:
                self._refill()
                if self.tokens >= 1:
                    self.tokens -= 1
                    return
            await asyncio.sleep(0.1)


class LLMClient:
    """
    LLM 客户端，提供并发控制、速率限制和 JSON 解析。
    """

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings

        self.model = config.llm_model
        self.api_key = config.llm_api_key
        self.base_url = config.llm_base_url
        self.temperature = config.llm_temperature
        self.max_tokens = config.llm_max_tokens
        self.timeout = config.llm_timeout
        self.max_concurrency = config.llm_max_concurrency

        self._client = AsyncOpenAI(
            api_key=self.api_key or "unset",
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )
        self._rate_limiter = RateLimiter(config.llm_rate_limit)
        self._semaphore = asyncio.Semaphore(max(config.llm_max_concurrency, 1))

        logger.info(
            "LLMClient initialized: model={}, max_concurrency={}, rate_limit={}/min",
            self.model,
            self.max_concurrency,
            config.llm_rate_limit,
        )

    @staticmethod
    def parse_json(content: str) -> Any:
        """解析 JSON 响应，兼容 markdown 代码块。"""
        text = content.strip()
        if text.startswith("```json"):
            text = text[7:]
        elif text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("JSON 解析失败: {}\n原始内容: {}", exc, text[:500])
            raise ValueError(f"LLM 返回的结果不是有效的 JSON 格式: {exc}")

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> str:
        """发送聊天请求并返回文本响应。"""
        await self._rate_limiter.acquire()

        async with self._semaphore:
            try:
                response = await self._client.chat.completions.create(
                    model=model or self.model,
                    messages=messages,
                    temperature=temperature if temperature is not None else self.temperature,
                    max_tokens=self.max_tokens,
                )
            except Exception as exc:
                logger.error("LLM 调用失败: {}", exc)
                raise

        if not response or not response.choices:
            raise ValueError("LLM 返回空响应")
        content = response.choices[0].message.content
        if not content:
            raise ValueError("LLM 返回内容为空")
        return content.strip()

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> Any:
        """发送 system + user 消息并返回解析后的 JSON。"""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        content = await self.chat(messages, temperature, model)
        return self.parse_json(content)

    def is_configured(self) -> bool:
        """检查 LLM 是否已正确配置。"""
        return bool(self.api_key) and self.api_key != "your-api-key-here"

    def get_status(self) -> Dict[str, Any]:
        """获取当前 LLM 配置状态。"""
        return {
            "model": self.model,
            "base_url": self.base_url,
            "api_key_configured": self.is_configured(),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "max_concurrency": self.max_concurrency,
        }


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """获取 LLMClient 单例实例。"""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
