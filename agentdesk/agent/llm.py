"""
Agent LLM: OpenAI (primary) or Hugging Face router chat completions.
When OPENAI_API_KEY is set, uses OpenAI; otherwise uses the HF router. The backend is
picked once at startup. Failures raise ModelCallError and are never retried.
"""

import logging
import time
from typing import Protocol

import httpx
from openai import OpenAI, OpenAIError

from agentdesk.core.config import (
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from agentdesk.core.errors import ModelCallError

logger = logging.getLogger(__name__)


class ChatModel(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str: ...


def _messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


class OpenAIChatModel:
    """OpenAI chat completions. Returns the full (non-streamed) text."""

    def __init__(self, api_key: str = OPENAI_API_KEY, model: str = OPENAI_LLM_MODEL, max_tokens: int = 512, client: OpenAI | None = None) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key, timeout=LLM_API_TIMEOUT)

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        logger.info("[llm:openai] IN  model=%s prompt_len=%d max_tokens=%d", self.model, len(user_prompt), self.max_tokens)
        started = time.perf_counter()
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=_messages(system_prompt, user_prompt),
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.warning("[llm:openai] request failed: %s", e)
            raise ModelCallError(f"OpenAI call failed: {e}") from e
        msg = response.choices[0].message if response.choices else None
        out = ((msg.content if msg else None) or "").strip()
        logger.info("[llm:openai] OUT response_len=%d elapsed_ms=%.1f", len(out), (time.perf_counter() - started) * 1000)
        logger.debug("[llm:openai] OUT response_full=%r", out)
        return out


class HFChatModel:
    """Hugging Face router chat completions over httpx."""

    def __init__(self, api_key: str = HF_API_KEY, model: str = HF_LLM_MODEL, max_tokens: int = 512, url: str = HF_CHAT_URL) -> None:
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.url = url

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        if not self.api_key:
            raise ModelCallError("No LLM configured: set OPENAI_API_KEY or HF_API_KEY in .env")
        logger.info("[llm:hf] IN  model=%s prompt_len=%d max_tokens=%d", self.model, len(user_prompt), self.max_tokens)
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": _messages(system_prompt, user_prompt),
            "max_tokens": self.max_tokens,
        }
        started = time.perf_counter()
        try:
            with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
                response = client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("[llm:hf] request failed: %s", e)
            raise ModelCallError(f"HF LLM request failed: {e}") from e
        if response.status_code != 200:
            logger.warning("[llm:hf] HF LLM error %s: %s", response.status_code, response.text[:200])
            raise ModelCallError(f"HF LLM error {response.status_code}")
        data = response.json()
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            raise ModelCallError("HF LLM returned no choices")
        msg = choices[0].get("message") or {}
        out = (msg.get("content") or "").strip()
        logger.info("[llm:hf] OUT response_len=%d elapsed_ms=%.1f", len(out), (time.perf_counter() - started) * 1000)
        logger.debug("[llm:hf] OUT response_full=%r", out)
        return out


def get_chat_model(max_tokens: int) -> ChatModel:
    """OpenAI when OPENAI_API_KEY is set, else Hugging Face."""
    if OPENAI_API_KEY:
        return OpenAIChatModel(max_tokens=max_tokens)
    return HFChatModel(max_tokens=max_tokens)
