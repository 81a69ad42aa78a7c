"""Completion client abstraction and LangChain `ChatOpenAI` implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from resume_rag.errors import CompletionError, ConfigurationError

logger = logging.getLogger(__name__)


class CompletionClient(ABC):
    """Streams a generated answer for a system + user prompt pair."""

    @abstractmethod
    def stream(self, system: str, user: str) -> AsyncIterator[str]:
        """Yield text deltas in the order the provider emits them."""


class ChatOpenAICompletionClient(CompletionClient):
    """Completion client backed by LangChain's `ChatOpenAI`."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        llm: Any | None = None,
    ) -> None:
        if llm is None:
            if not api_key:
                raise ConfigurationError(
                    "OPENAI_API_KEY environment variable is not set. "
                    "Add it to your environment or .env.local file."
                )
            from langchain_openai import ChatOpenAI

            llm = ChatOpenAI(model=model, temperature=temperature, api_key=api_key)
        self.model = model
        self.llm = llm

    async def stream(self, system: str, user: str) -> AsyncIterator[str]:
        messages = [SystemMessage(content=system), HumanMessage(content=user)]
        try:
            async for chunk in self.llm.astream(messages):
                delta = _chunk_text(chunk)
                if delta:
                    yield delta
        except Exception as exc:
            logger.exception(f"Completion stream from {self.model} failed")
            raise CompletionError(f"Completion request failed: {exc}") from exc


def _chunk_text(chunk: Any) -> str:
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            elif isinstance(item, str):
                parts.append(item)
        return "".join(parts)
    return str(content or "")
