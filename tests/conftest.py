"""Shared fakes for the embedding and completion providers."""

from __future__ import annotations

import re
from collections.abc import AsyncIterator

import pytest

from resume_rag.config import Settings
from resume_rag.errors import EmbeddingError
from resume_rag.generation.completion import CompletionClient
from resume_rag.ingest.embedder import Embedder

# Each axis counts the words that belong to one topic.
_AXES: tuple[frozenset[str], ...] = (
    frozenset({"jane", "she", "engineer", "built", "led", "team", "systems", "did", "do"}),
    frozenset({"project", "processes", "events", "scales", "volume", "high"}),
    frozenset({"encrypt", "data", "policy"}),
)


class KeywordEmbedder(Embedder):
    """Bag-of-topics embedder with predictable geometry."""

    def __init__(self) -> None:
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self._embed(text) for text in texts]

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._embed(text)

    @staticmethod
    def _embed(text: str) -> list[float]:
        words = re.findall(r"\w+", text.lower())
        return [float(sum(1 for word in words if word in axis)) for axis in _AXES]


class FailingEmbedder(Embedder):
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise EmbeddingError("quota exceeded")

    async def embed_query(self, text: str) -> list[float]:
        raise EmbeddingError("quota exceeded")


class ScriptedCompletion(CompletionClient):
    """Replays a fixed token list and records the prompts it received."""

    def __init__(self, tokens: list[str] | None = None) -> None:
        self.tokens = tokens if tokens is not None else ["Hel", "lo"]
        self.prompts: list[tuple[str, str]] = []

    async def stream(self, system: str, user: str) -> AsyncIterator[str]:
        self.prompts.append((system, user))
        for token in self.tokens:
            yield token


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def scripted_completion() -> ScriptedCompletion:
    return ScriptedCompletion()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="",
        index_path=str(tmp_path / "embeddings.json"),
        data_dir=str(tmp_path / "data"),
    )
