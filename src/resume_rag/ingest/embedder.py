"""Embedding abstractions, OpenAI-backed client and deterministic baseline."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt
from typing import Any

from resume_rag.config import Settings
from resume_rag.errors import ConfigurationError, EmbeddingError

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"\w+", flags=re.UNICODE)


class Embedder(ABC):
    """Embedder interface used by index building and retrieval.

    `embed_documents` must return exactly one vector per input text, in input
    order. Index building relies on that positional correspondence.
    """

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts in one batched request."""

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed one query."""


class OpenAIEmbedder(Embedder):
    """Embedder backed by LangChain's `OpenAIEmbeddings`."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "text-embedding-3-small",
        client: Any | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ConfigurationError(
                    "OPENAI_API_KEY environment variable is not set. "
                    "Add it to your environment or .env.local file."
                )
            from langchain_openai import OpenAIEmbeddings

            client = OpenAIEmbeddings(model=model, api_key=api_key)
        self.model = model
        self._client = client

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            vectors = await self._client.aembed_documents(texts)
        except Exception as exc:
            logger.exception(f"Embedding request failed for {len(texts)} texts")
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return [list(vector) for vector in vectors]

    async def embed_query(self, text: str) -> list[float]:
        try:
            vector = await self._client.aembed_query(text)
        except Exception as exc:
            logger.exception("Query embedding request failed")
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
        return list(vector)


class HashingEmbedder(Embedder):
    """Offline embedder selected with `EMBEDDING_BACKEND=hashing`.

    Lower-cased word tokens and adjacent word pairs are hashed into `dimension`
    signed buckets and the vector is L2-normalised, so the same text always
    maps to the same vector and no credential is needed. Pairs keep short
    résumé phrases such as "led team" apart from the same words used loosely.
    """

    def __init__(self, dimension: int = 256) -> None:
        if dimension < 1:
            raise ValueError("dimension must be >= 1")
        self.dimension = dimension

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.vectorize(text) for text in texts]

    async def embed_query(self, text: str) -> list[float]:
        return self.vectorize(text)

    def vectorize(self, text: str) -> list[float]:
        words = [token.lower() for token in _TOKEN_PATTERN.findall(text)]
        features = words + [f"{left} {right}" for left, right in zip(words, words[1:])]
        vector = [0.0] * self.dimension
        for feature in features:
            bucket, sign = self._bucket(feature)
            vector[bucket] += sign

        norm = sqrt(sum(value * value for value in vector))
        return [value / norm for value in vector] if norm else vector

    def _bucket(self, feature: str) -> tuple[int, float]:
        digest = blake2b(feature.encode("utf-8"), digest_size=8).digest()
        bucket = int.from_bytes(digest[:4], "little") % self.dimension
        return bucket, -1.0 if digest[4] & 1 else 1.0


def create_embedder(settings: Settings) -> Embedder:
    """Build the embedder named by `settings.embedding_backend`."""

    if settings.embedding_backend == "hashing":
        return HashingEmbedder(settings.hashing_dimension)
    return OpenAIEmbedder(api_key=settings.openai_api_key, model=settings.openai_embed_model)
