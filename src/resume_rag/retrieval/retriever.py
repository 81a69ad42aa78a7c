"""Exhaustive cosine-similarity retrieval over an in-memory chunk index."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from math import sqrt

from resume_rag.config import RetrievalConfig
from resume_rag.errors import SnapshotError
from resume_rag.ingest.embedder import Embedder
from resume_rag.retrieval.index_store import ChunkIndex, IndexStore
from resume_rag.types import RetrievalHit

logger = logging.getLogger(__name__)

_EPSILON = 1e-10


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """`dot(a, b) / (|a| * |b| + eps)`; a zero vector scores 0 instead of dividing by zero."""

    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    return numerator / (norm_a * norm_b + _EPSILON)


def top_k(query_vector: Sequence[float], index: ChunkIndex, k: int) -> list[RetrievalHit]:
    """Rank every chunk against `query_vector` and keep the best `k`.

    `sorted` is stable, so chunks with exactly equal scores keep index order.
    """

    if k <= 0 or len(index) == 0:
        return []
    scored = [
        RetrievalHit(
            id=chunk.id,
            source=chunk.source,
            text=chunk.text,
            score=cosine_similarity(query_vector, chunk.embedding or []),
        )
        for chunk in index
    ]
    ranked = sorted(scored, key=lambda hit: hit.score, reverse=True)
    return ranked[:k]


class DenseRetriever:
    """Embeds a question and scans whichever index the store resolves."""

    def __init__(
        self,
        index_store: IndexStore,
        embedder: Embedder,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.index_store = index_store
        self.embedder = embedder
        self.config = config or RetrievalConfig()

    async def retrieve(self, question: str, *, k: int | None = None) -> list[RetrievalHit]:
        # Raises IndexUnavailableError before any embedding call is made.
        index = await asyncio.to_thread(self.index_store.load)
        query_vector = await self.embedder.embed_query(question)
        if index.dimension is not None and len(query_vector) != index.dimension:
            raise SnapshotError(
                f"Query vector has dimension {len(query_vector)} but the index was built "
                f"with dimension {index.dimension}; rebuild it with the current embedding model"
            )
        hits = top_k(query_vector, index, self.config.top_k if k is None else k)
        if hits:
            logger.info(
                f"Retrieved {len(hits)} of {len(index)} chunks, top score {hits[0].score:.4f} "
                f"for '{question[:50]}'"
            )
        return hits
