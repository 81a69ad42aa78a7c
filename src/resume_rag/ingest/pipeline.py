"""End-to-end index building: chunk -> embed (one batch) -> swap or persist."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace

from resume_rag.errors import EmbeddingError
from resume_rag.ingest.chunker import SentencePackingChunker
from resume_rag.ingest.embedder import Embedder
from resume_rag.retrieval.index_store import ChunkIndex, IndexStore
from resume_rag.types import Document

logger = logging.getLogger(__name__)


async def build_index(
    documents: Sequence[Document],
    chunker: SentencePackingChunker,
    embedder: Embedder,
) -> ChunkIndex:
    """Chunk `documents` and embed every chunk text in a single batched call.

    Vector `i` is attached to chunk `i`. Any embedder failure propagates and
    nothing is returned, so callers never commit a partial index.
    """

    chunks = chunker.chunk(documents)
    if not chunks:
        return ChunkIndex([])

    vectors = await embedder.embed_documents([chunk.text for chunk in chunks])
    if len(vectors) != len(chunks):
        raise EmbeddingError(
            f"Expected {len(chunks)} embeddings, received {len(vectors)}"
        )
    return ChunkIndex(
        [replace(chunk, embedding=vector) for chunk, vector in zip(chunks, vectors, strict=True)]
    )


class IngestPipeline:
    """Coordinates chunker/embedder/index store stages.

    Builds are serialised by a lock and always completed in memory before the
    session index is swapped or the snapshot rewritten.
    """

    def __init__(
        self,
        chunker: SentencePackingChunker,
        embedder: Embedder,
        index_store: IndexStore,
    ) -> None:
        self._chunker = chunker
        self._embedder = embedder
        self._index_store = index_store
        self._build_lock = asyncio.Lock()

    async def build_session(self, documents: Sequence[Document]) -> ChunkIndex:
        """Build from uploaded documents and make it the session index."""

        async with self._build_lock:
            index = await build_index(documents, self._chunker, self._embedder)
            self._index_store.swap_session(index)
        logger.info(
            f"Built session index: {len(index)} chunks from {len(documents)} documents"
        )
        return index

    async def build_durable(self, documents: Sequence[Document]) -> ChunkIndex:
        """Build from the document directory and rewrite the durable snapshot."""

        async with self._build_lock:
            index = await build_index(documents, self._chunker, self._embedder)
            self._index_store.write_snapshot(index)
        logger.info(
            f"Built durable index: {len(index)} chunks from {len(documents)} documents"
        )
        return index
