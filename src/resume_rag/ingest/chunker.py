"""Sentence-packing chunker."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable

from resume_rag.config import ChunkingConfig
from resume_rag.types import Chunk, Document

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


class SentencePackingChunker:
    """Packs sentence-like segments into passages of roughly `target_size` chars.

    Design notes:
    1. Segmentation is a punctuation heuristic, not a sentence tokenizer.
       Text is split wherever `.`, `!` or `?` is followed by whitespace.

    2. Segments are packed greedily. Segments are joined with a single space;
       when the next segment would push the buffer past `target_size`, the
       buffer is emitted and a new one starts with that segment.

    3. There is no hard cap. A single segment longer than `target_size` is
       emitted as one oversized chunk rather than being cut mid-sentence.

    Chunks keep document order and segment order. Whitespace-only buffers are
    never emitted, so a blank document yields no chunks.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    @property
    def target_size(self) -> int:
        return self.config.target_size

    def chunk(self, documents: Iterable[Document]) -> list[Chunk]:
        """Chunk every document, preserving input order."""

        chunks: list[Chunk] = []
        for document in documents:
            chunks.extend(self.chunk_document(document))
        return chunks

    def chunk_document(self, document: Document) -> list[Chunk]:
        output: list[Chunk] = []
        buffer = ""

        for segment in self._split_segments(document.text):
            candidate = f"{buffer} {segment}" if buffer else segment
            if buffer and len(candidate) > self.target_size:
                self._flush(document, buffer, output)
                buffer = segment
            else:
                buffer = candidate

        self._flush(document, buffer, output)
        return output

    @staticmethod
    def _split_segments(text: str) -> list[str]:
        return [part for part in _SENTENCE_SPLIT.split(text) if part.strip()]

    @staticmethod
    def _flush(document: Document, buffer: str, output: list[Chunk]) -> None:
        text = buffer.strip()
        if not text:
            return
        output.append(
            Chunk(
                id=uuid.uuid4().hex,
                source=document.source,
                doc=document.text,
                text=text,
                category=document.category,
            )
        )


def chunk_documents(documents: Iterable[Document], target_size: int) -> list[Chunk]:
    """Functional entrypoint: `chunk(documents, target_size)`."""
    return SentencePackingChunker(ChunkingConfig(target_size=target_size)).chunk(documents)
