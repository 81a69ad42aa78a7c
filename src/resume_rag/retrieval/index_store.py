"""Index storage: the session index, the durable JSON snapshot and their resolution."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from resume_rag.errors import IndexUnavailableError, SnapshotError
from resume_rag.types import Chunk

logger = logging.getLogger(__name__)


class ChunkIndex:
    """Ordered, read-only set of embedded chunks with one shared dimensionality."""

    def __init__(self, chunks: Sequence[Chunk]) -> None:
        dimension: int | None = None
        for chunk in chunks:
            if chunk.embedding is None:
                raise ValueError(f"Chunk {chunk.id} has no embedding")
            if dimension is None:
                dimension = len(chunk.embedding)
            elif len(chunk.embedding) != dimension:
                raise ValueError(
                    f"Chunk {chunk.id} has dimension {len(chunk.embedding)}, expected {dimension}"
                )
        self._chunks: tuple[Chunk, ...] = tuple(chunks)
        self.dimension = dimension

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks)


class IndexStore:
    """Holds the session index and reads/writes the durable snapshot.

    Resolution order for `load()`:
    1. the session index, if one has been swapped in;
    2. the durable snapshot at `snapshot_path`, if the file exists;
    3. otherwise `IndexUnavailableError`.

    The session index is replaced by a single attribute assignment and the
    snapshot by `os.replace` of a fully written temp file, so readers never
    observe a partially built index.
    """

    def __init__(self, snapshot_path: str | Path) -> None:
        self.snapshot_path = Path(snapshot_path)
        self._session: ChunkIndex | None = None

    @property
    def session(self) -> ChunkIndex | None:
        return self._session

    def swap_session(self, index: ChunkIndex) -> ChunkIndex | None:
        """Install `index` as the session index and return the previous one."""
        previous, self._session = self._session, index
        logger.info(f"Session index replaced ({len(index)} chunks)")
        return previous

    def clear_session(self) -> None:
        self._session = None

    def has_snapshot(self) -> bool:
        return self.snapshot_path.is_file()

    def active_kind(self) -> str:
        if self._session is not None:
            return "session"
        if self.has_snapshot():
            return "durable"
        return "none"

    def load(self) -> ChunkIndex:
        if self._session is not None:
            return self._session
        if not self.has_snapshot():
            raise IndexUnavailableError(
                "No embeddings available. Upload files or build the durable index first."
            )
        return self.read_snapshot()

    def read_snapshot(self) -> ChunkIndex:
        try:
            payload = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise IndexUnavailableError(f"Snapshot not found: {self.snapshot_path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(f"Cannot read snapshot {self.snapshot_path}: {exc}") from exc

        if not isinstance(payload, list):
            raise SnapshotError(f"Snapshot {self.snapshot_path} is not a JSON array")
        try:
            return ChunkIndex([chunk_from_record(record) for record in payload])
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed chunk record in {self.snapshot_path}: {exc}") from exc

    def write_snapshot(self, index: ChunkIndex) -> Path:
        """Rewrite the snapshot wholesale via temp file + atomic rename."""

        self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        body = json.dumps(
            [chunk_to_record(chunk) for chunk in index],
            ensure_ascii=False,
            indent=2,
        )
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.snapshot_path.name}.",
            suffix=".tmp",
            dir=self.snapshot_path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(body)
            os.replace(tmp_name, self.snapshot_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Wrote snapshot with {len(index)} chunks to {self.snapshot_path}")
        return self.snapshot_path


def chunk_to_record(chunk: Chunk) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": chunk.id,
        "source": chunk.source,
        "doc": chunk.doc,
        "text": chunk.text,
        "embedding": chunk.embedding,
    }
    if chunk.category is not None:
        record["category"] = chunk.category
    return record


def chunk_from_record(record: dict[str, Any]) -> Chunk:
    embedding = record["embedding"]
    return Chunk(
        id=str(record["id"]),
        source=str(record["source"]),
        doc=str(record.get("doc", "")),
        text=str(record["text"]),
        embedding=[float(value) for value in embedding] if embedding is not None else None,
        category=record.get("category"),
    )
