"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(slots=True)
class Document:
    """A source document before chunking."""

    source: str
    text: str
    category: str | None = None


@dataclass(slots=True)
class Chunk:
    """A contiguous passage of a source document.

    `embedding` stays `None` until the chunk has been through an embedder.
    `doc` keeps the full original text so a chunk can be re-split later.
    """

    id: str
    source: str
    doc: str
    text: str
    embedding: list[float] | None = None
    category: str | None = None


@dataclass(slots=True)
class RetrievalHit:
    """A ranked chunk without its vector."""

    id: str
    source: str
    text: str
    score: float


@dataclass(slots=True)
class Message:
    """One chat turn as shown to a user."""

    role: Literal["user", "assistant"]
    text: str
    sources: list[str] = field(default_factory=list)
