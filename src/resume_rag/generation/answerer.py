"""Question answering orchestration: retrieve -> prompt -> stream."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from resume_rag.config import PromptConfig
from resume_rag.errors import EmbeddingError, IndexUnavailableError, SnapshotError
from resume_rag.generation.completion import CompletionClient
from resume_rag.generation.prompt import select_context, system_prompt, user_prompt
from resume_rag.retrieval.retriever import DenseRetriever
from resume_rag.streaming.protocol import GENERAL_KNOWLEDGE_SOURCE, stream_answer
from resume_rag.types import RetrievalHit

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreparedAnswer:
    """Everything decided before generation starts."""

    system: str
    user: str
    sources: list[str]
    grounded: bool
    hits: list[RetrievalHit] = field(default_factory=list)


class RagAnswerer:
    """Runs one question through embed-query, retrieval, prompting and streaming.

    If the index cannot be loaded or the question cannot be embedded, the
    answer is produced in ungrounded mode and attributed to
    `GENERAL_KNOWLEDGE_SOURCE`. A missing credential still propagates.
    """

    def __init__(
        self,
        *,
        retriever: DenseRetriever,
        completion: CompletionClient,
        config: PromptConfig | None = None,
    ) -> None:
        self.retriever = retriever
        self.completion = completion
        self.config = config or PromptConfig()

    async def prepare(self, question: str) -> PreparedAnswer:
        try:
            hits = await self.retriever.retrieve(question)
        except IndexUnavailableError as exc:
            logger.info(f"No index available ({exc}); answering without context")
            return self._ungrounded(question)
        except (SnapshotError, EmbeddingError) as exc:
            logger.warning(f"Retrieval failed ({exc}); answering without context")
            return self._ungrounded(question)

        used = select_context(hits, self.config.max_context_chars)
        return PreparedAnswer(
            system=system_prompt(),
            user=user_prompt(question, used),
            sources=_unique_sources(used),
            grounded=True,
            hits=used,
        )

    @staticmethod
    def _ungrounded(question: str) -> PreparedAnswer:
        return PreparedAnswer(
            system=system_prompt(),
            user=user_prompt(question),
            sources=[GENERAL_KNOWLEDGE_SOURCE],
            grounded=False,
        )

    def stream(self, prepared: PreparedAnswer) -> AsyncIterator[str]:
        tokens = self.completion.stream(prepared.system, prepared.user)
        return stream_answer(tokens, prepared.sources)

    async def answer(self, question: str) -> AsyncIterator[str]:
        prepared = await self.prepare(question)
        async for fragment in self.stream(prepared):
            yield fragment


def _unique_sources(hits: list[RetrievalHit]) -> list[str]:
    sources: list[str] = []
    for hit in hits:
        if hit.source not in sources:
            sources.append(hit.source)
    return sources
