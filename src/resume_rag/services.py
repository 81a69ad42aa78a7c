"""Composition root: builds and caches the clients, store and pipelines."""

from __future__ import annotations

import logging

from resume_rag.config import Settings
from resume_rag.generation.answerer import RagAnswerer
from resume_rag.generation.completion import ChatOpenAICompletionClient, CompletionClient
from resume_rag.ingest.chunker import SentencePackingChunker
from resume_rag.ingest.embedder import Embedder, create_embedder
from resume_rag.ingest.parser import ParserRegistry
from resume_rag.ingest.pipeline import IngestPipeline
from resume_rag.retrieval.index_store import IndexStore
from resume_rag.retrieval.retriever import DenseRetriever

logger = logging.getLogger(__name__)


class RagServices:
    """Owns the index store and lazily creates provider-backed components.

    Provider clients are only constructed on first use, so a process without
    a credential can still start and report `ConfigurationError` per request.
    Injected `embedder`/`completion` instances take precedence over the
    defaults built from settings (`EMBEDDING_BACKEND` picks the embedder).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        embedder: Embedder | None = None,
        completion: CompletionClient | None = None,
        index_store: IndexStore | None = None,
    ) -> None:
        self.settings = settings
        self.index_store = index_store or IndexStore(settings.index_path)
        self.chunker = SentencePackingChunker(settings.chunking())
        self.parsers = ParserRegistry()
        self._embedder = embedder
        self._completion = completion
        self._pipeline: IngestPipeline | None = None
        self._answerer: RagAnswerer | None = None

    @property
    def llm_configured(self) -> bool:
        if self._embedder is not None and self._completion is not None:
            return True
        return self.settings.llm_configured

    def embedder(self) -> Embedder:
        if self._embedder is None:
            self._embedder = create_embedder(self.settings)
            logger.info(
                f"Embedding client ready ({self.settings.embedding_backend}: "
                f"{type(self._embedder).__name__})"
            )
        return self._embedder

    def completion(self) -> CompletionClient:
        if self._completion is None:
            self._completion = ChatOpenAICompletionClient(
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_chat_model,
                temperature=self.settings.chat_temperature,
            )
            logger.info(f"Completion client ready ({self.settings.openai_chat_model})")
        return self._completion

    def pipeline(self) -> IngestPipeline:
        if self._pipeline is None:
            self._pipeline = IngestPipeline(self.chunker, self.embedder(), self.index_store)
        return self._pipeline

    def answerer(self) -> RagAnswerer:
        if self._answerer is None:
            retriever = DenseRetriever(
                self.index_store, self.embedder(), self.settings.retrieval()
            )
            self._answerer = RagAnswerer(
                retriever=retriever,
                completion=self.completion(),
                config=self.settings.prompt(),
            )
        return self._answerer
