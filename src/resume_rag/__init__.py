"""Retrieval-augmented answering over résumé and project notes."""

from .config import ChunkingConfig, PromptConfig, RetrievalConfig, Settings

__all__ = ["ChunkingConfig", "PromptConfig", "RetrievalConfig", "Settings"]
