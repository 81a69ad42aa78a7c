"""Configuration models for the RAG system."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures sentence-packing chunk boundaries."""

    target_size: int = Field(default=700, ge=1)


class RetrievalConfig(BaseModel):
    """Configures nearest-neighbour retrieval."""

    top_k: int = Field(default=5, ge=0)


class PromptConfig(BaseModel):
    """Configures how much retrieved context is placed in the prompt."""

    max_context_chars: int = Field(default=6000, ge=1)


class Settings(BaseSettings):
    """Environment-provided settings used to wire clients and stores."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: str = Field(default="", description="Provider credential")
    openai_embed_model: str = Field(default="text-embedding-3-small")
    openai_chat_model: str = Field(default="gpt-4o-mini")
    chat_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    embedding_backend: Literal["openai", "hashing"] = Field(
        default="openai", description="`hashing` embeds offline without a credential"
    )
    hashing_dimension: int = Field(default=256, ge=1)

    chunk_size: int = Field(default=700, ge=1)
    top_k: int = Field(default=5, ge=0)
    max_context_chars: int = Field(default=6000, ge=1)

    data_dir: str = Field(default="data", description="Directory of source documents")
    index_path: str = Field(default="embeddings.json", description="Durable snapshot file")

    log_level: str = Field(default="INFO")

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key.strip())

    def chunking(self) -> ChunkingConfig:
        return ChunkingConfig(target_size=self.chunk_size)

    def retrieval(self) -> RetrievalConfig:
        return RetrievalConfig(top_k=self.top_k)

    def prompt(self) -> PromptConfig:
        return PromptConfig(max_context_chars=self.max_context_chars)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
