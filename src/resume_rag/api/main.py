"""FastAPI entrypoint for ask/build-embeddings/health endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import BaseModel, Field

from resume_rag.config import Settings, get_settings
from resume_rag.errors import ConfigurationError
from resume_rag.generation.completion import CompletionClient
from resume_rag.ingest.embedder import Embedder
from resume_rag.ingest.parser import document_from_upload
from resume_rag.services import RagServices

logger = logging.getLogger(__name__)

SOURCES_HEADER = "X-RAG-Sources"


class UploadedFile(BaseModel):
    name: str = Field(min_length=1)
    content: str
    type: str | None = None


class BuildEmbeddingsRequest(BaseModel):
    files: list[UploadedFile] = Field(default_factory=list)


def create_app(
    settings: Settings | None = None,
    *,
    embedder: Embedder | None = None,
    completion: CompletionClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Résumé RAG", version="0.1.0")
    app.state.services = RagServices(settings, embedder=embedder, completion=completion)

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        services: RagServices = request.app.state.services
        return {
            "status": "ok",
            "llm_configured": services.llm_configured,
            "index": services.index_store.active_kind(),
        }

    @app.post("/ask")
    async def ask(request: Request):
        services: RagServices = request.app.state.services
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        question = payload.get("question") if isinstance(payload, dict) else None
        if not isinstance(question, str) or not question.strip():
            return PlainTextResponse("Invalid question", status_code=400)

        try:
            answerer = services.answerer()
            prepared = await answerer.prepare(question.strip())
        except ConfigurationError as exc:
            logger.error(f"Cannot answer: {exc}")
            return PlainTextResponse(f"Error: {exc}", status_code=500)
        except Exception as exc:
            logger.exception("Failed to prepare answer")
            return PlainTextResponse(f"Error: {exc}", status_code=500)

        return StreamingResponse(
            _logged_stream(answerer.stream(prepared)),
            media_type="text/plain; charset=utf-8",
            headers={
                "Cache-Control": "no-cache",
                SOURCES_HEADER: json.dumps(prepared.sources),
            },
        )

    @app.post("/build-embeddings")
    async def build_embeddings(request: Request, body: BuildEmbeddingsRequest):
        services: RagServices = request.app.state.services
        if not body.files:
            return JSONResponse({"error": "No files provided"}, status_code=400)

        documents = [
            document_from_upload(item.name, item.content, item.type) for item in body.files
        ]
        try:
            index = await services.pipeline().build_session(documents)
        except ConfigurationError as exc:
            logger.error(f"Cannot build embeddings: {exc}")
            return JSONResponse({"error": str(exc)}, status_code=500)
        except Exception:
            logger.exception("Error building embeddings")
            return JSONResponse({"error": "Failed to build embeddings"}, status_code=500)

        return {
            "success": True,
            "chunks": len(index),
            "files": len(documents),
            "message": f"Built embeddings for {len(index)} chunks from {len(documents)} files",
        }

    return app


async def _logged_stream(fragments: AsyncIterator[str]) -> AsyncIterator[str]:
    # No error frame exists in the protocol; a failure here ends the connection.
    try:
        async with aclosing(fragments) as upstream:
            async for fragment in upstream:
                yield fragment
    except Exception:
        logger.exception("Answer stream failed after headers were sent")
        raise


app = create_app()
