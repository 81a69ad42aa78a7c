"""Command line entrypoint: build the durable index, ask a question, serve the API."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from resume_rag.config import get_settings
from resume_rag.errors import RagError
from resume_rag.services import RagServices
from resume_rag.streaming.protocol import AnswerStreamDecoder

logger = logging.getLogger(__name__)


def cmd_build(services: RagServices, data_dir: str) -> int:
    """Build the durable snapshot from every supported file in `data_dir`."""
    documents = services.parsers.load_directory(data_dir)
    index = asyncio.run(services.pipeline().build_durable(documents))
    logger.info(f"Indexed {len(index)} chunks into {services.index_store.snapshot_path}")
    return 0


async def _ask(services: RagServices, question: str) -> None:
    decoder = AnswerStreamDecoder()
    async for fragment in services.answerer().answer(question):
        visible = decoder.feed(fragment)
        if visible:
            sys.stdout.write(visible)
            sys.stdout.flush()
    answer = decoder.close()
    sys.stdout.write(f"\n\nSources: {', '.join(answer.sources) or '-'}\n")


def cmd_ask(services: RagServices, question: str) -> int:
    asyncio.run(_ask(services, question))
    return 0


def cmd_serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("resume_rag.api.main:app", host=host, port=port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resume-rag")
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="build the durable embedding snapshot")
    build.add_argument("--data-dir", default=None)
    build.add_argument("--output", default=None, help="snapshot path")

    ask = sub.add_parser("ask", help="stream an answer to stdout")
    ask.add_argument("question")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    if args.command == "serve":
        return cmd_serve(args.host, args.port)

    if args.command == "build" and args.output:
        settings = settings.model_copy(update={"index_path": args.output})
    services = RagServices(settings)
    try:
        if args.command == "build":
            return cmd_build(services, args.data_dir or settings.data_dir)
        return cmd_ask(services, args.question)
    except (RagError, FileNotFoundError) as exc:
        logger.error(f"{args.command} failed: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
