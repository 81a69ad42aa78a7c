"""Document loaders for the indexed corpus and for uploaded files."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from resume_rag.types import Document

logger = logging.getLogger(__name__)

_UPLOAD_SUFFIX = re.compile(r"\.(md|txt)$")


class Parser(ABC):
    """Base parser interface used by the directory loader."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, path: Path, *, category: str | None = None) -> Document:
        """Parse a file into a `Document` labelled with its filename stem."""


class TextParser(Parser):
    """Parser for plain text documents."""

    extensions = (".txt",)

    def parse(self, path: Path, *, category: str | None = None) -> Document:
        return Document(
            source=path.stem,
            text=path.read_text(encoding="utf-8"),
            category=category,
        )


class MarkdownParser(Parser):
    """Parser for markdown documents. Markup is kept as-is."""

    extensions = (".md", ".markdown")

    def parse(self, path: Path, *, category: str | None = None) -> Document:
        return Document(
            source=path.stem,
            text=path.read_text(encoding="utf-8"),
            category=category,
        )


class ParserRegistry:
    """Maps file extension to parser implementation."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for parser in parsers or [TextParser(), MarkdownParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def supports(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self._parsers

    def parse_path(self, path: str | Path, *, category: str | None = None) -> Document:
        file_path = Path(path)
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise ValueError(f"No parser registered for extension: {file_path.suffix}")
        return parser.parse(file_path, category=category)

    def load_directory(self, directory: str | Path) -> list[Document]:
        """Load every supported file in `directory`, sorted by filename."""

        root = Path(directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Document directory not found: {root}")
        documents = [
            self.parse_path(path, category=infer_category(path.name))
            for path in sorted(root.iterdir())
            if path.is_file() and self.supports(path)
        ]
        logger.info(f"Loaded {len(documents)} documents from {root}")
        return documents


def source_from_filename(name: str) -> str:
    """Strip a trailing `.md`/`.txt` from an uploaded filename."""
    return _UPLOAD_SUFFIX.sub("", name)


def infer_category(name: str) -> str:
    return "resume" if "resume" in name.lower() else "project"


def document_from_upload(name: str, content: str, category: str | None = None) -> Document:
    return Document(
        source=source_from_filename(name),
        text=content,
        category=category or infer_category(name),
    )
