"""Answer stream framing: answer text followed by a `SOURCES:<json>` trailer.

The stream carries raw answer text as it is generated, then the literal
marker `SOURCES:` immediately followed by a JSON array of source labels, then
ends. There is no escaping or length prefix: the trailer is located by the
*last* marker occurrence once the stream is complete, so an answer that
happens to contain the marker literal still decodes when the trailer is
present. Progressive rendering stops at the first marker it sees.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field

from resume_rag.errors import ProtocolError
from resume_rag.types import Message

logger = logging.getLogger(__name__)

SOURCES_MARKER = "SOURCES:"
GENERAL_KNOWLEDGE_SOURCE = "General AI Knowledge"


def encode_trailer(sources: Sequence[str]) -> str:
    return f"{SOURCES_MARKER}{json.dumps(list(sources), ensure_ascii=False)}"


async def stream_answer(
    tokens: AsyncIterator[str], sources: Sequence[str]
) -> AsyncIterator[str]:
    """Relay `tokens` unchanged, then emit exactly one sources trailer.

    If the consumer stops early (client disconnect), the token iterator is
    closed so in-flight generation is abandoned and no trailer is sent.
    """

    emitted = 0
    async with aclosing(tokens) as upstream:
        async for token in upstream:
            if token:
                emitted += 1
                yield token
    logger.debug(f"Relayed {emitted} tokens, appending {len(sources)} sources")
    yield encode_trailer(sources)


@dataclass(slots=True)
class DecodedAnswer:
    text: str
    sources: list[str] = field(default_factory=list)

    def to_message(self) -> Message:
        return Message(role="assistant", text=self.text, sources=list(self.sources))


class AnswerStreamDecoder:
    """Incremental client-side decoder.

    `feed` accepts `str` or `bytes` fragments as they arrive and returns the
    answer text that became visible with that fragment. A tail that could be
    the beginning of a marker split across fragments is held back until the
    next fragment resolves it. `close` returns the full answer and sources.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._visible = 0
        self._marker_seen = False
        self._closed = False

    @property
    def text(self) -> str:
        """Answer text rendered so far."""
        return self._buffer[: self._visible]

    def feed(self, fragment: str | bytes) -> str:
        if self._closed:
            raise ProtocolError("Decoder is already closed")
        if isinstance(fragment, bytes):
            fragment = self._utf8.decode(fragment)
        self._buffer += fragment
        return self._advance()

    def close(self) -> DecodedAnswer:
        if not self._closed:
            self._buffer += self._utf8.decode(b"", final=True)
            self._closed = True

        answer, marker, payload = self._buffer.rpartition(SOURCES_MARKER)
        if not marker:
            return DecodedAnswer(text=self._buffer, sources=[])
        try:
            sources = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"Malformed sources trailer: {payload[:80]!r}") from exc
        if not isinstance(sources, list):
            raise ProtocolError("Sources trailer is not a JSON array")
        return DecodedAnswer(text=answer, sources=[str(source) for source in sources])

    def _advance(self) -> str:
        if self._marker_seen:
            return ""
        marker_at = self._buffer.find(SOURCES_MARKER, self._visible)
        if marker_at >= 0:
            self._marker_seen = True
            limit = marker_at
        else:
            limit = len(self._buffer) - _pending_marker_prefix(self._buffer)
        new_text = self._buffer[self._visible : limit]
        self._visible = max(self._visible, limit)
        return new_text


def _pending_marker_prefix(buffer: str) -> int:
    """Length of the longest buffer suffix that is a proper prefix of the marker."""
    for size in range(min(len(SOURCES_MARKER) - 1, len(buffer)), 0, -1):
        if SOURCES_MARKER.startswith(buffer[-size:]):
            return size
    return 0


def decode_answer(fragments: Iterable[str | bytes]) -> DecodedAnswer:
    decoder = AnswerStreamDecoder()
    for fragment in fragments:
        decoder.feed(fragment)
    return decoder.close()
