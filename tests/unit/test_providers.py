import asyncio
import math

import pytest
from langchain_core.messages import AIMessageChunk, HumanMessage, SystemMessage

from resume_rag.errors import CompletionError, ConfigurationError, EmbeddingError
from resume_rag.generation.completion import ChatOpenAICompletionClient
from resume_rag.ingest.embedder import HashingEmbedder, OpenAIEmbedder, create_embedder


class _FakeEmbeddings:
    def __init__(self, vectors=None, error: Exception | None = None) -> None:
        self.vectors = vectors
        self.error = error
        self.batches: list[list[str]] = []

    async def aembed_documents(self, texts):
        self.batches.append(list(texts))
        if self.error:
            raise self.error
        return self.vectors if self.vectors is not None else [[float(len(t))] for t in texts]

    async def aembed_query(self, text):
        if self.error:
            raise self.error
        return [float(len(text))]


class _FakeChat:
    def __init__(self, chunks, fail_after: int | None = None) -> None:
        self.chunks = chunks
        self.fail_after = fail_after
        self.messages = None

    async def astream(self, messages):
        self.messages = messages
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise RuntimeError("connection reset")
            yield chunk


async def _collect(stream) -> list[str]:
    return [item async for item in stream]


def test_openai_embedder_sends_one_batch_in_order() -> None:
    fake = _FakeEmbeddings()
    embedder = OpenAIEmbedder(api_key="", client=fake)

    vectors = asyncio.run(embedder.embed_documents(["a", "bbb", "cc"]))

    assert fake.batches == [["a", "bbb", "cc"]]
    assert vectors == [[1.0], [3.0], [2.0]]
    assert asyncio.run(embedder.embed_documents([])) == []
    assert len(fake.batches) == 1


def test_openai_embedder_wraps_provider_errors() -> None:
    embedder = OpenAIEmbedder(api_key="", client=_FakeEmbeddings(error=RuntimeError("429 quota")))

    with pytest.raises(EmbeddingError, match="429 quota"):
        asyncio.run(embedder.embed_documents(["a"]))
    with pytest.raises(EmbeddingError):
        asyncio.run(embedder.embed_query("a"))


def test_openai_embedder_rejects_short_responses() -> None:
    embedder = OpenAIEmbedder(api_key="", client=_FakeEmbeddings(vectors=[[1.0]]))

    with pytest.raises(EmbeddingError):
        asyncio.run(embedder.embed_documents(["a", "b"]))


def test_provider_clients_require_a_credential() -> None:
    with pytest.raises(ConfigurationError):
        OpenAIEmbedder(api_key="")
    with pytest.raises(ConfigurationError):
        ChatOpenAICompletionClient(api_key="")


def test_hashing_embedder_is_deterministic_and_normalised() -> None:
    embedder = HashingEmbedder(dimension=64)

    first = asyncio.run(embedder.embed_query("Jane built three systems."))
    second = asyncio.run(embedder.embed_documents(["jane BUILT three systems"]))[0]

    assert first == second
    assert len(first) == 64
    assert math.isclose(sum(v * v for v in first), 1.0, rel_tol=1e-9)
    assert asyncio.run(embedder.embed_query("   ")) == [0.0] * 64


def test_chat_completion_streams_text_deltas() -> None:
    llm = _FakeChat([AIMessageChunk(content="Hel"), AIMessageChunk(content=""), AIMessageChunk(content="lo")])
    client = ChatOpenAICompletionClient(api_key="", llm=llm)

    tokens = asyncio.run(_collect(client.stream("system text", "user text")))

    assert tokens == ["Hel", "lo"]
    assert isinstance(llm.messages[0], SystemMessage)
    assert isinstance(llm.messages[1], HumanMessage)
    assert llm.messages[1].content == "user text"


def test_chat_completion_failure_mid_stream() -> None:
    llm = _FakeChat([AIMessageChunk(content="partial"), AIMessageChunk(content="x")], fail_after=1)
    client = ChatOpenAICompletionClient(api_key="", llm=llm)
    received: list[str] = []

    async def consume() -> None:
        async for token in client.stream("s", "u"):
            received.append(token)

    with pytest.raises(CompletionError, match="connection reset"):
        asyncio.run(consume())
    assert received == ["partial"]


def test_create_embedder_follows_backend_setting(settings) -> None:
    offline = settings.model_copy(update={"embedding_backend": "hashing", "hashing_dimension": 32})

    embedder = create_embedder(offline)

    assert isinstance(embedder, HashingEmbedder)
    assert embedder.dimension == 32
    with pytest.raises(ConfigurationError):
        create_embedder(settings)


def test_hashing_embedder_is_sensitive_to_word_pairs() -> None:
    embedder = HashingEmbedder(dimension=512)

    forward = asyncio.run(embedder.embed_query("led team"))
    reversed_pair = asyncio.run(embedder.embed_query("team led"))

    assert forward != reversed_pair
    with pytest.raises(ValueError):
        HashingEmbedder(dimension=0)
