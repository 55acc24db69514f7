"""Tests for the streaming /chat endpoint with a fake LLM provider."""

import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace

import httpx
import openai
import pytest

from app.db.directory import MemoryDirectory
from app.schemas.chat_schema import ChatMessage
from app.services.chat_service import ChatService, LLMProvider
from tests.conftest import bearer, register


def _chunk(text):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


class FakeStream:
    def __init__(self, pieces):
        self._pieces = iter(pieces)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._pieces)
        except StopIteration:
            raise StopAsyncIteration

    async def close(self):
        self.closed = True


class FakeCompletions:
    def __init__(self, pieces=(), error=None):
        self.pieces = pieces
        self.error = error
        self.calls = []
        self.streams = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        stream = FakeStream([_chunk(p) for p in self.pieces] + [SimpleNamespace(choices=[])])
        self.streams.append(stream)
        return stream


class FakeClient:
    def __init__(self, completions):
        self.chat = SimpleNamespace(completions=completions)

    async def close(self):
        pass


@pytest.fixture
def completions(client):
    fake = FakeCompletions(pieces=["Hello", ", ", "U!"])
    client.app.state.llm_providers = {"openai": LLMProvider("openai", FakeClient(fake), "gpt-test")}
    return fake


def test_chat_streams_reply_and_stores_conversation(client, completions):
    token = register(client).json()["token"]
    client.post("/tasks", json={"title": "Buy milk"}, headers=bearer(token))

    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]}, headers=bearer(token))

    assert resp.status_code == 200
    assert resp.text == "Hello, U!"

    sent = completions.calls[0]
    assert sent["model"] == "gpt-test"
    assert sent["stream"] is True
    system = sent["messages"][0]
    assert system["role"] == "system"
    assert "Name: U" in system["content"]
    assert "Buy milk" in system["content"]
    assert sent["messages"][1] == {"role": "user", "content": "hi"}

    stored = list(client.app.state.directory.tables.conversations.values())
    assert len(stored) == 1
    assert [m.role for m in stored[0].messages] == ["user", "assistant"]
    assert stored[0].messages[-1].content == "Hello, U!"
    assert completions.streams[0].closed


def test_chat_requires_auth(client, completions):
    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 401


def test_chat_without_provider_is_dependency_error(client):
    client.app.state.llm_providers = {}
    token = register(client).json()["token"]

    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]}, headers=bearer(token))

    assert resp.status_code == 500
    assert resp.json()["detail"]["error"] == "llm_unavailable"


def test_chat_provider_failure_is_dependency_error(client):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    fake = FakeCompletions(error=openai.APIConnectionError(request=request))
    client.app.state.llm_providers = {"openai": LLMProvider("openai", FakeClient(fake), "gpt-test")}
    token = register(client).json()["token"]

    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]}, headers=bearer(token))

    assert resp.status_code == 500


def test_chat_uses_preferred_provider(client):
    openai_fake = FakeCompletions(pieces=["from openai"])
    grok_fake = FakeCompletions(pieces=["from grok"])
    client.app.state.llm_providers = {
        "openai": LLMProvider("openai", FakeClient(openai_fake), "gpt-test"),
        "grok": LLMProvider("grok", FakeClient(grok_fake), "grok-test"),
    }
    token = register(client).json()["token"]
    client.patch("/users/me/preferences", json={"ai_provider": "grok"}, headers=bearer(token))

    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]}, headers=bearer(token))

    assert resp.text == "from grok"
    assert openai_fake.calls == []


def test_chat_rejects_empty_messages(client, completions):
    token = register(client).json()["token"]

    resp = client.post("/chat", json={"messages": []}, headers=bearer(token))

    assert resp.status_code == 400


class SingleConnectionDirectory(MemoryDirectory):
    """Memory directory that hands out one session at a time, like a pool of size one."""

    def __init__(self):
        super().__init__()
        self._slot = asyncio.Semaphore(1)

    @asynccontextmanager
    async def session(self):
        try:
            await asyncio.wait_for(self._slot.acquire(), timeout=2)
        except asyncio.TimeoutError:
            raise RuntimeError("session requested while the only connection is checked out")
        try:
            async with super().session() as repos:
                yield repos
        finally:
            self._slot.release()


def test_chat_holds_a_single_connection(client, completions):
    client.app.state.directory = SingleConnectionDirectory()
    token = register(client).json()["token"]

    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]}, headers=bearer(token))

    assert resp.status_code == 200
    assert resp.text == "Hello, U!"
    assert len(client.app.state.directory.tables.conversations) == 1


@pytest.mark.asyncio
async def test_disconnect_mid_stream_closes_provider_and_keeps_partial_reply(directory, repos):
    fake = FakeCompletions(pieces=["Hello", ", ", "U!"])
    svc = ChatService({"openai": LLMProvider("openai", FakeClient(fake), "gpt-test")}, repos)
    user = await repos.users.insert(email="u@test.com", name="U")

    reply = await svc.start_reply(user, [ChatMessage(role="user", content="hi")])
    assert await reply.__anext__() == "Hello"
    await reply.aclose()

    assert fake.streams[0].closed
    stored = list(directory.tables.conversations.values())
    assert len(stored) == 1
    assert stored[0].messages[-1].content == "Hello"
