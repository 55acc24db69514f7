from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import anyio
import openai
from openai import AsyncOpenAI

from app.core.config import Settings
from app.core.exceptions import LLMServiceException
from app.repositories.base import Repositories
from app.schemas.chat_schema import ChatMessage
from app.schemas.user_schema import UserRecord

logger = logging.getLogger(__name__)

RECENT_TASK_WINDOW = timedelta(days=7)
RECENT_TASK_LIMIT = 5

SYSTEM_PROMPT = """You are MindMate, a personal AI assistant. You help users with:
- Daily routine suggestions and optimization
- Task and reminder management
- Goal tracking and motivation
- English sentence correction
- Code generation and programming help
- General productivity advice

User context:
- Name: {name}
- Recent tasks: {tasks}

Be helpful, encouraging, and personalized. Keep responses concise but informative."""


@dataclass
class LLMProvider:
    name: str
    client: AsyncOpenAI
    model: str


def build_providers(settings: Settings) -> dict[str, LLMProvider]:
    """One client per provider that has an API key."""
    providers: dict[str, LLMProvider] = {}
    if settings.OPENAI_API_KEY:
        providers["openai"] = LLMProvider(
            name="openai",
            client=AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.LLM_REQUEST_TIMEOUT),
            model=settings.OPENAI_MODEL,
        )
    if settings.XAI_API_KEY:
        providers["grok"] = LLMProvider(
            name="grok",
            client=AsyncOpenAI(
                api_key=settings.XAI_API_KEY,
                base_url=settings.XAI_BASE_URL,
                timeout=settings.LLM_REQUEST_TIMEOUT,
            ),
            model=settings.XAI_MODEL,
        )
    return providers


async def close_providers(providers: dict[str, LLMProvider]) -> None:
    for provider in providers.values():
        await provider.client.close()


class ChatService:
    def __init__(self, providers: dict[str, LLMProvider], repos: Repositories):
        self.providers = providers
        self.repos = repos

    def pick_provider(self, preferred: str) -> LLMProvider:
        if preferred in self.providers:
            return self.providers[preferred]
        if self.providers:
            return next(iter(self.providers.values()))
        raise LLMServiceException("No AI provider is configured.")

    async def build_system_prompt(self, user: UserRecord) -> str:
        since = datetime.now(timezone.utc) - RECENT_TASK_WINDOW
        recent = await self.repos.tasks.list_recent(user.id, since, RECENT_TASK_LIMIT)
        titles = ", ".join(t.title for t in recent) or "None"
        return SYSTEM_PROMPT.format(name=user.name or "User", tasks=titles)

    async def start_reply(self, user: UserRecord, messages: list[ChatMessage]) -> AsyncIterator[str]:
        """Open the completion stream up front so provider errors surface before any bytes are sent."""
        provider = self.pick_provider(user.preferences.ai_provider)
        system_prompt = await self.build_system_prompt(user)
        payload = [{"role": "system", "content": system_prompt}]
        payload += [m.model_dump() for m in messages]
        try:
            stream = await provider.client.chat.completions.create(
                model=provider.model,
                messages=payload,
                stream=True,
            )
        except openai.OpenAIError as e:
            logger.error("[%s] chat completion failed: %s", provider.name, e)
            raise LLMServiceException()
        return self._relay(stream, provider, user, messages)

    async def _relay(self, stream, provider: LLMProvider, user: UserRecord,
                     messages: list[ChatMessage]) -> AsyncIterator[str]:
        parts: list[str] = []
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    parts.append(delta)
                    yield delta
        except openai.OpenAIError as e:
            # headers are already sent; end the stream with what we have
            logger.error("[%s] stream interrupted for user %s: %s", provider.name, user.id, e)
        finally:
            # also runs when the client disconnects mid-stream
            with anyio.CancelScope(shield=True):
                await stream.close()
                reply = ChatMessage(role="assistant", content="".join(parts))
                await self.repos.conversations.create(user.id, [*messages, reply])
                logger.info("Stored conversation for user %s (%d chars via %s)",
                            user.id, len(reply.content), provider.name)
