"""ChatRoster em memória (desenvolvimento e testes)."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from chatflow.domain.chats import Chat, validate_transition
from chatflow.domain.enums import ChatEvent, ChatStatus
from chatflow.domain.errors import ChatTransitionError, PersistenceError
from chatflow.domain.protocols import ChatRoster, Unsubscribe
from chatflow.observability.logging import get_logger, short_id
from chatflow.utils.ids import new_id

logger: logging.Logger = get_logger(__name__)


class InMemoryChatRoster(ChatRoster):
    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._chats: dict[str, Chat] = {}
        self._listeners: dict[int, tuple[Callable[[], None], asyncio.AbstractEventLoop | None]] = {}
        self._next_token = itertools.count(1)

    async def create_chat(
        self, customer_name: str | None = None, customer_email: str | None = None
    ) -> Chat:
        now = self._clock()
        chat = Chat(
            id=new_id(),
            status=ChatStatus.PENDING,
            customer_name=customer_name,
            customer_email=customer_email,
            created_at=now,
            updated_at=now,
        )
        self._chats[chat.id] = chat
        self._changed()
        return chat

    async def get_chat(self, chat_id: str) -> Chat | None:
        return self._chats.get(chat_id)

    async def list_open_chats(self, agent_id: str | None = None) -> list[Chat]:
        visible = [chat for chat in self._chats.values() if chat.visible_to(agent_id)]
        return sorted(visible, key=lambda chat: chat.updated_at, reverse=True)

    async def assign_chat(self, chat_id: str, agent_id: str) -> Chat:
        return self._transition(chat_id, ChatEvent.AGENT_ASSIGNED, assigned_agent_id=agent_id)

    async def resolve_chat(self, chat_id: str) -> Chat:
        return self._transition(chat_id, ChatEvent.RESOLVED)

    async def close_chat(self, chat_id: str) -> Chat:
        return self._transition(chat_id, ChatEvent.CLOSED)

    async def touch_chat(self, chat_id: str) -> None:
        chat = self._require(chat_id)
        self._chats[chat_id] = chat.model_copy(update={"updated_at": self._clock()})
        self._changed()

    def subscribe_changes(self, on_change: Callable[[], None]) -> Unsubscribe:
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        token = next(self._next_token)
        self._listeners[token] = (on_change, loop)

        def _unsubscribe() -> None:
            self._listeners.pop(token, None)

        return _unsubscribe

    def _transition(self, chat_id: str, event: ChatEvent, **changes: Any) -> Chat:
        chat = self._require(chat_id)
        ok, next_status, error = validate_transition(chat.status, event)
        if not ok or next_status is None:
            logger.warning(
                "Chat transition rejected",
                extra={
                    "chat_id": short_id(chat_id),
                    "status": str(chat.status),
                    "event": str(event),
                },
            )
            raise ChatTransitionError(error)

        updated = chat.model_copy(
            update={"status": next_status, "updated_at": self._clock(), **changes}
        )
        self._chats[chat_id] = updated
        self._changed()
        return updated

    def _require(self, chat_id: str) -> Chat:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise PersistenceError(f"Chat not found: {chat_id}")
        return chat

    def _changed(self) -> None:
        for callback, loop in list(self._listeners.values()):
            if loop is None:
                callback()
            else:
                loop.call_soon(callback)
