"""MessageStore em memória (desenvolvimento e testes).

⚠️ Não usar em produção!
- Não persiste entre restarts
- Não funciona com múltiplas instâncias

O "realtime" é entregue no event loop de quem assinou via `call_soon`: o
callback nunca roda dentro do `create_message` que gerou a mensagem.
"""

from __future__ import annotations

import asyncio
import bisect
import itertools
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from chatflow.domain.enums import MessageKind, SenderType
from chatflow.domain.messages import Message
from chatflow.domain.protocols import MessageCallback, MessageStore, Unsubscribe
from chatflow.observability.logging import get_logger, short_id
from chatflow.utils.ids import new_id

logger: logging.Logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class _Subscription:
    __slots__ = ("chat_id", "callback", "loop", "active")

    def __init__(
        self,
        chat_id: str,
        callback: MessageCallback,
        loop: asyncio.AbstractEventLoop | None,
    ) -> None:
        self.chat_id = chat_id
        self.callback = callback
        self.loop = loop
        self.active = True

    def deliver(self, message: Message) -> None:
        # Assinatura cancelada entre o agendamento e a entrega não recebe nada
        if self.active:
            self.callback(message)


class InMemoryMessageStore(MessageStore):
    """Mensagens por chat, ordenadas por created_at."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or _utc_now
        self._messages: dict[str, list[Message]] = {}
        self._subscriptions: dict[int, _Subscription] = {}
        self._next_token = itertools.count(1)

    async def create_message(
        self,
        chat_id: str,
        sender_type: SenderType,
        content: str | None,
        message_type: MessageKind = MessageKind.TEXT,
        sender_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        message = Message(
            id=new_id(),
            chat_id=chat_id,
            sender_type=sender_type,
            sender_id=sender_id,
            content=content,
            message_type=message_type,
            metadata=dict(metadata or {}),
            is_read=False,
            created_at=self._clock(),
        )
        self._insert(message)
        logger.debug(
            "Message created (in-memory)",
            extra={"chat_id": short_id(chat_id), "sender_type": str(sender_type)},
        )
        self._publish(message)
        return message

    async def list_messages(self, chat_id: str) -> list[Message]:
        return list(self._messages.get(chat_id, []))

    def subscribe_new_messages(self, chat_id: str, on_message: MessageCallback) -> Unsubscribe:
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        token = next(self._next_token)
        subscription = _Subscription(chat_id, on_message, loop)
        self._subscriptions[token] = subscription

        def _unsubscribe() -> None:
            subscription.active = False
            self._subscriptions.pop(token, None)

        return _unsubscribe

    async def mark_read(self, chat_id: str, sender_type: SenderType) -> int:
        messages = self._messages.get(chat_id, [])
        updated = 0
        for index, message in enumerate(messages):
            if message.sender_type == sender_type and not message.is_read:
                messages[index] = message.model_copy(update={"is_read": True})
                updated += 1
        return updated

    async def count_unread(self, chat_id: str, sender_type: SenderType) -> int:
        return sum(
            1
            for message in self._messages.get(chat_id, [])
            if message.sender_type == sender_type and not message.is_read
        )

    async def last_message(self, chat_id: str) -> Message | None:
        messages = self._messages.get(chat_id)
        return messages[-1] if messages else None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _insert(self, message: Message) -> None:
        messages = self._messages.setdefault(message.chat_id, [])
        keys = [m.created_at for m in messages]
        # bisect_right: empates mantêm a ordem de chegada
        messages.insert(bisect.bisect_right(keys, message.created_at), message)

    def _publish(self, message: Message) -> None:
        for subscription in list(self._subscriptions.values()):
            if subscription.chat_id != message.chat_id:
                continue
            if subscription.loop is None:
                subscription.deliver(message)
            else:
                subscription.loop.call_soon(subscription.deliver, message)
