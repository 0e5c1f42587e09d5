"""ChatRoster usando Firestore.

Coleção: chats/{chat_id}. Transições de status validadas pela tabela do
domínio e gravadas com precondição `last_update_time` (concorrência otimista
entre agentes disputando o mesmo chat).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from chatflow.domain.chats import OPEN_STATUSES, Chat, validate_transition
from chatflow.domain.enums import ChatEvent, ChatStatus
from chatflow.domain.errors import ChatTransitionError, PersistenceError
from chatflow.domain.protocols import ChatRoster, Unsubscribe
from chatflow.infra.firestore_support import SnapshotRelay, run_blocking
from chatflow.observability.logging import get_logger, short_id
from chatflow.utils.ids import new_id

logger: logging.Logger = get_logger(__name__)


def chat_to_document(chat: Chat) -> dict[str, Any]:
    data = chat.model_dump(exclude={"id"})
    data["status"] = str(chat.status)
    return data


def chat_from_document(doc: Any) -> Chat:
    return Chat.model_validate({**(doc.to_dict() or {}), "id": doc.id})


class FirestoreChatRoster(ChatRoster):
    def __init__(
        self,
        firestore_client: Any,
        collection: str = "chats",
        open_chats_limit: int = 200,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = firestore_client
        self._collection = collection
        self._limit = open_chats_limit
        self._clock = clock or (lambda: datetime.now(tz=UTC))

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
        try:
            await run_blocking(self._ref(chat.id).set, chat_to_document(chat))
        except Exception as e:
            logger.error("Failed to create chat", extra={"error": type(e).__name__})
            raise PersistenceError(f"Firestore save failed: {e}") from e

        logger.debug("Chat created (Firestore)", extra={"chat_id": short_id(chat.id)})
        return chat

    async def get_chat(self, chat_id: str) -> Chat | None:
        try:
            doc = await run_blocking(self._ref(chat_id).get)
        except Exception as e:
            logger.error(
                "Failed to load chat",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore read failed: {e}") from e
        return chat_from_document(doc) if doc.exists else None

    async def list_open_chats(self, agent_id: str | None = None) -> list[Chat]:
        query = self._client.collection(self._collection).where(
            "status", "in", sorted(str(status) for status in OPEN_STATUSES)
        )
        try:
            docs = await run_blocking(self._stream, query)
        except Exception as e:
            logger.error("Failed to list open chats", extra={"error": type(e).__name__})
            raise PersistenceError(f"Firestore list failed: {e}") from e

        chats = [chat_from_document(doc) for doc in docs]
        visible = [chat for chat in chats if chat.visible_to(agent_id)]
        visible.sort(key=lambda chat: chat.updated_at, reverse=True)
        return visible[: self._limit]

    async def assign_chat(self, chat_id: str, agent_id: str) -> Chat:
        return await self._transition(chat_id, ChatEvent.AGENT_ASSIGNED, assigned_agent_id=agent_id)

    async def resolve_chat(self, chat_id: str) -> Chat:
        return await self._transition(chat_id, ChatEvent.RESOLVED)

    async def close_chat(self, chat_id: str) -> Chat:
        return await self._transition(chat_id, ChatEvent.CLOSED)

    async def touch_chat(self, chat_id: str) -> None:
        try:
            await run_blocking(self._ref(chat_id).update, {"updated_at": self._clock()})
        except Exception as e:
            raise PersistenceError(f"Firestore update failed: {e}") from e

    def subscribe_changes(self, on_change: Callable[[], None]) -> Unsubscribe:
        relay = SnapshotRelay(self._client.collection(self._collection), on_any_change=on_change)
        return relay.start()

    async def _transition(self, chat_id: str, event: ChatEvent, **changes: Any) -> Chat:
        try:
            doc = await run_blocking(self._ref(chat_id).get)
        except Exception as e:
            raise PersistenceError(f"Firestore read failed: {e}") from e
        if not doc.exists:
            raise PersistenceError(f"Chat not found: {chat_id}")

        chat = chat_from_document(doc)
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

        update = {"status": str(next_status), "updated_at": self._clock(), **changes}
        option = self._client.write_option(last_update_time=doc.update_time)
        try:
            await run_blocking(self._update_with_option, chat_id, update, option)
        except Exception as e:
            logger.error(
                "Failed to update chat status",
                extra={
                    "chat_id": short_id(chat_id),
                    "event": str(event),
                    "error": type(e).__name__,
                },
            )
            raise PersistenceError(f"Firestore update failed: {e}") from e

        return chat.model_copy(update={**update, "status": next_status})

    def _update_with_option(self, chat_id: str, update: dict[str, Any], option: Any) -> None:
        self._ref(chat_id).update(update, option=option)

    def _ref(self, chat_id: str) -> Any:
        return self._client.collection(self._collection).document(chat_id)

    @staticmethod
    def _stream(query: Any) -> list[Any]:
        return list(query.stream())
