"""MessageStore usando Firestore (produção).

Coleção: messages/{message_id}, com `chat_id` como campo (consultas por
chat ordenadas por created_at). Após cada escrita o `updated_at` do chat é
renovado (best effort) para reordenar a caixa de entrada do agente.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from google.cloud import firestore
from pydantic import ValidationError

from chatflow.domain.enums import MessageKind, SenderType
from chatflow.domain.errors import PersistenceError
from chatflow.domain.messages import Message
from chatflow.domain.protocols import MessageCallback, MessageStore, Unsubscribe
from chatflow.infra.firestore_support import BATCH_LIMIT, SnapshotRelay, run_blocking
from chatflow.observability.logging import get_logger, short_id
from chatflow.utils.ids import new_id

logger: logging.Logger = get_logger(__name__)


def message_to_document(message: Message) -> dict[str, Any]:
    data = message.model_dump(exclude={"id"})
    data["sender_type"] = str(message.sender_type)
    data["message_type"] = str(message.message_type)
    return data


def message_from_document(doc: Any) -> Message:
    return Message.model_validate({**(doc.to_dict() or {}), "id": doc.id})


class FirestoreMessageStore(MessageStore):
    def __init__(
        self,
        firestore_client: Any,
        collection: str = "messages",
        chats_collection: str = "chats",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = firestore_client
        self._collection = collection
        self._chats_collection = chats_collection
        self._clock = clock or (lambda: datetime.now(tz=UTC))

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

        try:
            await run_blocking(self._write, message)
        except Exception as e:
            logger.error(
                "Failed to save message to Firestore",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore save failed: {e}") from e

        try:
            await run_blocking(self._touch_chat, chat_id, message.created_at)
        except Exception as e:
            logger.warning(
                "Chat updated_at refresh failed",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )

        logger.debug(
            "Message saved (Firestore)",
            extra={"chat_id": short_id(chat_id), "sender_type": str(sender_type)},
        )
        return message

    async def list_messages(self, chat_id: str) -> list[Message]:
        try:
            docs = await run_blocking(self._stream, self._by_chat(chat_id).order_by("created_at"))
        except Exception as e:
            logger.error(
                "Failed to list messages from Firestore",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore list failed: {e}") from e

        return self._valid_messages(chat_id, docs)

    def subscribe_new_messages(self, chat_id: str, on_message: MessageCallback) -> Unsubscribe:
        delivered: set[str] = set()

        def _added(doc: Any) -> None:
            if doc.id in delivered:
                return
            try:
                message = message_from_document(doc)
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed message document",
                    extra={"chat_id": short_id(chat_id), "errors": e.error_count()},
                )
                return
            delivered.add(doc.id)
            on_message(message)

        relay = SnapshotRelay(self._by_chat(chat_id), on_added=_added)
        return relay.start()

    async def mark_read(self, chat_id: str, sender_type: SenderType) -> int:
        query = self._unread(chat_id, sender_type)
        try:
            return await run_blocking(self._mark_read, query)
        except Exception as e:
            logger.error(
                "Failed to mark messages as read",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore update failed: {e}") from e

    async def count_unread(self, chat_id: str, sender_type: SenderType) -> int:
        try:
            docs = await run_blocking(self._stream, self._unread(chat_id, sender_type))
        except Exception as e:
            raise PersistenceError(f"Firestore count failed: {e}") from e
        return len(docs)

    async def last_message(self, chat_id: str) -> Message | None:
        query = self._by_chat(chat_id).order_by(
            "created_at", direction=firestore.Query.DESCENDING
        ).limit(1)
        try:
            docs = await run_blocking(self._stream, query)
        except Exception as e:
            raise PersistenceError(f"Firestore read failed: {e}") from e
        messages = self._valid_messages(chat_id, docs)
        return messages[0] if messages else None

    @staticmethod
    def _valid_messages(chat_id: str, docs: list[Any]) -> list[Message]:
        """Converte documentos, descartando (com warning) os malformados."""
        messages: list[Message] = []
        for doc in docs:
            try:
                messages.append(message_from_document(doc))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed message document",
                    extra={"chat_id": short_id(chat_id), "errors": e.error_count()},
                )
        return messages

    def _by_chat(self, chat_id: str) -> Any:
        return self._client.collection(self._collection).where("chat_id", "==", chat_id)

    def _unread(self, chat_id: str, sender_type: SenderType) -> Any:
        return (
            self._by_chat(chat_id)
            .where("sender_type", "==", str(sender_type))
            .where("is_read", "==", False)
        )

    def _write(self, message: Message) -> None:
        doc_ref = self._client.collection(self._collection).document(message.id)
        doc_ref.set(message_to_document(message))

    def _touch_chat(self, chat_id: str, when: datetime) -> None:
        self._client.collection(self._chats_collection).document(chat_id).update(
            {"updated_at": when}
        )

    def _mark_read(self, query: Any) -> int:
        docs = list(query.stream())
        for start in range(0, len(docs), BATCH_LIMIT):
            batch = self._client.batch()
            for doc in docs[start : start + BATCH_LIMIT]:
                batch.update(doc.reference, {"is_read": True})
            batch.commit()
        return len(docs)

    @staticmethod
    def _stream(query: Any) -> list[Any]:
        return list(query.stream())
