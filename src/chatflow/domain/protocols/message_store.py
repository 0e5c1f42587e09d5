"""Contrato do gateway de mensagens (append-only + realtime)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from chatflow.domain.enums import MessageKind, SenderType
from chatflow.domain.messages import Message

Unsubscribe = Callable[[], None]
"""Libera a assinatura realtime; deve ser síncrono e idempotente."""

MessageCallback = Callable[[Message], None]


class MessageStore(ABC):
    """Contrato mínimo assíncrono para mensagens de uma conversa."""

    @abstractmethod
    async def create_message(
        self,
        chat_id: str,
        sender_type: SenderType,
        content: str | None,
        message_type: MessageKind = MessageKind.TEXT,
        sender_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Persiste uma nova mensagem.

        Raises:
            PersistenceError: se o backend rejeitar a escrita
        """
        ...

    @abstractmethod
    async def list_messages(self, chat_id: str) -> list[Message]:
        """Histórico ordenado por created_at ascendente (vazio se não houver).

        Raises:
            PersistenceError: se a leitura falhar
        """
        ...

    @abstractmethod
    def subscribe_new_messages(self, chat_id: str, on_message: MessageCallback) -> Unsubscribe:
        """Entrega cada mensagem nova da conversa uma única vez por assinatura.

        O callback roda no event loop de quem assinou. Nunca entrega mensagens
        de outras conversas.

        Raises:
            SubscriptionError: se o canal não puder ser estabelecido
        """
        ...

    @abstractmethod
    async def mark_read(self, chat_id: str, sender_type: SenderType) -> int:
        """Marca como lidas as mensagens não lidas do remetente; retorna quantas."""
        ...

    @abstractmethod
    async def count_unread(self, chat_id: str, sender_type: SenderType) -> int:
        """Quantidade de mensagens não lidas do remetente."""
        ...

    @abstractmethod
    async def last_message(self, chat_id: str) -> Message | None:
        """Mensagem mais recente da conversa, se houver."""
        ...
