"""Contrato do gateway de chats (criação, atribuição, resolução)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from chatflow.domain.chats import Chat
from chatflow.domain.protocols.message_store import Unsubscribe


class ChatRoster(ABC):
    """Contrato mínimo assíncrono para o ciclo de vida dos chats."""

    @abstractmethod
    async def create_chat(
        self, customer_name: str | None = None, customer_email: str | None = None
    ) -> Chat:
        """Cria chat em `pending`.

        Raises:
            PersistenceError: se a escrita falhar
        """
        ...

    @abstractmethod
    async def get_chat(self, chat_id: str) -> Chat | None:
        """Retorna o chat ou None se não existir.

        Raises:
            PersistenceError: se a leitura falhar
        """
        ...

    @abstractmethod
    async def list_open_chats(self, agent_id: str | None = None) -> list[Chat]:
        """Chats pending/active do agente ou sem agente, por updated_at desc."""
        ...

    @abstractmethod
    async def assign_chat(self, chat_id: str, agent_id: str) -> Chat:
        """Atribui agente (pending → active).

        Raises:
            ChatTransitionError: transição inválida para o status atual
            PersistenceError: chat inexistente ou falha de escrita
        """
        ...

    @abstractmethod
    async def resolve_chat(self, chat_id: str) -> Chat: ...

    @abstractmethod
    async def close_chat(self, chat_id: str) -> Chat: ...

    @abstractmethod
    async def touch_chat(self, chat_id: str) -> None:
        """Atualiza updated_at (chamado após cada mensagem)."""
        ...

    @abstractmethod
    def subscribe_changes(self, on_change: Callable[[], None]) -> Unsubscribe:
        """Notifica qualquer alteração em chats.

        Raises:
            SubscriptionError: se o canal não puder ser estabelecido
        """
        ...
