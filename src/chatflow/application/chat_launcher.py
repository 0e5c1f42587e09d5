"""Identidade da conversa do cliente (chat_id em cache local).

No máximo uma conversa não-terminal por sessão do navegador: o chat_id em
cache é reutilizado até o servidor dizer que ele foi resolvido/fechado (ou
não existe mais).
"""

from __future__ import annotations

import logging

from chatflow.domain.errors import PersistenceError
from chatflow.domain.protocols import ChatRoster, SessionStore
from chatflow.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)


class ChatLauncher:
    """Retoma ou cria a conversa do cliente."""

    def __init__(self, session_store: SessionStore, roster: ChatRoster) -> None:
        self._session = session_store
        self._roster = roster

    def cached_chat_id(self) -> str | None:
        return self._session.get()

    async def start_chat(
        self, customer_name: str | None = None, customer_email: str | None = None
    ) -> str | None:
        """Retorna o chat_id a usar, criando um novo chat quando necessário.

        Retorna None se não foi possível criar o chat.
        """
        cached = self._session.get()
        if cached:
            if await self._still_open(cached):
                return cached
            logger.info("Cached chat is no longer open", extra={"chat_id": short_id(cached)})
            self._session.clear()

        try:
            chat = await self._roster.create_chat(
                customer_name=customer_name, customer_email=customer_email
            )
        except PersistenceError as e:
            logger.error("Chat creation failed", extra={"error": type(e).__name__})
            return None

        try:
            self._session.set(chat.id)
        except PersistenceError as e:
            # Chat existe; só não será reutilizado na próxima sessão
            logger.warning("Chat id cache write failed", extra={"error": type(e).__name__})
        logger.info("Chat created", extra={"chat_id": short_id(chat.id)})
        return chat.id

    def forget(self) -> None:
        """Descarta o chat em cache; a próxima interação cria outro."""
        self._session.clear()

    async def _still_open(self, chat_id: str) -> bool:
        try:
            chat = await self._roster.get_chat(chat_id)
        except PersistenceError as e:
            # Sem resposta do servidor não há contradição: mantém o cache
            logger.warning(
                "Chat lookup failed; reusing cached id",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return True
        return chat is not None and chat.is_open
