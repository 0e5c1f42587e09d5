"""Fachada do widget do cliente: identidade do chat + engine da conversa."""

from __future__ import annotations

import logging

from chatflow.application.chat_launcher import ChatLauncher
from chatflow.application.flow_engine import ConversationFlowEngine, ConversationView
from chatflow.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class CustomerWidget:
    """Abre/fecha a aba de chat do widget.

    Fechar a aba não encerra o chat: ao reabrir, o mesmo chat_id é retomado
    enquanto o chat estiver aberto no servidor.
    """

    def __init__(self, launcher: ChatLauncher, engine: ConversationFlowEngine) -> None:
        self.launcher = launcher
        self.engine = engine

    @property
    def view(self) -> ConversationView:
        return self.engine.view

    async def open(
        self, customer_name: str | None = None, customer_email: str | None = None
    ) -> str | None:
        chat_id = await self.launcher.start_chat(customer_name, customer_email)
        if chat_id is None:
            logger.warning("Widget could not start a chat")
            return None
        await self.engine.initialize(chat_id)
        return chat_id

    def close(self) -> None:
        self.engine.teardown()

    async def restart(self) -> str | None:
        """Descarta o chat em cache e começa outro."""
        self.engine.teardown()
        self.launcher.forget()
        return await self.open()
