"""Espelho do lado do agente humano.

Consome os mesmos gateways de mensagens que o widget, mais o roster de chats.
Usa a mesma reconciliação otimista, com `agent` como remetente próprio; não
há lógica de árvore de presets.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from chatflow.application.reconciliation import (
    ReconcileOutcome,
    build_optimistic_message,
    merge_history,
    reconcile_incoming,
    timeline,
)
from chatflow.domain.chats import Chat
from chatflow.domain.enums import NotificationCue, SenderType
from chatflow.domain.errors import ChatTransitionError, PersistenceError, SubscriptionError
from chatflow.domain.messages import Message, TextBody
from chatflow.domain.protocols import ChatRoster, MessageStore, Notifier, Unsubscribe
from chatflow.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ChatSummary:
    """Linha da caixa de entrada do agente."""

    chat: Chat
    unread_count: int = 0
    last_message: Message | None = None


class AgentMirror:
    """Caixa de entrada + conversa selecionada de um agente."""

    def __init__(
        self,
        message_store: MessageStore,
        roster: ChatRoster,
        notifier: Notifier,
        agent_id: str,
    ) -> None:
        self._messages = message_store
        self._roster = roster
        self._notifier = notifier
        self.agent_id = agent_id
        self.chats: list[ChatSummary] = []
        self.selected_chat_id: str | None = None
        self.messages: list[Message] = []
        self._unsubscribe_messages: Unsubscribe | None = None
        self._unsubscribe_roster: Unsubscribe | None = None
        self._background: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Caixa de entrada
    # ------------------------------------------------------------------

    async def refresh_chats(self) -> list[ChatSummary]:
        """Recarrega chats abertos (do agente ou sem agente) com contadores."""
        try:
            chats = await self._roster.list_open_chats(self.agent_id)
        except PersistenceError as e:
            logger.warning("Chat list refresh failed", extra={"error": type(e).__name__})
            return self.chats

        self.chats = list(await asyncio.gather(*(self._summarize(chat) for chat in chats)))
        return self.chats

    def watch_roster(self, on_change: Callable[[], None] | None = None) -> bool:
        """Assina mudanças de chats; cada mudança dispara `refresh_chats`."""
        if self._unsubscribe_roster is not None:
            return True

        def _changed() -> None:
            self._spawn(self.refresh_chats())
            if on_change is not None:
                on_change()

        try:
            self._unsubscribe_roster = self._roster.subscribe_changes(_changed)
        except SubscriptionError as e:
            logger.warning("Roster realtime unavailable", extra={"error": type(e).__name__})
            return False
        return True

    # ------------------------------------------------------------------
    # Conversa selecionada
    # ------------------------------------------------------------------

    async def select_chat(self, chat_id: str) -> None:
        """Abre a conversa: histórico, leitura, assinatura e auto-atribuição."""
        self._release_messages()
        self.selected_chat_id = chat_id
        self.messages = []

        try:
            self._unsubscribe_messages = self._messages.subscribe_new_messages(
                chat_id, self.handle_incoming_message
            )
        except SubscriptionError as e:
            logger.warning(
                "Realtime unavailable for agent view",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )

        try:
            history = await self._messages.list_messages(chat_id)
        except PersistenceError as e:
            logger.warning(
                "Agent history load failed",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            history = []

        if self.selected_chat_id != chat_id:
            return
        self.messages = merge_history(history, self.messages)

        try:
            await self._messages.mark_read(chat_id, SenderType.CUSTOMER)
        except PersistenceError as e:
            logger.warning("Mark read failed", extra={"error": type(e).__name__})

        await self._claim_if_unassigned(chat_id)

    async def send(self, text: str) -> bool:
        """Resposta do agente, com eco otimista."""
        content = text.strip()
        chat_id = self.selected_chat_id
        if not content or chat_id is None:
            return False

        optimistic = build_optimistic_message(
            chat_id, SenderType.AGENT, TextBody(content=content), sender_id=self.agent_id
        )
        self.messages.append(optimistic)

        try:
            await self._messages.create_message(
                chat_id,
                SenderType.AGENT,
                optimistic.content,
                message_type=optimistic.message_type,
                sender_id=self.agent_id,
                metadata=optimistic.metadata,
            )
        except PersistenceError as e:
            logger.warning(
                "Agent message persistence failed; local copy kept",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return True

        self._notifier.notify(NotificationCue.DELIVERED)
        try:
            await self._roster.touch_chat(chat_id)
        except PersistenceError as e:
            logger.debug("Chat touch failed", extra={"error": type(e).__name__})
        return True

    def handle_incoming_message(self, message: Message) -> None:
        if message.chat_id != self.selected_chat_id:
            return
        outcome = reconcile_incoming(self.messages, message, own_sender=SenderType.AGENT)
        if outcome is ReconcileOutcome.DUPLICATE:
            return
        if message.sender_type == SenderType.CUSTOMER:
            self._notifier.notify(NotificationCue.DELIVERED)

    async def resolve_selected(self) -> bool:
        """Resolve a conversa aberta e limpa a seleção."""
        chat_id = self.selected_chat_id
        if chat_id is None:
            return False
        try:
            await self._roster.resolve_chat(chat_id)
        except (PersistenceError, ChatTransitionError) as e:
            logger.warning(
                "Chat resolve failed",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return False

        logger.info("Chat resolved", extra={"chat_id": short_id(chat_id)})
        self._release_messages()
        self.selected_chat_id = None
        self.messages = []
        await self.refresh_chats()
        return True

    def timeline(self) -> list[Message]:
        return timeline(self.messages)

    def teardown(self) -> None:
        self._release_messages()
        unsubscribe, self._unsubscribe_roster = self._unsubscribe_roster, None
        if unsubscribe is not None:
            unsubscribe()
        for task in list(self._background):
            task.cancel()

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    async def _summarize(self, chat: Chat) -> ChatSummary:
        try:
            unread = await self._messages.count_unread(chat.id, SenderType.CUSTOMER)
            last = await self._messages.last_message(chat.id)
        except PersistenceError as e:
            logger.debug(
                "Chat summary degraded",
                extra={"chat_id": short_id(chat.id), "error": type(e).__name__},
            )
            return ChatSummary(chat=chat)
        return ChatSummary(chat=chat, unread_count=unread, last_message=last)

    async def _claim_if_unassigned(self, chat_id: str) -> None:
        try:
            chat = await self._roster.get_chat(chat_id)
            if chat is None or chat.assigned_agent_id is not None:
                return
            await self._roster.assign_chat(chat_id, self.agent_id)
        except (PersistenceError, ChatTransitionError) as e:
            logger.warning(
                "Chat assignment failed",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return

        logger.info("Chat assigned", extra={"chat_id": short_id(chat_id)})
        await self.refresh_chats()

    def _release_messages(self) -> None:
        unsubscribe, self._unsubscribe_messages = self._unsubscribe_messages, None
        if unsubscribe is not None:
            unsubscribe()

    def _spawn(self, coro: object) -> None:
        task = asyncio.get_running_loop().create_task(coro)  # type: ignore[arg-type]
        self._background.add(task)
        task.add_done_callback(self._background.discard)
