"""Engine do fluxo de conversa do widget (lado do cliente).

Mantém a visão em memória da conversa ativa (mensagens, presets exibidos,
posição na árvore, indicador de digitação) e reconcilia ecos otimistas com o
canal realtime.

Contrato:
- Erros de gateway nunca sobem para o chamador; são logados e a UI degrada
- Mensagem otimista não é desfeita em falha de escrita (sem retry)
- Uma assinatura realtime por vez; `teardown` sempre antes de trocar de chat
- Single-thread (event loop); ações retornam False quando rejeitadas
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from chatflow.application.navigation import NavigationPersistence
from chatflow.application.policy import FlowPolicy, plan_preset
from chatflow.application.reconciliation import (
    ReconcileOutcome,
    build_optimistic_message,
    merge_history,
    reconcile_incoming,
    timeline,
)
from chatflow.domain.enums import NotificationCue, SenderType
from chatflow.domain.errors import PersistenceError, SubscriptionError
from chatflow.domain.messages import (
    DocumentBody,
    ImageBody,
    Message,
    MessageBody,
    PresetBody,
    TextBody,
    body_to_storage,
)
from chatflow.domain.navigation import NavState
from chatflow.domain.presets import PresetNode
from chatflow.domain.protocols import MessageStore, Notifier, PresetStore, Unsubscribe
from chatflow.observability.context import correlation_scope
from chatflow.observability.logging import get_logger, short_id
from chatflow.observability.timing import timed

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True)
class ConversationView:
    """Estado exibido ao cliente para a conversa corrente."""

    chat_id: str | None = None
    messages: list[Message] = field(default_factory=list)
    options: list[PresetNode] = field(default_factory=list)
    nav: NavState = field(default_factory=NavState.root)
    is_typing: bool = False
    is_sending: bool = False
    draft: str = ""

    @property
    def show_presets(self) -> bool:
        return self.nav.show_presets

    @property
    def visible_options(self) -> list[PresetNode]:
        """Botões efetivamente exibidos (vazio quando presets ocultos)."""
        return list(self.options) if self.nav.show_presets else []

    def timeline(self) -> list[Message]:
        return timeline(self.messages)


class ConversationFlowEngine:
    """Dono do estado da conversa ativa e das transições visíveis ao cliente."""

    def __init__(
        self,
        message_store: MessageStore,
        preset_store: PresetStore,
        navigation: NavigationPersistence,
        policy: FlowPolicy,
        notifier: Notifier,
    ) -> None:
        self._messages = message_store
        self._presets = preset_store
        self._navigation = navigation
        self._policy = policy
        self._notifier = notifier
        self.view = ConversationView()
        self._active_chat_id: str | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._auto_reply_task: asyncio.Task[None] | None = None

    @property
    def chat_id(self) -> str | None:
        return self._active_chat_id

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    @property
    def auto_reply_pending(self) -> bool:
        task = self._auto_reply_task
        return task is not None and not task.done()

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def initialize(self, chat_id: str) -> None:
        """Carrega histórico e navegação e abre a assinatura realtime.

        Idempotente para o mesmo chat_id; outro chat_id desmonta o anterior.
        """
        if self._active_chat_id == chat_id:
            return
        if self._active_chat_id is not None:
            self.teardown()

        self._active_chat_id = chat_id
        self.view = ConversationView(chat_id=chat_id)

        with correlation_scope(chat_id), timed("flow_engine.initialize"):
            # Assina antes do load; eventos do intervalo são mesclados por id
            self._subscribe(chat_id)

            history = await self._load_history(chat_id)
            if not self._is_current(chat_id):
                return
            self.view.messages = merge_history(history, self.view.messages)

            restoration = await self._navigation.restore(chat_id)
            if not self._is_current(chat_id):
                return
            self._apply(restoration.state, restoration.options)

        logger.info(
            "Conversation initialized",
            extra={
                "chat_id": short_id(chat_id),
                "history_count": len(history),
                "nav_healed": restoration.healed,
                "subscribed": self.is_subscribed,
            },
        )

    def teardown(self) -> None:
        """Libera a assinatura e cancela a auto-resposta pendente (síncrono)."""
        self._cancel_auto_reply()
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

        if self._active_chat_id is not None:
            logger.debug(
                "Conversation torn down", extra={"chat_id": short_id(self._active_chat_id)}
            )
        self._active_chat_id = None
        self.view = ConversationView()

    def set_draft(self, text: str) -> None:
        self.view.draft = text

    # ------------------------------------------------------------------
    # Ações do cliente
    # ------------------------------------------------------------------

    async def send_free_text(self, text: str | None = None) -> bool:
        """Envia texto livre (ou o rascunho atual quando `text` é None)."""
        content = (self.view.draft if text is None else text).strip()
        chat_id = self._active_chat_id
        if not content or chat_id is None or self.view.is_sending:
            return False

        with correlation_scope(chat_id):
            optimistic = self._push_optimistic(chat_id, TextBody(content=content))
            self.view.draft = ""
            self._notifier.notify(NotificationCue.DELIVERED)

            self.view.is_sending = True
            try:
                await self._persist(optimistic)
            finally:
                self.view.is_sending = False

            if self._is_current(chat_id):
                self._schedule_auto_reply(chat_id)
        return True

    async def select_preset(self, node: PresetNode) -> bool:
        """Clique em um botão de preset."""
        chat_id = self._active_chat_id
        if chat_id is None or self.view.is_sending:
            return False

        # Clique supera a auto-resposta pendente (ela voltaria para a raiz)
        self._cancel_auto_reply()

        with correlation_scope(chat_id):
            self.view.is_sending = True
            try:
                await self._run_preset(chat_id, node)
            finally:
                self.view.is_sending = False
        return True

    async def attach_file(
        self, file_url: str, file_name: str, file_size: int, mime_type: str
    ) -> bool:
        """Envia anexo já publicado no storage (imagem ou documento)."""
        chat_id = self._active_chat_id
        if chat_id is None:
            return False

        body: MessageBody
        if mime_type.startswith("image/"):
            body = ImageBody(url=file_url, name=file_name)
        else:
            body = DocumentBody(url=file_url, name=file_name, size=file_size)

        created = await self._create(chat_id, SenderType.CUSTOMER, body)
        if created is not None:
            self._notifier.notify(NotificationCue.DELIVERED)
        return created is not None

    # ------------------------------------------------------------------
    # Realtime
    # ------------------------------------------------------------------

    def handle_incoming_message(self, message: Message) -> None:
        """Callback da assinatura realtime."""
        if message.chat_id != self._active_chat_id:
            logger.debug(
                "Dropping message for inactive conversation",
                extra={"chat_id": short_id(message.chat_id)},
            )
            return

        outcome = reconcile_incoming(self.view.messages, message, own_sender=SenderType.CUSTOMER)
        if outcome is ReconcileOutcome.DUPLICATE:
            return

        if message.sender_type != SenderType.CUSTOMER:
            self._notifier.notify(NotificationCue.DELIVERED)

    async def wait_for_auto_reply(self) -> None:
        """Aguarda a auto-resposta pendente (se houver) terminar ou ser cancelada."""
        task = self._auto_reply_task
        if task is not None:
            await asyncio.wait({task})

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    async def _run_preset(self, chat_id: str, node: PresetNode) -> None:
        plan = plan_preset(node)
        echo = self._push_optimistic(
            chat_id, PresetBody(label=node.button_label, preset_id=node.id)
        )
        # Breadcrumb estendido antes de qualquer escrita
        descended = self.view.nav.descend(node, show_presets=self.view.nav.show_presets)
        self.view.nav = descended

        if plan.escalate:
            self._notifier.notify(NotificationCue.LOADING)
            await self._persist(echo)
            handoff_text = await self._policy.handoff_text()
            await self._create(chat_id, SenderType.BOT, TextBody(content=handoff_text))
            if not self._is_current(chat_id):
                return
            self._apply(descended.with_visibility(False), [])
            self._navigation.save(chat_id, self.view.nav)
            logger.info(
                "Conversation escalated to agent",
                extra={"chat_id": short_id(chat_id), "preset_id": short_id(node.id)},
            )
            return

        await self._persist(echo)
        if plan.answer_text:
            await self._create(chat_id, SenderType.BOT, TextBody(content=plan.answer_text))

        try:
            children = await self._presets.list_child_presets(node.id)
        except PersistenceError as e:
            logger.warning(
                "Child preset query failed; hiding options",
                extra={"preset_id": short_id(node.id), "error": type(e).__name__},
            )
            if self._is_current(chat_id):
                self._apply(descended.with_visibility(False), [])
                self._navigation.save(chat_id, self.view.nav)
            return

        if not self._is_current(chat_id):
            return

        if children:
            self._apply(descended.with_visibility(True), children)
            self._navigation.save(chat_id, self.view.nav)
            return

        await self._fall_back_to_root(chat_id)

    async def _fall_back_to_root(self, chat_id: str) -> None:
        restoration = await self._navigation.reset_to_root(chat_id)
        if self._is_current(chat_id):
            self._apply(restoration.state, restoration.options)

    def _schedule_auto_reply(self, chat_id: str) -> None:
        # Um único indicador de digitação: o timer anterior é descartado
        self._cancel_auto_reply()
        self.view.is_typing = True
        self._auto_reply_task = asyncio.create_task(self._auto_reply(chat_id))

    async def _auto_reply(self, chat_id: str) -> None:
        with correlation_scope(chat_id):
            try:
                await asyncio.sleep(self._policy.auto_reply_delay_seconds)
                text = await self._policy.auto_reply_text()
                await self._create(chat_id, SenderType.BOT, TextBody(content=text))
            finally:
                if self._auto_reply_task is asyncio.current_task():
                    self.view.is_typing = False

            if self._is_current(chat_id):
                await self._fall_back_to_root(chat_id)

    def _cancel_auto_reply(self) -> None:
        task, self._auto_reply_task = self._auto_reply_task, None
        if task is not None and not task.done():
            task.cancel()
        self.view.is_typing = False

    def _subscribe(self, chat_id: str) -> None:
        try:
            self._unsubscribe = self._messages.subscribe_new_messages(
                chat_id, self.handle_incoming_message
            )
        except SubscriptionError as e:
            logger.warning(
                "Realtime unavailable; continuing on local state",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )

    async def _load_history(self, chat_id: str) -> list[Message]:
        try:
            return await self._messages.list_messages(chat_id)
        except PersistenceError as e:
            logger.warning(
                "History load failed",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return []

    def _push_optimistic(self, chat_id: str, body: MessageBody) -> Message:
        optimistic = build_optimistic_message(chat_id, SenderType.CUSTOMER, body)
        self.view.messages.append(optimistic)
        return optimistic

    async def _persist(self, optimistic: Message) -> Message | None:
        return await self._write(
            optimistic.chat_id,
            optimistic.sender_type,
            optimistic.content,
            optimistic.message_type,
            optimistic.metadata,
        )

    async def _create(
        self, chat_id: str, sender_type: SenderType, body: MessageBody
    ) -> Message | None:
        content, metadata = body_to_storage(body)
        return await self._write(chat_id, sender_type, content, body.kind, metadata)

    async def _write(
        self,
        chat_id: str,
        sender_type: SenderType,
        content: str | None,
        message_type: str,
        metadata: dict[str, Any],
    ) -> Message | None:
        try:
            return await self._messages.create_message(
                chat_id,
                sender_type,
                content,
                message_type=message_type,
                metadata=metadata,
            )
        except PersistenceError as e:
            logger.warning(
                "Message persistence failed; local copy kept",
                extra={
                    "chat_id": short_id(chat_id),
                    "sender_type": str(sender_type),
                    "error": type(e).__name__,
                },
            )
            return None

    def _apply(self, nav: NavState, options: list[PresetNode]) -> None:
        self.view.nav = nav
        self.view.options = list(options)

    def _is_current(self, chat_id: str) -> bool:
        return self._active_chat_id == chat_id
