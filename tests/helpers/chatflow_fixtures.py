"""Fixtures determinísticas para os testes do fluxo de conversa.

Árvore de presets usada nos testes:

    deposit (resposta)           order 0
      ├── bkash (resposta)       order 0
      └── nagad                  order 1
    agent (escalate_to_agent)    order 1
    withdraw (resposta, folha)   order 2
    legacy (inativo)             order 3
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from chatflow.domain.errors import PersistenceError, SubscriptionError
from chatflow.domain.messages import Message
from chatflow.domain.navigation import NavState
from chatflow.domain.presets import PresetNode
from chatflow.domain.protocols import MessageCallback, Unsubscribe
from chatflow.infra import InMemoryMessageStore, InMemoryNavigationStore, InMemoryPresetStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def make_preset(
    preset_id: str,
    label: str,
    parent_id: str | None = None,
    order_index: int = 0,
    **fields: Any,
) -> PresetNode:
    fields.setdefault("created_at", BASE_TIME)
    return PresetNode(
        id=preset_id,
        parent_id=parent_id,
        button_label=label,
        order_index=order_index,
        **fields,
    )


def build_preset_tree() -> list[PresetNode]:
    return [
        make_preset("deposit", "Deposit", answer_text="Choose a deposit method"),
        make_preset("bkash", "bKash", parent_id="deposit", answer_text="Send to 017..."),
        make_preset("nagad", "Nagad", parent_id="deposit", order_index=1),
        make_preset("agent", "Talk to agent", order_index=1, escalate_to_agent=True),
        make_preset("withdraw", "Withdraw", order_index=2, answer_text="Withdrawals take 24h"),
        make_preset("legacy", "Legacy", order_index=3, is_active=False),
    ]


def step_clock(start: datetime = BASE_TIME, step_seconds: float = 1.0) -> Callable[[], datetime]:
    """Relógio que avança um passo fixo a cada leitura."""
    counter = itertools.count()
    return lambda: start + timedelta(seconds=step_seconds * next(counter))


async def drain(rounds: int = 5) -> None:
    """Deixa rodar os callbacks agendados com call_soon (entrega realtime)."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class RecordingPresetStore(InMemoryPresetStore):
    """Registra cada consulta de filhos (None = raiz)."""

    def __init__(self, nodes: Iterable[PresetNode] = ()) -> None:
        super().__init__(nodes)
        self.child_queries: list[str | None] = []

    async def list_child_presets(self, parent_id: str | None) -> list[PresetNode]:
        self.child_queries.append(parent_id)
        return await super().list_child_presets(parent_id)


class FailingChildrenPresetStore(InMemoryPresetStore):
    """Falha na consulta de filhos de nós não-raiz."""

    async def list_child_presets(self, parent_id: str | None) -> list[PresetNode]:
        if parent_id is not None:
            raise PersistenceError("presets unavailable")
        return await super().list_child_presets(parent_id)


class FailingWriteMessageStore(InMemoryMessageStore):
    """Rejeita toda escrita; leitura e realtime funcionam."""

    async def create_message(self, *args: Any, **kwargs: Any) -> Message:
        raise PersistenceError("write rejected")


class NoRealtimeMessageStore(InMemoryMessageStore):
    def subscribe_new_messages(self, chat_id: str, on_message: MessageCallback) -> Unsubscribe:
        raise SubscriptionError("realtime down")


class FailingReadMessageStore(InMemoryMessageStore):
    async def list_messages(self, chat_id: str) -> list[Message]:
        raise PersistenceError("read failed")


class BrokenNavigationStore(InMemoryNavigationStore):
    """Simula storage local cheio (quota)."""

    def save(self, chat_id: str, state: NavState) -> None:
        raise OSError("quota exceeded")
