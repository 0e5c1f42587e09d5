"""Nó da árvore de presets (fluxo de perguntas/respostas configurado pelo admin)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator


class PresetNode(BaseModel):
    """Um botão do fluxo.

    A árvore é uma floresta: `parent_id=None` marca um nó raiz. Entre irmãos a
    ordem total é dada por (order_index, created_at).
    """

    id: str
    parent_id: str | None = None
    button_label: str
    question_text: str | None = None
    answer_text: str | None = None
    order_index: int = 0
    is_active: bool = True
    escalate_to_agent: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @field_validator("button_label")
    @classmethod
    def _label_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("button_label é obrigatório")
        return value

    @field_validator("created_at")
    @classmethod
    def _created_at_aware(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def has_answer(self) -> bool:
        return bool(self.answer_text and self.answer_text.strip())

    def sort_key(self) -> tuple[int, datetime]:
        return (self.order_index, self.created_at)


def order_siblings(nodes: Iterable[PresetNode]) -> list[PresetNode]:
    """Ordena irmãos por (order_index, created_at)."""

    return sorted(nodes, key=PresetNode.sort_key)


def active_children(nodes: Iterable[PresetNode], parent_id: str | None) -> list[PresetNode]:
    """Filhos ativos de `parent_id` (None = raízes), já ordenados."""

    return order_siblings(n for n in nodes if n.parent_id == parent_id and n.is_active)


def collect_subtree_ids(nodes: Iterable[PresetNode], root_id: str) -> list[str]:
    """Ids do nó e de todos os descendentes (usado na remoção em cascata)."""

    by_parent: dict[str | None, list[str]] = {}
    for node in nodes:
        by_parent.setdefault(node.parent_id, []).append(node.id)

    collected: list[str] = []
    pending = [root_id]
    while pending:
        current = pending.pop()
        if current in collected:
            continue
        collected.append(current)
        pending.extend(by_parent.get(current, []))
    return collected
