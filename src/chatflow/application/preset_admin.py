"""Administração da árvore de presets (flow builder).

Operações do painel administrativo: criar, editar, remover (em cascata),
reordenar irmãos e montar a árvore completa, incluindo nós inativos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from chatflow.domain.errors import PersistenceError
from chatflow.domain.presets import PresetNode, order_siblings
from chatflow.domain.protocols import PresetStore
from chatflow.observability.logging import get_logger, short_id
from chatflow.utils.ids import new_id

logger: logging.Logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "parent_id",
        "button_label",
        "question_text",
        "answer_text",
        "order_index",
        "is_active",
        "escalate_to_agent",
    }
)


@dataclass(slots=True)
class PresetTreeNode:
    node: PresetNode
    children: list[PresetTreeNode] = field(default_factory=list)


class PresetAdmin:
    """Casos de uso do admin sobre um PresetStore."""

    def __init__(self, preset_store: PresetStore) -> None:
        self._store = preset_store

    async def create(
        self,
        button_label: str,
        parent_id: str | None = None,
        question_text: str | None = None,
        answer_text: str | None = None,
        escalate_to_agent: bool = False,
        order_index: int | None = None,
    ) -> PresetNode:
        """Cria um nó; sem `order_index` ele vai para o fim dos irmãos.

        Raises:
            PersistenceError: pai inexistente ou falha de escrita
            ValueError: rótulo vazio
        """
        if parent_id is not None and await self._store.get_preset(parent_id) is None:
            raise PersistenceError(f"Parent preset not found: {parent_id}")

        if order_index is None:
            order_index = await self._next_order_index(parent_id)

        node = PresetNode(
            id=new_id(),
            parent_id=parent_id,
            button_label=button_label,
            question_text=question_text,
            answer_text=answer_text,
            order_index=order_index,
            escalate_to_agent=escalate_to_agent,
        )
        created = await self._store.create_preset(node)
        logger.info(
            "Preset created",
            extra={"preset_id": short_id(created.id), "parent_id": short_id(parent_id)},
        )
        return created

    async def update(self, preset_id: str, **changes: Any) -> PresetNode:
        """Edição parcial.

        Raises:
            ValueError: campo não editável, rótulo vazio ou ciclo na árvore
            PersistenceError: nó inexistente ou falha de escrita
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Campos não editáveis: {sorted(unknown)}")

        label = changes.get("button_label")
        if "button_label" in changes and (not isinstance(label, str) or not label.strip()):
            raise ValueError("button_label é obrigatório")

        if "parent_id" in changes:
            await self._ensure_no_cycle(preset_id, changes["parent_id"])

        updated = await self._store.update_preset(preset_id, changes)
        logger.info(
            "Preset updated",
            extra={"preset_id": short_id(preset_id), "fields": sorted(changes)},
        )
        return updated

    async def delete(self, preset_id: str) -> int:
        """Remove o nó e toda a subárvore; retorna a quantidade removida."""
        removed = await self._store.delete_preset(preset_id)
        logger.info(
            "Preset subtree deleted",
            extra={"preset_id": short_id(preset_id), "removed": removed},
        )
        return removed

    async def reorder(self, parent_id: str | None, ordered_ids: list[str]) -> list[PresetNode]:
        """Regrava order_index dos irmãos na ordem dada.

        Irmãos ausentes de `ordered_ids` mantêm a ordem relativa, depois dos
        listados.
        """
        siblings = [n for n in await self._store.list_all_presets() if n.parent_id == parent_id]
        by_id = {n.id: n for n in siblings}

        foreign = [preset_id for preset_id in ordered_ids if preset_id not in by_id]
        if foreign:
            raise ValueError(f"Presets fora do nível informado: {foreign}")

        listed = [by_id[preset_id] for preset_id in dict.fromkeys(ordered_ids)]
        rest = [n for n in order_siblings(siblings) if n.id not in set(ordered_ids)]

        result: list[PresetNode] = []
        for index, node in enumerate(listed + rest):
            if node.order_index == index:
                result.append(node)
                continue
            result.append(await self._store.update_preset(node.id, {"order_index": index}))
        return result

    async def build_tree(self) -> list[PresetTreeNode]:
        """Floresta completa, irmãos ordenados; órfãos viram raízes."""
        nodes = await self._store.list_all_presets()
        known = {n.id for n in nodes}
        by_parent: dict[str | None, list[PresetNode]] = {}
        for node in nodes:
            parent = node.parent_id if node.parent_id in known else None
            by_parent.setdefault(parent, []).append(node)

        def _build(parent_id: str | None) -> list[PresetTreeNode]:
            return [
                PresetTreeNode(node=n, children=_build(n.id))
                for n in order_siblings(by_parent.get(parent_id, []))
            ]

        return _build(None)

    async def _next_order_index(self, parent_id: str | None) -> int:
        siblings = [n for n in await self._store.list_all_presets() if n.parent_id == parent_id]
        if not siblings:
            return 0
        return max(n.order_index for n in siblings) + 1

    async def _ensure_no_cycle(self, preset_id: str, new_parent_id: str | None) -> None:
        if new_parent_id is None:
            return
        if new_parent_id == preset_id:
            raise ValueError("Um preset não pode ser pai de si mesmo")

        parents = {n.id: n.parent_id for n in await self._store.list_all_presets()}
        if new_parent_id not in parents:
            raise PersistenceError(f"Parent preset not found: {new_parent_id}")

        seen: set[str] = set()
        current: str | None = new_parent_id
        while current is not None and current not in seen:
            if current == preset_id:
                raise ValueError("Movimentação criaria ciclo na árvore de presets")
            seen.add(current)
            current = parents.get(current)
