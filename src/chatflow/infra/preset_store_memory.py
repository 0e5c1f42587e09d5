"""PresetStore em memória (desenvolvimento e testes)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from chatflow.domain.errors import PersistenceError
from chatflow.domain.presets import PresetNode, active_children, collect_subtree_ids
from chatflow.domain.protocols import PresetStore
from chatflow.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)


class InMemoryPresetStore(PresetStore):
    def __init__(self, nodes: Iterable[PresetNode] = ()) -> None:
        self._nodes: dict[str, PresetNode] = {node.id: node for node in nodes}

    async def list_child_presets(self, parent_id: str | None) -> list[PresetNode]:
        return active_children(self._nodes.values(), parent_id)

    async def get_preset(self, preset_id: str) -> PresetNode | None:
        return self._nodes.get(preset_id)

    async def list_all_presets(self) -> list[PresetNode]:
        return list(self._nodes.values())

    async def create_preset(self, node: PresetNode) -> PresetNode:
        if node.id in self._nodes:
            raise PersistenceError(f"Preset already exists: {node.id}")
        self._nodes[node.id] = node
        return node

    async def update_preset(self, preset_id: str, changes: dict[str, Any]) -> PresetNode:
        current = self._nodes.get(preset_id)
        if current is None:
            raise PersistenceError(f"Preset not found: {preset_id}")

        # Revalida (ex.: rótulo vazio) em vez de model_copy, que não valida
        updated = PresetNode.model_validate({**current.model_dump(), **changes})
        self._nodes[preset_id] = updated
        return updated

    async def delete_preset(self, preset_id: str) -> int:
        if preset_id not in self._nodes:
            return 0
        ids = collect_subtree_ids(self._nodes.values(), preset_id)
        for node_id in ids:
            self._nodes.pop(node_id, None)
        logger.debug(
            "Preset subtree removed (in-memory)",
            extra={"preset_id": short_id(preset_id), "removed": len(ids)},
        )
        return len(ids)
