"""PresetStore usando Firestore.

Coleção: presets/{preset_id}. Ordenação entre irmãos feita em memória
(order_index, created_at) para não exigir índice composto.
"""

from __future__ import annotations

import logging
from typing import Any

from chatflow.domain.errors import PersistenceError
from chatflow.domain.presets import PresetNode, collect_subtree_ids, order_siblings
from chatflow.domain.protocols import PresetStore
from chatflow.infra.firestore_support import BATCH_LIMIT, run_blocking
from chatflow.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)


def preset_from_document(doc: Any) -> PresetNode:
    return PresetNode.model_validate({**(doc.to_dict() or {}), "id": doc.id})


class FirestorePresetStore(PresetStore):
    def __init__(self, firestore_client: Any, collection: str = "presets") -> None:
        self._client = firestore_client
        self._collection = collection

    async def list_child_presets(self, parent_id: str | None) -> list[PresetNode]:
        query = (
            self._client.collection(self._collection)
            .where("parent_id", "==", parent_id)
            .where("is_active", "==", True)
        )
        try:
            docs = await run_blocking(self._stream, query)
            return order_siblings(preset_from_document(doc) for doc in docs)
        except Exception as e:
            # Cliente nunca vê erro: sem opções
            logger.error(
                "Failed to list child presets",
                extra={"parent_id": short_id(parent_id), "error": type(e).__name__},
            )
            return []

    async def get_preset(self, preset_id: str) -> PresetNode | None:
        try:
            doc = await run_blocking(self._ref(preset_id).get)
        except Exception as e:
            raise PersistenceError(f"Firestore read failed: {e}") from e
        return preset_from_document(doc) if doc.exists else None

    async def list_all_presets(self) -> list[PresetNode]:
        try:
            docs = await run_blocking(self._stream, self._client.collection(self._collection))
        except Exception as e:
            logger.error("Failed to list presets", extra={"error": type(e).__name__})
            raise PersistenceError(f"Firestore list failed: {e}") from e
        return [preset_from_document(doc) for doc in docs]

    async def create_preset(self, node: PresetNode) -> PresetNode:
        try:
            await run_blocking(self._ref(node.id).set, node.model_dump(exclude={"id"}))
        except Exception as e:
            logger.error(
                "Failed to create preset",
                extra={"preset_id": short_id(node.id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore save failed: {e}") from e
        return node

    async def update_preset(self, preset_id: str, changes: dict[str, Any]) -> PresetNode:
        current = await self.get_preset(preset_id)
        if current is None:
            raise PersistenceError(f"Preset not found: {preset_id}")

        updated = PresetNode.model_validate({**current.model_dump(), **changes})
        try:
            await run_blocking(self._ref(preset_id).update, dict(changes))
        except Exception as e:
            logger.error(
                "Failed to update preset",
                extra={"preset_id": short_id(preset_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore update failed: {e}") from e
        return updated

    async def delete_preset(self, preset_id: str) -> int:
        nodes = await self.list_all_presets()
        if not any(node.id == preset_id for node in nodes):
            return 0

        ids = collect_subtree_ids(nodes, preset_id)
        try:
            await run_blocking(self._delete_many, ids)
        except Exception as e:
            logger.error(
                "Failed to delete preset subtree",
                extra={"preset_id": short_id(preset_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore delete failed: {e}") from e
        return len(ids)

    def _ref(self, preset_id: str) -> Any:
        return self._client.collection(self._collection).document(preset_id)

    def _delete_many(self, ids: list[str]) -> None:
        for start in range(0, len(ids), BATCH_LIMIT):
            batch = self._client.batch()
            for preset_id in ids[start : start + BATCH_LIMIT]:
                batch.delete(self._ref(preset_id))
            batch.commit()

    @staticmethod
    def _stream(query: Any) -> list[Any]:
        return list(query.stream())
