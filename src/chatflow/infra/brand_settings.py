"""Leitura das brand settings (textos configurados pelo admin).

Firestore: coleção `brand_settings`, um documento por chave com o campo
`setting_value`.
"""

from __future__ import annotations

import logging
from typing import Any

import anyio

from chatflow.domain.errors import PersistenceError
from chatflow.domain.protocols import SettingsLookup
from chatflow.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class InMemorySettingsLookup(SettingsLookup):
    def __init__(self, values: dict[str, str] | None = None) -> None:
        self._values = dict(values or {})

    async def get_setting(self, key: str) -> str | None:
        return self._values.get(key)

    def put(self, key: str, value: str) -> None:
        self._values[key] = value


class FirestoreSettingsLookup(SettingsLookup):
    def __init__(self, firestore_client: Any, collection: str = "brand_settings") -> None:
        self._client = firestore_client
        self._collection = collection

    async def get_setting(self, key: str) -> str | None:
        try:
            doc = await anyio.to_thread.run_sync(self._fetch, key)
        except Exception as e:
            logger.error(
                "Failed to read brand setting from Firestore",
                extra={"setting_key": key, "error": type(e).__name__},
            )
            raise PersistenceError(f"Firestore read failed: {e}") from e

        if not doc.exists:
            return None
        value = (doc.to_dict() or {}).get("setting_value")
        return value if isinstance(value, str) else None

    def _fetch(self, key: str) -> Any:
        return self._client.collection(self._collection).document(key).get()
