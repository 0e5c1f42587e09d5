"""Utilidades comuns aos stores Firestore.

- Chamadas do client síncrono rodam em thread (anyio) para não bloquear o loop
- Listeners `on_snapshot` rodam em thread própria do SDK; a entrega volta ao
  event loop de quem assinou via `call_soon_threadsafe`
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import anyio

from chatflow.domain.errors import SubscriptionError
from chatflow.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

T = TypeVar("T")

BATCH_LIMIT = 500


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    return await anyio.to_thread.run_sync(func, *args)


class SnapshotRelay:
    """Adapta um listener `on_snapshot` para callbacks no event loop.

    O primeiro snapshot (estado inicial da query) é ignorado: só interessam
    documentos adicionados depois da assinatura.
    """

    def __init__(
        self,
        query: Any,
        on_added: Callable[[Any], None] | None = None,
        on_any_change: Callable[[], None] | None = None,
    ) -> None:
        self._query = query
        self._on_added = on_added
        self._on_any_change = on_any_change
        self._loop = asyncio.get_running_loop()
        self._initial = True
        self._active = False
        self._watch: Any = None

    def start(self) -> Callable[[], None]:
        try:
            self._watch = self._query.on_snapshot(self._handle)
        except Exception as e:
            logger.error("Failed to open Firestore listener", extra={"error": type(e).__name__})
            raise SubscriptionError(f"Firestore listener failed: {e}") from e
        self._active = True
        return self.stop

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        try:
            self._watch.unsubscribe()
        except Exception as e:
            logger.warning("Firestore listener close failed", extra={"error": type(e).__name__})

    def _handle(self, _snapshot: Any, changes: list[Any], _read_time: Any) -> None:
        if self._initial:
            self._initial = False
            return
        if not self._active:
            return

        if self._on_any_change is not None and changes:
            self._loop.call_soon_threadsafe(self._dispatch_change)

        if self._on_added is None:
            return
        for change in changes:
            if change.type.name == "ADDED":
                self._loop.call_soon_threadsafe(self._dispatch_added, change.document)

    def _dispatch_added(self, document: Any) -> None:
        if self._active and self._on_added is not None:
            self._on_added(document)

    def _dispatch_change(self) -> None:
        if self._active and self._on_any_change is not None:
            self._on_any_change()
