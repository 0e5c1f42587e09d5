"""Persistência e restauração do estado de navegação na árvore de presets.

O estado salvo é um cache de conveniência: falhas de escrita são engolidas e
qualquer leitura ruim (ausente, corrompida, nó apagado pelo admin) volta para
a raiz e regrava o estado.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from chatflow.domain.errors import NavigationStateCorrupt, PersistenceError
from chatflow.domain.navigation import NavState
from chatflow.domain.presets import PresetNode
from chatflow.domain.protocols import NavigationStore, PresetStore
from chatflow.observability.logging import get_logger, log_fallback, short_id

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class Restoration:
    """Resultado de uma restauração: estado + opções a exibir.

    `healed` indica que o estado salvo foi descartado (corrompido ou nó
    inexistente) e substituído pela raiz.
    """

    state: NavState
    options: list[PresetNode] = field(default_factory=list)
    healed: bool = False


class NavigationPersistence:
    """save/restore do NavState por conversa; nunca lança exceção."""

    def __init__(self, store: NavigationStore, presets: PresetStore) -> None:
        self._store = store
        self._presets = presets

    def save(self, chat_id: str, state: NavState) -> None:
        try:
            self._store.save(chat_id, state)
        except Exception as e:
            # Ex.: quota do storage local; o estado é só cache
            logger.warning(
                "Navigation state save failed (ignored)",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )

    async def restore(self, chat_id: str) -> Restoration:
        """Recupera a posição salva, com auto-correção para a raiz."""
        try:
            stored = self._store.load(chat_id)
        except NavigationStateCorrupt:
            log_fallback(logger, "navigation_restore", reason="corrupt_state")
            return await self.reset_to_root(chat_id, healed=True)
        except Exception as e:
            logger.warning(
                "Navigation state load failed",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return await self.reset_to_root(chat_id, healed=True)

        if stored is None:
            return await self.reset_to_root(chat_id)

        options = await self.list_options(stored.current_preset_id)

        if stored.current_preset_id is not None and not options:
            log_fallback(logger, "navigation_restore", reason="stale_node")
            return await self.reset_to_root(chat_id, healed=True)

        if stored.is_root:
            # Visibilidade na raiz depende só de existirem presets raiz agora
            state = stored.with_visibility(bool(options))
            if state != stored:
                self.save(chat_id, state)
            return Restoration(state=state, options=options)

        logger.debug(
            "Navigation state restored",
            extra={"chat_id": short_id(chat_id), "depth": stored.depth},
        )
        return Restoration(state=stored, options=options)

    async def reset_to_root(self, chat_id: str, healed: bool = False) -> Restoration:
        """Carrega os presets raiz e grava o estado de raiz.

        Raiz vazia → presets ocultos.
        """
        roots = await self.list_options(None)
        state = NavState.root(show_presets=bool(roots))
        self.save(chat_id, state)
        return Restoration(state=state, options=roots, healed=healed)

    async def list_options(self, parent_id: str | None) -> list[PresetNode]:
        try:
            return await self._presets.list_child_presets(parent_id)
        except PersistenceError as e:
            logger.warning(
                "Preset query failed; showing no options",
                extra={"parent_id": short_id(parent_id), "error": type(e).__name__},
            )
            return []
