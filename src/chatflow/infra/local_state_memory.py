"""Estado local em memória (desenvolvimento e testes).

⚠️ Não usar em produção!
- Não persiste entre restarts
- Guarda o payload serializado, como o storage do navegador
"""

from __future__ import annotations

import logging

from chatflow.domain.navigation import NavState
from chatflow.domain.protocols import NavigationStore, SessionStore
from chatflow.infra.local_state_codec import decode_nav_state, encode_nav_state
from chatflow.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)

DEFAULT_NAV_PREFIX = "chatbot_preset_state"
DEFAULT_CHAT_ID_KEY = "chatbot_chat_id"


class InMemoryNavigationStore(NavigationStore):
    def __init__(self, key_prefix: str = DEFAULT_NAV_PREFIX) -> None:
        self._prefix = key_prefix
        self._data: dict[str, str] = {}

    def key_for(self, chat_id: str) -> str:
        return f"{self._prefix}:{chat_id}"

    def save(self, chat_id: str, state: NavState) -> None:
        self._data[self.key_for(chat_id)] = encode_nav_state(state)
        logger.debug(
            "Navigation state saved (in-memory)",
            extra={"chat_id": short_id(chat_id), "depth": state.depth},
        )

    def load(self, chat_id: str) -> NavState | None:
        raw = self._data.get(self.key_for(chat_id))
        if not raw:
            return None
        return decode_nav_state(raw)

    def delete(self, chat_id: str) -> bool:
        return self._data.pop(self.key_for(chat_id), None) is not None

    def put_raw(self, chat_id: str, payload: str) -> None:
        """Grava payload arbitrário (simula storage editado/corrompido)."""
        self._data[self.key_for(chat_id)] = payload


class InMemorySessionStore(SessionStore):
    def __init__(self, key: str = DEFAULT_CHAT_ID_KEY) -> None:
        self._key = key
        self._data: dict[str, str] = {}

    def get(self) -> str | None:
        return self._data.get(self._key)

    def set(self, chat_id: str) -> None:  # noqa: A003
        self._data[self._key] = chat_id

    def clear(self) -> None:
        self._data.pop(self._key, None)
