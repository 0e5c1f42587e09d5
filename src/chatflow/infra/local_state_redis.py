"""Estado local em Redis (widget servido por backend multi-instância).

Mesmas chaves do storage do navegador; TTL renovado a cada escrita.
"""

from __future__ import annotations

import logging
from typing import Any

from chatflow.domain.errors import PersistenceError
from chatflow.domain.navigation import NavState
from chatflow.domain.protocols import NavigationStore, SessionStore
from chatflow.infra.local_state_codec import decode_nav_state, encode_nav_state
from chatflow.infra.local_state_memory import DEFAULT_CHAT_ID_KEY, DEFAULT_NAV_PREFIX
from chatflow.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)


class RedisNavigationStore(NavigationStore):
    """NavState por chat em `chatbot_preset_state:{chat_id}`."""

    def __init__(
        self,
        redis_client: Any,
        key_prefix: str = DEFAULT_NAV_PREFIX,
        ttl_seconds: int = 2592000,
    ) -> None:
        self._redis = redis_client
        self._prefix = key_prefix
        self._ttl = ttl_seconds

    def key_for(self, chat_id: str) -> str:
        return f"{self._prefix}:{chat_id}"

    def save(self, chat_id: str, state: NavState) -> None:
        try:
            self._redis.setex(self.key_for(chat_id), self._ttl, encode_nav_state(state))
            logger.debug(
                "Navigation state saved (Redis)",
                extra={"chat_id": short_id(chat_id), "ttl_seconds": self._ttl},
            )
        except Exception as e:
            logger.error(
                "Failed to save navigation state to Redis",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Redis save failed: {e}") from e

    def load(self, chat_id: str) -> NavState | None:
        try:
            payload = self._redis.get(self.key_for(chat_id))
        except Exception as e:
            logger.error(
                "Failed to load navigation state from Redis",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            raise PersistenceError(f"Redis load failed: {e}") from e

        if not payload:
            return None
        return decode_nav_state(payload)

    def delete(self, chat_id: str) -> bool:
        try:
            return bool(self._redis.delete(self.key_for(chat_id)))
        except Exception as e:
            logger.error(
                "Failed to delete navigation state from Redis",
                extra={"chat_id": short_id(chat_id), "error": type(e).__name__},
            )
            return False


class RedisSessionStore(SessionStore):
    """chat_id em cache de uma sessão do widget (chave por visitante)."""

    def __init__(
        self,
        redis_client: Any,
        visitor_id: str,
        key: str = DEFAULT_CHAT_ID_KEY,
        ttl_seconds: int = 2592000,
    ) -> None:
        self._redis = redis_client
        self._key = f"{key}:{visitor_id}"
        self._ttl = ttl_seconds

    def get(self) -> str | None:
        try:
            payload = self._redis.get(self._key)
        except Exception as e:
            logger.error("Failed to read cached chat id", extra={"error": type(e).__name__})
            return None

        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return payload or None

    def set(self, chat_id: str) -> None:  # noqa: A003
        try:
            self._redis.setex(self._key, self._ttl, chat_id)
        except Exception as e:
            logger.error("Failed to cache chat id", extra={"error": type(e).__name__})
            raise PersistenceError(f"Redis save failed: {e}") from e

    def clear(self) -> None:
        try:
            self._redis.delete(self._key)
        except Exception as e:
            logger.error("Failed to clear cached chat id", extra={"error": type(e).__name__})
