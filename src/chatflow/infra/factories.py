"""Factories de infraestrutura dirigidas por Settings.

Padrão seguro:
- Desenvolvimento: memory (suficiente para testes locais)
- Staging/produção: firestore para dados compartilhados (validado)

Clientes Redis/Firestore são criados automaticamente quando não fornecidos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from chatflow.config.settings import Settings
from chatflow.domain.protocols import (
    ChatRoster,
    MessageStore,
    NavigationStore,
    PresetStore,
    SessionStore,
    SettingsLookup,
)
from chatflow.infra.brand_settings import FirestoreSettingsLookup, InMemorySettingsLookup
from chatflow.infra.chat_roster_firestore import FirestoreChatRoster
from chatflow.infra.chat_roster_memory import InMemoryChatRoster
from chatflow.infra.local_state_memory import InMemoryNavigationStore, InMemorySessionStore
from chatflow.infra.local_state_redis import RedisNavigationStore, RedisSessionStore
from chatflow.infra.message_store_firestore import FirestoreMessageStore
from chatflow.infra.message_store_memory import InMemoryMessageStore
from chatflow.infra.preset_store_firestore import FirestorePresetStore
from chatflow.infra.preset_store_memory import InMemoryPresetStore
from chatflow.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class DataGateways:
    """Gateways de dados compartilhados entre widget, agente e admin."""

    messages: MessageStore
    presets: PresetStore
    roster: ChatRoster
    brand_settings: SettingsLookup


def create_navigation_store(
    settings: Settings, redis_client: Any | None = None
) -> NavigationStore:
    """NavigationStore conforme NAVIGATION_STORE_BACKEND.

    Raises:
        ValueError: backend inválido ou cliente Redis indisponível
    """
    backend = settings.navigation_store_backend.lower()

    if backend == "memory":
        return InMemoryNavigationStore(key_prefix=settings.nav_state_key_prefix)

    if backend == "redis":
        return RedisNavigationStore(
            redis_client or _create_redis_client(settings),
            key_prefix=settings.nav_state_key_prefix,
            ttl_seconds=settings.nav_state_ttl_seconds,
        )

    raise ValueError(f"NAVIGATION_STORE_BACKEND inválido: {backend}")


def create_session_store(
    settings: Settings, visitor_id: str = "local", redis_client: Any | None = None
) -> SessionStore:
    """SessionStore (chat_id em cache) conforme SESSION_STORE_BACKEND."""
    backend = settings.session_store_backend.lower()

    if backend == "memory":
        return InMemorySessionStore(key=settings.chat_id_key)

    if backend == "redis":
        return RedisSessionStore(
            redis_client or _create_redis_client(settings),
            visitor_id=visitor_id,
            key=settings.chat_id_key,
            ttl_seconds=settings.nav_state_ttl_seconds,
        )

    raise ValueError(f"SESSION_STORE_BACKEND inválido: {backend}")


def create_data_gateways(
    settings: Settings, firestore_client: Any | None = None
) -> DataGateways:
    """Gateways de mensagens, presets, chats e brand settings.

    Raises:
        ValueError: backend inválido, ou memory em staging/produção
    """
    backend = settings.data_backend.lower()

    if (settings.is_production or settings.is_staging) and backend == "memory":
        msg = (
            "DATA_BACKEND=memory is unsuitable for production. "
            "Use 'firestore' so agents and customers share the same chats."
        )
        raise ValueError(msg)

    if backend == "memory":
        logger.warning("Using in-memory data gateways (dev only)")
        return DataGateways(
            messages=InMemoryMessageStore(),
            presets=InMemoryPresetStore(),
            roster=InMemoryChatRoster(),
            brand_settings=InMemorySettingsLookup(),
        )

    if backend == "firestore":
        client = firestore_client or _create_firestore_client(settings)
        logger.info(
            "Using Firestore data gateways",
            extra={"project_id": settings.firestore_project_id},
        )
        return DataGateways(
            messages=FirestoreMessageStore(
                client,
                collection=settings.messages_collection,
                chats_collection=settings.chats_collection,
            ),
            presets=FirestorePresetStore(client, collection=settings.presets_collection),
            roster=FirestoreChatRoster(
                client,
                collection=settings.chats_collection,
                open_chats_limit=settings.agent_open_chats_limit,
            ),
            brand_settings=FirestoreSettingsLookup(
                client, collection=settings.brand_settings_collection
            ),
        )

    raise ValueError(f"DATA_BACKEND inválido: {backend}")


def _create_redis_client(settings: Settings) -> Any:
    try:
        import redis

        redis_url = settings.redis_url or "redis://localhost:6379"
        client = redis.from_url(redis_url, decode_responses=True)
        logger.info(
            "Auto-created Redis client for local state",
            extra={"url": redis_url.split("@")[-1]},  # Sem credenciais
        )
        return client
    except Exception as e:
        msg = f"Failed to create Redis client: {e}"
        raise ValueError(msg) from e


def _create_firestore_client(settings: Settings) -> Any:
    if not settings.firestore_project_id:
        raise ValueError("FIRESTORE_PROJECT_ID é obrigatório para DATA_BACKEND=firestore")

    from google.cloud import firestore

    return firestore.Client(
        project=settings.firestore_project_id,
        database=settings.firestore_database_id,
    )
