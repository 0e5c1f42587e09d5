"""Camada de infraestrutura: implementações dos gateways do domínio.

- Estado local: InMemory/Redis NavigationStore e SessionStore
- Dados compartilhados: InMemory/Firestore MessageStore, PresetStore,
  ChatRoster e SettingsLookup
- Factories dirigidas por Settings

Uso típico:
    from chatflow.infra import create_data_gateways, create_navigation_store

Infraestrutura não decide regra de negócio; logs sem conteúdo de mensagens.
"""

from chatflow.infra.brand_settings import FirestoreSettingsLookup, InMemorySettingsLookup
from chatflow.infra.chat_roster_firestore import FirestoreChatRoster
from chatflow.infra.chat_roster_memory import InMemoryChatRoster
from chatflow.infra.factories import (
    DataGateways,
    create_data_gateways,
    create_navigation_store,
    create_session_store,
)
from chatflow.infra.local_state_memory import InMemoryNavigationStore, InMemorySessionStore
from chatflow.infra.local_state_redis import RedisNavigationStore, RedisSessionStore
from chatflow.infra.message_store_firestore import FirestoreMessageStore
from chatflow.infra.message_store_memory import InMemoryMessageStore
from chatflow.infra.notifier import LoggingNotifier
from chatflow.infra.preset_store_firestore import FirestorePresetStore
from chatflow.infra.preset_store_memory import InMemoryPresetStore

__all__ = [
    # Estado local
    "InMemoryNavigationStore",
    "InMemorySessionStore",
    "RedisNavigationStore",
    "RedisSessionStore",
    "create_navigation_store",
    "create_session_store",
    # Dados compartilhados
    "DataGateways",
    "InMemoryMessageStore",
    "FirestoreMessageStore",
    "InMemoryPresetStore",
    "FirestorePresetStore",
    "InMemoryChatRoster",
    "FirestoreChatRoster",
    "InMemorySettingsLookup",
    "FirestoreSettingsLookup",
    "create_data_gateways",
    # UI
    "LoggingNotifier",
]
