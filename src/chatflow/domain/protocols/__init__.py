"""Re-exports dos contratos de domínio para uso por Application."""

from __future__ import annotations

from chatflow.domain.protocols.chat_roster import ChatRoster
from chatflow.domain.protocols.local_state import NavigationStore, SessionStore
from chatflow.domain.protocols.message_store import MessageCallback, MessageStore, Unsubscribe
from chatflow.domain.protocols.notifier import Notifier
from chatflow.domain.protocols.preset_store import PresetStore
from chatflow.domain.protocols.settings_lookup import SettingsLookup

__all__ = [
    "ChatRoster",
    "MessageCallback",
    "MessageStore",
    "NavigationStore",
    "Notifier",
    "PresetStore",
    "SessionStore",
    "SettingsLookup",
    "Unsubscribe",
]
