"""Configurações centralizadas do chatflow.

Uso típico:
    from chatflow.config import get_settings
"""

from chatflow.config.settings import (
    DEFAULT_AUTO_REPLY_TEXT,
    DEFAULT_HANDOFF_TEXT,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_AUTO_REPLY_TEXT",
    "DEFAULT_HANDOFF_TEXT",
]
