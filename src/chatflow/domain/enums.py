"""Enums de domínio: status de chat, remetentes, tipos de mensagem."""

from __future__ import annotations

from enum import StrEnum


class ChatStatus(StrEnum):
    """Ciclo de vida de uma conversa."""

    PENDING = "pending"
    ACTIVE = "active"
    RESOLVED = "resolved"
    CLOSED = "closed"


class ChatEvent(StrEnum):
    """Eventos que movem o ciclo de vida do chat."""

    AGENT_ASSIGNED = "AGENT_ASSIGNED"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class SenderType(StrEnum):
    """Quem escreveu a mensagem."""

    CUSTOMER = "customer"
    AGENT = "agent"
    BOT = "bot"


class MessageKind(StrEnum):
    """Tipos de conteúdo de mensagem."""

    TEXT = "text"
    IMAGE = "image"
    DOCUMENT = "document"
    PRESET = "preset"


class NotificationCue(StrEnum):
    """Sinais sonoros do widget."""

    DELIVERED = "delivered"
    LOADING = "loading"
