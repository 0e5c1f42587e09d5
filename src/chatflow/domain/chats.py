"""Conversa (chat) e tabela de transições do ciclo de vida.

- TRANSITIONS[(status_atual, evento)] = próximo status
- CLOSED é terminal; RESOLVED só aceita CLOSED
- Validação pura: sem side effects
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from chatflow.domain.enums import ChatEvent, ChatStatus

OPEN_STATUSES = frozenset({ChatStatus.PENDING, ChatStatus.ACTIVE})
"""Estados não-terminais: o cliente continua reutilizando o chat em cache."""

TERMINAL_STATUSES = frozenset({ChatStatus.CLOSED})
"""Estados sem transições de saída."""

TRANSITIONS: dict[tuple[ChatStatus, ChatEvent], ChatStatus] = {
    # === PENDING → ... ===
    (ChatStatus.PENDING, ChatEvent.AGENT_ASSIGNED): ChatStatus.ACTIVE,
    (ChatStatus.PENDING, ChatEvent.RESOLVED): ChatStatus.RESOLVED,
    (ChatStatus.PENDING, ChatEvent.CLOSED): ChatStatus.CLOSED,
    # === ACTIVE → ... ===
    (ChatStatus.ACTIVE, ChatEvent.AGENT_ASSIGNED): ChatStatus.ACTIVE,
    (ChatStatus.ACTIVE, ChatEvent.RESOLVED): ChatStatus.RESOLVED,
    (ChatStatus.ACTIVE, ChatEvent.CLOSED): ChatStatus.CLOSED,
    # === RESOLVED → ... ===
    (ChatStatus.RESOLVED, ChatEvent.CLOSED): ChatStatus.CLOSED,
}


def validate_transition(
    current: ChatStatus, event: ChatEvent
) -> tuple[bool, ChatStatus | None, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, next_status, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    if current in TERMINAL_STATUSES:
        return False, None, f"Terminal status {current} has no transitions"

    next_status = TRANSITIONS.get((current, event))
    if next_status is None:
        return False, None, f"No transition from {current} on event {event}"

    return True, next_status, ""


class Chat(BaseModel):
    """Uma sessão de atendimento do cliente."""

    id: str
    status: ChatStatus = ChatStatus.PENDING
    assigned_agent_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def visible_to(self, agent_id: str | None) -> bool:
        """Chats abertos atribuídos ao agente ou ainda sem agente."""
        if not self.is_open:
            return False
        if agent_id is None:
            return True
        return self.assigned_agent_id in (agent_id, None)
