"""Geradores de identificadores."""

from __future__ import annotations

import uuid

OPTIMISTIC_PREFIX = "optimistic_"


def new_id() -> str:
    """Gera um identificador persistente (usado pelos stores em memória)."""

    return str(uuid.uuid4())


def new_optimistic_id() -> str:
    """Gera id temporário para mensagem otimista.

    O prefixo garante que nunca colide com ids persistidos.
    """

    return f"{OPTIMISTIC_PREFIX}{uuid.uuid4().hex}"


def is_optimistic_id(message_id: str) -> bool:
    """True se o id foi gerado localmente (mensagem ainda não confirmada)."""

    return message_id.startswith(OPTIMISTIC_PREFIX)


def new_client_ref() -> str:
    """Gera correlation id do cliente, ecoado pelo store nos metadados."""

    return uuid.uuid4().hex[:16]
