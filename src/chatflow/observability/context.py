"""Correlation id por conversa (contextvar)."""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextvars import ContextVar

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio)."""

    return _correlation_id.get()


@contextlib.contextmanager
def correlation_scope(correlation_id: str) -> Generator[None, None, None]:
    """Define o correlation_id durante o bloco e restaura o anterior ao sair.

    O engine usa o chat_id como correlation_id, então todos os logs de uma
    ação do cliente ficam agrupados pela conversa.
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(token)
