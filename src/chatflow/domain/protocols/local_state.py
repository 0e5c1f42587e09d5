"""Contratos de estado local do cliente (equivalentes ao localStorage).

Síncronos: o armazenamento local é chave-valor e não bloqueia a UI.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from chatflow.domain.navigation import NavState


class NavigationStore(ABC):
    """Persistência do NavState, namespaced por chat_id."""

    @abstractmethod
    def save(self, chat_id: str, state: NavState) -> None:
        """Serializa e grava (último a escrever vence)."""
        ...

    @abstractmethod
    def load(self, chat_id: str) -> NavState | None:
        """Retorna o estado salvo ou None se ausente.

        Raises:
            NavigationStateCorrupt: se o conteúdo salvo não puder ser lido
        """
        ...

    @abstractmethod
    def delete(self, chat_id: str) -> bool: ...


class SessionStore(ABC):
    """Cache do chat_id da sessão do navegador (get/set/clear)."""

    @abstractmethod
    def get(self) -> str | None: ...

    @abstractmethod
    def set(self, chat_id: str) -> None: ...  # noqa: A003

    @abstractmethod
    def clear(self) -> None: ...
