"""Contrato do gateway da árvore de presets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from chatflow.domain.presets import PresetNode


class PresetStore(ABC):
    """Leitura para o cliente + superfície de administração do fluxo."""

    @abstractmethod
    async def list_child_presets(self, parent_id: str | None) -> list[PresetNode]:
        """Filhos ativos de `parent_id` (None = raízes), ordenados.

        Falha de forma branda: loga e retorna lista vazia.
        """
        ...

    @abstractmethod
    async def get_preset(self, preset_id: str) -> PresetNode | None: ...

    @abstractmethod
    async def list_all_presets(self) -> list[PresetNode]:
        """Todos os nós, inclusive inativos (visão do admin)."""
        ...

    @abstractmethod
    async def create_preset(self, node: PresetNode) -> PresetNode: ...

    @abstractmethod
    async def update_preset(self, preset_id: str, changes: dict[str, Any]) -> PresetNode:
        """Aplica alterações parciais.

        Raises:
            PersistenceError: se o nó não existir ou a escrita falhar
        """
        ...

    @abstractmethod
    async def delete_preset(self, preset_id: str) -> int:
        """Remove o nó e toda a subárvore; retorna quantos nós foram removidos."""
        ...
