"""Contrato de leitura das brand settings (chave → texto)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SettingsLookup(ABC):
    """Leitura somente por chave fixa; None quando não configurado."""

    @abstractmethod
    async def get_setting(self, key: str) -> str | None: ...
