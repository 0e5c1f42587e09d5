"""Contrato de sinalização ao usuário (som de entrega/carregando)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from chatflow.domain.enums import NotificationCue


class Notifier(ABC):
    """Efeito colateral de UI; implementações nunca lançam exceção."""

    @abstractmethod
    def notify(self, cue: NotificationCue) -> None: ...
