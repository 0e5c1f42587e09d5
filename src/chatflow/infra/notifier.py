"""Notifier padrão: registra o sinal sonoro que a UI tocaria."""

from __future__ import annotations

import logging

from chatflow.domain.enums import NotificationCue
from chatflow.domain.protocols import Notifier
from chatflow.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class LoggingNotifier(Notifier):
    def __init__(self) -> None:
        self.cues: list[NotificationCue] = []

    def notify(self, cue: NotificationCue) -> None:
        self.cues.append(cue)
        logger.debug("Notification cue", extra={"cue": str(cue)})
