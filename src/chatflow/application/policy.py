"""Política de escalonamento e auto-resposta do bot.

Decide o que o bot diz/faz depois de uma ação do cliente:

- Preset com `escalate_to_agent`: uma mensagem de handoff, sem descer na
  árvore e sem continuar automaticamente.
- Preset comum: resposta (se houver) e consulta dos filhos.
- Texto livre: após um atraso curto (digitação simulada), uma auto-resposta
  e volta incondicional para os presets raiz. Texto livre não é casado com a
  árvore; equivale a "recomeçar".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chatflow.config.settings import Settings, get_settings
from chatflow.domain.presets import PresetNode
from chatflow.domain.protocols import SettingsLookup
from chatflow.observability.logging import get_logger, log_fallback

logger: logging.Logger = get_logger(__name__)

AUTO_REPLY_SETTING_KEY = "auto_reply_message"
HANDOFF_SETTING_KEY = "chat_to_agent_text"


@dataclass(slots=True, frozen=True)
class PresetPlan:
    """Plano de execução após clique em um preset (sem side effects)."""

    escalate: bool
    answer_text: str | None
    query_children: bool


def plan_preset(node: PresetNode) -> PresetPlan:
    """Determina o que fazer após o clique em `node`.

    Escalonamento é terminal: nunca consulta filhos, mesmo que existam.
    """
    if node.escalate_to_agent:
        return PresetPlan(escalate=True, answer_text=None, query_children=False)
    return PresetPlan(
        escalate=False,
        answer_text=node.answer_text if node.has_answer else None,
        query_children=True,
    )


class FlowPolicy:
    """Textos e temporização do bot, com fallback embutido."""

    def __init__(
        self,
        lookup: SettingsLookup | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._lookup = lookup
        self._settings = settings or get_settings()

    @property
    def auto_reply_delay_seconds(self) -> float:
        return max(0.0, self._settings.auto_reply_delay_seconds)

    async def handoff_text(self) -> str:
        """Texto "falar com um humano" enviado no escalonamento."""
        return await self._lookup_text(HANDOFF_SETTING_KEY, self._settings.default_handoff_text)

    async def auto_reply_text(self) -> str:
        """Texto da auto-resposta ao texto livre."""
        return await self._lookup_text(
            AUTO_REPLY_SETTING_KEY, self._settings.default_auto_reply_text
        )

    async def _lookup_text(self, key: str, default: str) -> str:
        if self._lookup is None:
            return default

        try:
            value = await self._lookup.get_setting(key)
        except Exception as e:
            # Leitura de configuração nunca bloqueia o fluxo
            logger.warning(
                "Brand setting lookup failed",
                extra={"setting_key": key, "error": type(e).__name__},
            )
            log_fallback(logger, "flow_policy", reason="lookup_failed")
            return default

        if not value or not value.strip():
            log_fallback(logger, "flow_policy", reason="unconfigured")
            return default

        return value
