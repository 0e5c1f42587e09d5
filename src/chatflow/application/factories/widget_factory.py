"""Factories de composição (widget do cliente, espelho do agente, admin).

Responsabilidades:
- Conhecer infra e settings
- Montar os componentes de aplicação com os gateways configurados

Não contém regra de negócio.
"""

from __future__ import annotations

from typing import Any

from chatflow.application.agent_mirror import AgentMirror
from chatflow.application.chat_launcher import ChatLauncher
from chatflow.application.flow_engine import ConversationFlowEngine
from chatflow.application.navigation import NavigationPersistence
from chatflow.application.policy import FlowPolicy
from chatflow.application.preset_admin import PresetAdmin
from chatflow.application.widget import CustomerWidget
from chatflow.config.settings import Settings, get_settings
from chatflow.domain.protocols import NavigationStore, Notifier, SessionStore
from chatflow.observability.logging import configure_logging, get_logger

logger = get_logger(__name__)


def configure_runtime(settings: Settings | None = None) -> Settings:
    """Configura logging e valida settings antes de montar os componentes.

    Raises:
        ValueError: configuração inválida (lista agregada de erros)
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    validation_errors = settings.validate_all()
    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    logger.info(
        "chatflow runtime configured",
        extra={"environment": settings.environment, "data_backend": settings.data_backend},
    )
    return settings


def build_customer_widget(
    *,
    gateways: Any | None = None,
    navigation_store: NavigationStore | None = None,
    session_store: SessionStore | None = None,
    notifier: Notifier | None = None,
    settings: Settings | None = None,
) -> CustomerWidget:
    """Constrói o widget do cliente.

    Parâmetros explícitos têm prioridade; quando ausentes, são resolvidos via
    factories de infra e `get_settings()`.
    """
    settings = settings or get_settings()

    # Import infra factories apenas aqui
    from chatflow.infra import (
        LoggingNotifier,
        create_data_gateways,
        create_navigation_store,
        create_session_store,
    )

    if gateways is None:
        gateways = create_data_gateways(settings)
        logger.debug("factory: created data gateways via infra create_data_gateways")
    if navigation_store is None:
        navigation_store = create_navigation_store(settings)
    if session_store is None:
        session_store = create_session_store(settings)

    engine = ConversationFlowEngine(
        message_store=gateways.messages,
        preset_store=gateways.presets,
        navigation=NavigationPersistence(navigation_store, gateways.presets),
        policy=FlowPolicy(gateways.brand_settings, settings),
        notifier=notifier or LoggingNotifier(),
    )
    launcher = ChatLauncher(session_store, gateways.roster)
    return CustomerWidget(launcher, engine)


def build_agent_mirror(
    agent_id: str,
    *,
    gateways: Any | None = None,
    notifier: Notifier | None = None,
    settings: Settings | None = None,
) -> AgentMirror:
    from chatflow.infra import LoggingNotifier, create_data_gateways

    if gateways is None:
        gateways = create_data_gateways(settings or get_settings())
    return AgentMirror(
        gateways.messages, gateways.roster, notifier or LoggingNotifier(), agent_id
    )


def build_preset_admin(
    *, gateways: Any | None = None, settings: Settings | None = None
) -> PresetAdmin:
    from chatflow.infra import create_data_gateways

    if gateways is None:
        gateways = create_data_gateways(settings or get_settings())
    return PresetAdmin(gateways.presets)
