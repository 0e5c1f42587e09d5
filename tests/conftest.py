from __future__ import annotations

import pytest

from chatflow.application.flow_engine import ConversationFlowEngine
from chatflow.application.navigation import NavigationPersistence
from chatflow.application.policy import FlowPolicy
from chatflow.config.settings import Settings, get_settings
from chatflow.domain.presets import PresetNode
from chatflow.infra import (
    DataGateways,
    InMemoryChatRoster,
    InMemoryMessageStore,
    InMemoryNavigationStore,
    InMemorySessionStore,
    InMemorySettingsLookup,
    LoggingNotifier,
)
from tests.helpers.chatflow_fixtures import RecordingPresetStore, build_preset_tree


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    return Settings(environment="test", auto_reply_delay_seconds=0.0, log_format="text")


@pytest.fixture()
def preset_tree() -> list[PresetNode]:
    return build_preset_tree()


@pytest.fixture()
def gateways(preset_tree: list[PresetNode]) -> DataGateways:
    return DataGateways(
        messages=InMemoryMessageStore(),
        presets=RecordingPresetStore(preset_tree),
        roster=InMemoryChatRoster(),
        brand_settings=InMemorySettingsLookup(),
    )


@pytest.fixture()
def nav_store() -> InMemoryNavigationStore:
    return InMemoryNavigationStore()


@pytest.fixture()
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture()
def engine(
    gateways: DataGateways,
    nav_store: InMemoryNavigationStore,
    notifier: LoggingNotifier,
    settings: Settings,
) -> ConversationFlowEngine:
    return ConversationFlowEngine(
        message_store=gateways.messages,
        preset_store=gateways.presets,
        navigation=NavigationPersistence(nav_store, gateways.presets),
        policy=FlowPolicy(gateways.brand_settings, settings),
        notifier=notifier,
    )
