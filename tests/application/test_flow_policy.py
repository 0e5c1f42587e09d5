"""Testes da política de escalonamento/auto-resposta."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from chatflow.application.policy import (
    AUTO_REPLY_SETTING_KEY,
    HANDOFF_SETTING_KEY,
    FlowPolicy,
    plan_preset,
)
from chatflow.config.settings import DEFAULT_AUTO_REPLY_TEXT, DEFAULT_HANDOFF_TEXT, Settings
from chatflow.infra import InMemorySettingsLookup
from tests.helpers.chatflow_fixtures import make_preset


class TestPlanPreset:
    def test_escalation_is_terminal(self):
        node = make_preset("p1", "Agent", escalate_to_agent=True, answer_text="ignored")

        plan = plan_preset(node)

        assert plan.escalate is True
        assert plan.query_children is False
        assert plan.answer_text is None

    def test_regular_node_answers_and_descends(self):
        plan = plan_preset(make_preset("p1", "Deposit", answer_text="How?"))

        assert plan.escalate is False
        assert plan.answer_text == "How?"
        assert plan.query_children is True

    def test_blank_answer_is_skipped(self):
        assert plan_preset(make_preset("p1", "Deposit", answer_text="   ")).answer_text is None


class TestFlowPolicyTexts:
    @pytest.mark.asyncio
    async def test_configured_values_win(self, settings):
        lookup = InMemorySettingsLookup(
            {HANDOFF_SETTING_KEY: "Connecting you", AUTO_REPLY_SETTING_KEY: "Thanks!"}
        )
        policy = FlowPolicy(lookup, settings)

        assert await policy.handoff_text() == "Connecting you"
        assert await policy.auto_reply_text() == "Thanks!"

    @pytest.mark.asyncio
    async def test_unconfigured_falls_back(self, settings, caplog):
        policy = FlowPolicy(InMemorySettingsLookup({AUTO_REPLY_SETTING_KEY: "  "}), settings)

        with caplog.at_level(logging.INFO):
            text = await policy.auto_reply_text()

        assert text == DEFAULT_AUTO_REPLY_TEXT
        record = next(r for r in caplog.records if getattr(r, "fallback_used", False))
        assert record.reason == "unconfigured"  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back(self, settings, caplog):
        lookup = AsyncMock()
        lookup.get_setting.side_effect = RuntimeError("backend down")
        policy = FlowPolicy(lookup, settings)

        with caplog.at_level(logging.INFO):
            text = await policy.handoff_text()

        assert text == DEFAULT_HANDOFF_TEXT
        assert any(getattr(r, "reason", None) == "lookup_failed" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_without_lookup_uses_settings_defaults(self):
        policy = FlowPolicy(None, Settings(default_handoff_text="Custom default"))

        assert await policy.handoff_text() == "Custom default"


class TestAutoReplyDelay:
    def test_default_delay(self):
        assert FlowPolicy(None, Settings()).auto_reply_delay_seconds == 1.5

    def test_negative_delay_is_clamped(self):
        settings = Settings(auto_reply_delay_seconds=-3)

        assert FlowPolicy(None, settings).auto_reply_delay_seconds == 0.0
