"""Testes dos modelos de domínio: navegação, presets, mensagens, ciclo de vida."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from chatflow.domain.chats import TRANSITIONS, Chat, validate_transition
from chatflow.domain.enums import ChatEvent, ChatStatus, MessageKind, SenderType
from chatflow.domain.messages import (
    DocumentBody,
    ImageBody,
    Message,
    PresetBody,
    TextBody,
    body_to_storage,
)
from chatflow.domain.navigation import NavState, PathEntry
from chatflow.domain.presets import active_children, collect_subtree_ids
from tests.helpers.chatflow_fixtures import BASE_TIME, build_preset_tree, make_preset


class TestNavState:
    def test_root_defaults(self):
        state = NavState.root()

        assert state.current_preset_id is None
        assert state.show_presets is True
        assert state.preset_path == ()
        assert state.is_root

    def test_descend_extends_path(self):
        a = make_preset("a", "A")
        b = make_preset("b", "B", parent_id="a")

        state = NavState.root().descend(a).descend(b, show_presets=False)

        assert state.current_preset_id == "b"
        assert state.preset_path == (PathEntry(id="a", label="A"), PathEntry(id="b", label="B"))
        assert state.show_presets is False
        assert state.depth == 2

    def test_path_without_current_is_invalid(self):
        with pytest.raises(ValidationError):
            NavState(current_preset_id=None, preset_path=(PathEntry(id="a", label="A"),))

    def test_current_must_be_last_path_entry(self):
        with pytest.raises(ValidationError):
            NavState(current_preset_id="b", preset_path=(PathEntry(id="a", label="A"),))

    def test_current_without_path_is_invalid(self):
        with pytest.raises(ValidationError):
            NavState(current_preset_id="a")


class TestPresets:
    def test_blank_label_rejected(self):
        with pytest.raises(ValidationError):
            make_preset("p", "   ")

    def test_children_ordered_by_index_then_creation(self):
        nodes = [
            make_preset("late", "Late", order_index=0, created_at=BASE_TIME + timedelta(hours=1)),
            make_preset("early", "Early", order_index=0),
            make_preset("first", "First", order_index=-1, created_at=BASE_TIME + timedelta(days=1)),
            make_preset("off", "Off", order_index=-5, is_active=False),
        ]

        assert [n.id for n in active_children(nodes, None)] == ["first", "early", "late"]

    def test_subtree_collection(self):
        ids = collect_subtree_ids(build_preset_tree(), "deposit")

        assert sorted(ids) == ["bkash", "deposit", "nagad"]

    def test_naive_created_at_becomes_utc(self):
        node = make_preset("p", "P", created_at=datetime(2024, 1, 1))

        assert node.created_at.tzinfo is not None


class TestMessageBody:
    def _message(self, kind: MessageKind, content: str | None, metadata: dict) -> Message:
        return Message(
            id="m-1",
            chat_id="c-1",
            sender_type=SenderType.CUSTOMER,
            content=content,
            message_type=kind,
            metadata=metadata,
            created_at=BASE_TIME,
        )

    def test_text(self):
        assert self._message(MessageKind.TEXT, "hi", {}).body == TextBody(content="hi")

    def test_image(self):
        message = self._message(MessageKind.IMAGE, None, {"file_url": "https://x/y.png"})

        assert message.body == ImageBody(url="https://x/y.png")

    def test_document(self):
        message = self._message(
            MessageKind.DOCUMENT,
            "r.pdf",
            {"file_url": "https://x/r.pdf", "file_name": "r.pdf", "file_size": 12},
        )

        assert message.body == DocumentBody(url="https://x/r.pdf", name="r.pdf", size=12)

    def test_media_without_url_degrades_to_text(self):
        assert isinstance(self._message(MessageKind.IMAGE, "pic", {}).body, TextBody)

    def test_preset_echo(self):
        message = self._message(MessageKind.PRESET, "Deposit", {"preset_id": "deposit"})

        assert message.body == PresetBody(label="Deposit", preset_id="deposit")

    def test_null_metadata_becomes_empty(self):
        assert self._message(MessageKind.TEXT, "x", None).metadata == {}  # type: ignore[arg-type]

    def test_body_to_storage_for_preset(self):
        assert body_to_storage(PresetBody(label="Agent", preset_id="agent")) == (
            "Agent",
            {"preset_id": "agent"},
        )


class TestChatLifecycle:
    @pytest.mark.parametrize(
        ("current", "event", "expected"),
        [
            (ChatStatus.PENDING, ChatEvent.AGENT_ASSIGNED, ChatStatus.ACTIVE),
            (ChatStatus.ACTIVE, ChatEvent.AGENT_ASSIGNED, ChatStatus.ACTIVE),
            (ChatStatus.ACTIVE, ChatEvent.RESOLVED, ChatStatus.RESOLVED),
            (ChatStatus.RESOLVED, ChatEvent.CLOSED, ChatStatus.CLOSED),
        ],
    )
    def test_valid_transitions(self, current, event, expected):
        assert validate_transition(current, event) == (True, expected, "")

    @pytest.mark.parametrize(
        ("current", "event"),
        [
            (ChatStatus.RESOLVED, ChatEvent.AGENT_ASSIGNED),
            (ChatStatus.RESOLVED, ChatEvent.RESOLVED),
            (ChatStatus.CLOSED, ChatEvent.CLOSED),
        ],
    )
    def test_invalid_transitions(self, current, event):
        ok, next_status, error = validate_transition(current, event)

        assert ok is False
        assert next_status is None
        assert error

    def test_closed_has_no_outgoing_transitions(self):
        assert not [key for key in TRANSITIONS if key[0] == ChatStatus.CLOSED]

    def test_visibility_for_agent(self):
        unassigned = Chat(id="c1")
        mine = Chat(id="c2", status=ChatStatus.ACTIVE, assigned_agent_id="agent-1")
        theirs = Chat(id="c3", status=ChatStatus.ACTIVE, assigned_agent_id="agent-2")
        resolved = Chat(id="c4", status=ChatStatus.RESOLVED)

        visible = [c.id for c in (unassigned, mine, theirs, resolved) if c.visible_to("agent-1")]

        assert visible == ["c1", "c2"]
