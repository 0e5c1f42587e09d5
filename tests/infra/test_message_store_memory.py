"""Testes do MessageStore e ChatRoster em memória."""

from __future__ import annotations

from datetime import timedelta

import pytest

from chatflow.domain.enums import ChatStatus, SenderType
from chatflow.domain.errors import ChatTransitionError, PersistenceError
from chatflow.infra import InMemoryChatRoster, InMemoryMessageStore
from tests.helpers.chatflow_fixtures import BASE_TIME, drain


def _clock(*offsets: int):
    times = iter(BASE_TIME + timedelta(seconds=o) for o in offsets)
    return lambda: next(times)


class TestInMemoryMessageStore:
    @pytest.mark.asyncio
    async def test_list_is_sorted_by_created_at(self):
        """Relógio fora de ordem não embaralha o histórico."""
        store = InMemoryMessageStore(clock=_clock(10, 5, 10))
        await store.create_message("c1", SenderType.CUSTOMER, "late")
        await store.create_message("c1", SenderType.BOT, "early")
        await store.create_message("c1", SenderType.AGENT, "tie")

        contents = [m.content for m in await store.list_messages("c1")]

        assert contents == ["early", "late", "tie"]

    @pytest.mark.asyncio
    async def test_delivery_is_deferred_to_the_loop(self):
        store = InMemoryMessageStore()
        received = []
        store.subscribe_new_messages("c1", received.append)

        created = await store.create_message("c1", SenderType.CUSTOMER, "hi")

        assert received == []
        await drain()
        assert received == [created]

    @pytest.mark.asyncio
    async def test_unsubscribe_before_delivery_drops_message(self):
        store = InMemoryMessageStore()
        received = []
        unsubscribe = store.subscribe_new_messages("c1", received.append)

        await store.create_message("c1", SenderType.CUSTOMER, "hi")
        unsubscribe()
        unsubscribe()
        await drain()

        assert received == []
        assert store.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_other_chat_is_not_delivered(self):
        store = InMemoryMessageStore()
        received = []
        store.subscribe_new_messages("c1", received.append)

        await store.create_message("c2", SenderType.CUSTOMER, "elsewhere")
        await drain()

        assert received == []

    @pytest.mark.asyncio
    async def test_mark_read_and_count(self):
        store = InMemoryMessageStore()
        await store.create_message("c1", SenderType.CUSTOMER, "a")
        await store.create_message("c1", SenderType.CUSTOMER, "b")
        await store.create_message("c1", SenderType.AGENT, "c")

        assert await store.count_unread("c1", SenderType.CUSTOMER) == 2
        assert await store.mark_read("c1", SenderType.CUSTOMER) == 2
        assert await store.count_unread("c1", SenderType.CUSTOMER) == 0
        assert await store.count_unread("c1", SenderType.AGENT) == 1

    @pytest.mark.asyncio
    async def test_metadata_is_copied(self):
        store = InMemoryMessageStore()
        metadata = {"client_ref": "r1"}

        message = await store.create_message("c1", SenderType.CUSTOMER, "a", metadata=metadata)
        metadata["client_ref"] = "changed"

        assert message.client_ref == "r1"

    @pytest.mark.asyncio
    async def test_last_message_of_empty_chat(self):
        assert await InMemoryMessageStore().last_message("c1") is None


class TestInMemoryChatRoster:
    @pytest.mark.asyncio
    async def test_lifecycle(self):
        roster = InMemoryChatRoster()
        chat = await roster.create_chat(customer_email="a@b.c")

        assigned = await roster.assign_chat(chat.id, "agent-1")
        resolved = await roster.resolve_chat(chat.id)
        closed = await roster.close_chat(chat.id)

        assert assigned.status == ChatStatus.ACTIVE
        assert resolved.status == ChatStatus.RESOLVED
        assert closed.status == ChatStatus.CLOSED
        assert closed.assigned_agent_id == "agent-1"

    @pytest.mark.asyncio
    async def test_closed_chat_rejects_transitions(self):
        roster = InMemoryChatRoster()
        chat = await roster.create_chat()
        await roster.close_chat(chat.id)

        with pytest.raises(ChatTransitionError):
            await roster.resolve_chat(chat.id)

    @pytest.mark.asyncio
    async def test_missing_chat(self):
        roster = InMemoryChatRoster()

        assert await roster.get_chat("nope") is None
        with pytest.raises(PersistenceError):
            await roster.assign_chat("nope", "agent-1")

    @pytest.mark.asyncio
    async def test_open_chats_newest_activity_first(self):
        roster = InMemoryChatRoster(clock=_clock(0, 1, 2))
        older = await roster.create_chat()
        newer = await roster.create_chat()
        await roster.touch_chat(older.id)

        assert [c.id for c in await roster.list_open_chats()] == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_change_listener_runs_on_loop(self):
        roster = InMemoryChatRoster()
        calls = []
        unsubscribe = roster.subscribe_changes(lambda: calls.append(1))

        await roster.create_chat()
        assert calls == []
        await drain()
        assert calls == [1]

        unsubscribe()
        await roster.create_chat()
        await drain()
        assert calls == [1]
