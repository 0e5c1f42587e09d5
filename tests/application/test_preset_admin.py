"""Testes do flow builder (administração da árvore de presets)."""

from __future__ import annotations

import pytest

from chatflow.application.preset_admin import PresetAdmin
from chatflow.domain.errors import PersistenceError
from chatflow.infra import InMemoryPresetStore
from tests.helpers.chatflow_fixtures import make_preset


@pytest.fixture()
def store(preset_tree) -> InMemoryPresetStore:
    return InMemoryPresetStore(preset_tree)


@pytest.fixture()
def admin(store) -> PresetAdmin:
    return PresetAdmin(store)


class TestCreate:
    @pytest.mark.asyncio
    async def test_new_root_goes_after_siblings(self, admin, store):
        node = await admin.create("Account", answer_text="Account help")

        assert node.parent_id is None
        assert node.order_index == 4
        assert await store.get_preset(node.id) == node

    @pytest.mark.asyncio
    async def test_first_child_starts_at_zero(self, admin):
        node = await admin.create("Limits", parent_id="withdraw")

        assert node.order_index == 0

    @pytest.mark.asyncio
    async def test_missing_parent_is_rejected(self, admin):
        with pytest.raises(PersistenceError):
            await admin.create("Orphan", parent_id="nope")

    @pytest.mark.asyncio
    async def test_new_child_becomes_visible_to_customers(self, admin, store):
        await admin.create("Rocket", parent_id="deposit")

        labels = [n.button_label for n in await store.list_child_presets("deposit")]

        assert labels == ["bKash", "Nagad", "Rocket"]


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update(self, admin):
        node = await admin.update("withdraw", answer_text="Withdrawals take 48h")

        assert node.answer_text == "Withdrawals take 48h"
        assert node.button_label == "Withdraw"

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, admin):
        with pytest.raises(ValueError, match="não editáveis"):
            await admin.update("withdraw", created_at=None)

    @pytest.mark.asyncio
    async def test_blank_label_is_rejected(self, admin):
        with pytest.raises(ValueError):
            await admin.update("withdraw", button_label="  ")

    @pytest.mark.asyncio
    async def test_move_under_own_descendant_is_rejected(self, admin):
        with pytest.raises(ValueError, match="ciclo"):
            await admin.update("deposit", parent_id="bkash")

    @pytest.mark.asyncio
    async def test_self_parent_is_rejected(self, admin):
        with pytest.raises(ValueError):
            await admin.update("deposit", parent_id="deposit")

    @pytest.mark.asyncio
    async def test_move_to_other_branch(self, admin, store):
        await admin.update("nagad", parent_id="withdraw")

        assert [n.id for n in await store.list_child_presets("withdraw")] == ["nagad"]
        assert [n.id for n in await store.list_child_presets("deposit")] == ["bkash"]

    @pytest.mark.asyncio
    async def test_deactivated_node_leaves_customer_view(self, admin, store):
        await admin.update("agent", is_active=False)

        assert [n.id for n in await store.list_child_presets(None)] == ["deposit", "withdraw"]


class TestDelete:
    @pytest.mark.asyncio
    async def test_cascade_removes_subtree(self, admin, store):
        assert await admin.delete("deposit") == 3

        remaining = {n.id for n in await store.list_all_presets()}
        assert remaining == {"agent", "withdraw", "legacy"}

    @pytest.mark.asyncio
    async def test_missing_node_removes_nothing(self, admin):
        assert await admin.delete("nope") == 0


class TestReorder:
    @pytest.mark.asyncio
    async def test_listed_first_then_rest(self, admin, store):
        await admin.reorder(None, ["withdraw", "deposit"])

        assert [n.id for n in await store.list_child_presets(None)] == [
            "withdraw",
            "deposit",
            "agent",
        ]

    @pytest.mark.asyncio
    async def test_foreign_id_is_rejected(self, admin):
        with pytest.raises(ValueError):
            await admin.reorder("deposit", ["withdraw"])


class TestBuildTree:
    @pytest.mark.asyncio
    async def test_nested_tree_includes_inactive(self, admin):
        tree = await admin.build_tree()

        assert [t.node.id for t in tree] == ["deposit", "agent", "withdraw", "legacy"]
        assert [c.node.id for c in tree[0].children] == ["bkash", "nagad"]
        assert tree[1].children == []

    @pytest.mark.asyncio
    async def test_orphans_become_roots(self, preset_tree):
        store = InMemoryPresetStore([*preset_tree, make_preset("stray", "Stray", parent_id="gone")])

        tree = await PresetAdmin(store).build_tree()

        assert "stray" in [t.node.id for t in tree]
