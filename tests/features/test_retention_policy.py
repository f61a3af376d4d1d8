from __future__ import annotations

import pytest

from mrc_backend.config import StoreConfig
from mrc_backend.features.duplicates import DUPLICATE_OF_USED, UNUSED, RetentionPolicy, newest_first
from mrc_backend.features.inventory import RemoteInventoryScanner
from tests.fakes import FakeStore, resource

_SCANNER = RemoteInventoryScanner(FakeStore(), StoreConfig())


def _asset(name, created_at="2024-01-01T00:00:00Z", **extra):
    return _SCANNER.to_asset(resource(name, created_at, **extra))


def _reasons(decision):
    return {c.asset.asset_id: c.reason for c in decision.removals}


def test_live_member_is_retained_and_newer_dead_copy_is_duplicate_of_used():
    a = _asset("product_P_0_1000")
    b = _asset("product_P_0_2000")
    c = _asset("product_P_0_3000")

    decision = RetentionPolicy().decide([a, b, c], {b.asset_id})

    assert decision.retain.asset_id == b.asset_id
    assert _reasons(decision) == {a.asset_id: UNUSED, c.asset_id: DUPLICATE_OF_USED}


def test_without_live_member_the_newest_is_retained():
    a = _asset("product_P_0_1000")
    b = _asset("product_P_0_2000")

    decision = RetentionPolicy().decide([a, b], set())

    assert decision.retain.asset_id == b.asset_id
    assert _reasons(decision) == {a.asset_id: UNUSED}


def test_two_live_members_keep_the_newest_and_flag_the_other():
    a = _asset("product_P_0_1000")
    b = _asset("product_P_0_2000")

    decision = RetentionPolicy().decide([a, b], {a.asset_id, b.asset_id})

    assert decision.retain.asset_id == b.asset_id
    assert _reasons(decision) == {a.asset_id: DUPLICATE_OF_USED}


def test_every_member_is_labelled_exactly_once():
    members = [_asset(f"product_P_0_{ts}") for ts in (10, 20, 30, 40, 50)]
    live = {members[2].asset_id}

    decision = RetentionPolicy().decide(members, live)

    labelled = [decision.retain.asset_id] + [c.asset.asset_id for c in decision.removals]
    assert sorted(labelled) == sorted(m.asset_id for m in members)
    assert len(set(labelled)) == len(members)
    assert decision.retain.asset_id in live
    assert all(c.asset.asset_id != decision.retain.asset_id for c in decision.removals)


def test_fallback_members_order_by_creation_time():
    old = _asset("looklyn/misc/banner-a", "2024-01-01T00:00:00Z", asset_id="same")
    new = _asset("looklyn/misc/banner-b", "2024-06-01T00:00:00Z", asset_id="same")

    decision = RetentionPolicy().decide([old, new], set())

    assert decision.retain.asset_id == new.asset_id


def test_ties_break_by_id_and_input_order_does_not_matter():
    a = _asset("looklyn/x/one", "2024-01-01T00:00:00Z", asset_id="k")
    b = _asset("looklyn/x/two", "2024-01-01T00:00:00Z", asset_id="k")

    first = RetentionPolicy().decide([a, b], set())
    second = RetentionPolicy().decide([b, a], set())

    assert first == second
    assert first.retain.asset_id == "looklyn/x/one"
    assert [m.asset_id for m in newest_first([b, a])] == ["looklyn/x/one", "looklyn/x/two"]


def test_empty_group_is_rejected():
    with pytest.raises(ValueError):
        RetentionPolicy().decide([], set())


def test_unordered_dead_group_keeps_highest_timestamp():
    members = [_asset(f"product_P_0_{ts}") for ts in (5, 1, 9)]

    decision = RetentionPolicy().decide(members, set())

    assert decision.retain.asset_id == "product_P_0_9"
    assert set(_reasons(decision).values()) == {UNUSED}
    assert decision.retain not in [c.asset for c in decision.removals]


def test_repeated_member_never_becomes_its_own_removal():
    newer = _asset("product_P_0_2000")
    older = _asset("product_P_0_1000")

    decision = RetentionPolicy().decide([newer, older, _asset("product_P_0_2000")], set())

    assert decision.retain.asset_id == "product_P_0_2000"
    assert [c.asset.asset_id for c in decision.removals] == ["product_P_0_1000"]
