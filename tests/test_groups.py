"""Savings-group client writes."""

from __future__ import annotations

import asyncio

import pytest

from stackspay.contract.base import INVALID_ARGUMENT
from stackspay.errors import GuardAbort
from stackspay.guards import CYCLE_NOT_ENDED, NOT_YOUR_TURN, WITHDRAWAL_NOT_OPEN
from stackspay.test_accounts import ALICE, BOB, CONTRACT_ID
from stackspay.types import (
    BoolCV,
    Comparator,
    GroupMode,
    GroupStatus,
    GuardMode,
    GuardSpec,
    NoneCV,
    UIntCV,
)


def _group(record, **overrides):
    fields = dict(
        deposit_per_member=3_000_000,
        members_count=3,
        current_cycle=1,
        cycle_start_block=100,
        cycle_duration_blocks=144,
        status=GroupStatus.ACTIVE,
    )
    fields.update(overrides)
    return record(**fields)


def test_deposit_guards_exact_amount_from_sender(groups, endpoint, wallet, record) -> None:
    endpoint.responses["get-group"] = _group(record)

    outcome = asyncio.run(groups.deposit("circle"))

    assert outcome.ok
    (plan,) = wallet.plans
    assert plan.guards == (GuardSpec(ALICE, Comparator.EXACTLY, 3_000_000),)
    assert plan.guard_mode == GuardMode.DENY_UNLISTED


def test_payout_guards_whole_pot(groups, endpoint, wallet, record) -> None:
    endpoint.responses["get-group"] = _group(record)
    endpoint.responses["get-member"] = record(payout_position=1)
    endpoint.height = 300

    asyncio.run(groups.claim_payout("circle"))

    (plan,) = wallet.plans
    assert plan.guards == (GuardSpec(CONTRACT_ID, Comparator.EXACTLY, 9_000_000),)


def test_payout_before_cycle_end_aborts(groups, endpoint, wallet, record) -> None:
    endpoint.responses["get-group"] = _group(record)
    endpoint.responses["get-member"] = record(payout_position=1)
    endpoint.height = 200

    with pytest.raises(GuardAbort) as info:
        asyncio.run(groups.claim_payout("circle"))

    assert info.value.reason == CYCLE_NOT_ENDED
    assert wallet.plans == []


def test_payout_out_of_turn_aborts(groups, endpoint, wallet, record) -> None:
    endpoint.responses["get-group"] = _group(record)
    endpoint.responses["get-member"] = record(payout_position=2)

    with pytest.raises(GuardAbort) as info:
        asyncio.run(groups.claim_payout("circle"))

    assert info.value.reason == NOT_YOUR_TURN


def test_withdraw_guards_total_contributed(groups, endpoint, wallet, record) -> None:
    endpoint.responses["get-group"] = _group(record, status=GroupStatus.WITHDRAWAL_OPEN)
    endpoint.responses["get-member"] = record(total_contributed=6_000_000)

    asyncio.run(groups.withdraw_savings("circle"))

    (plan,) = wallet.plans
    assert plan.guards == (GuardSpec(CONTRACT_ID, Comparator.EXACTLY, 6_000_000),)


def test_withdraw_outside_window_aborts(groups, endpoint, wallet, record) -> None:
    endpoint.responses["get-group"] = _group(record, status=GroupStatus.PAUSED)
    endpoint.responses["get-member"] = record(total_contributed=6_000_000)

    with pytest.raises(GuardAbort) as info:
        asyncio.run(groups.withdraw_savings("circle"))

    assert info.value.reason == WITHDRAWAL_NOT_OPEN
    assert wallet.plans == []


def test_create_public_group_args(groups, wallet) -> None:
    asyncio.run(
        groups.create_public_group(
            "circle",
            "Circle",
            deposit_per_member=1_000_000,
            cycle_duration_blocks=144,
            max_members=5,
            group_mode=GroupMode.COLLECTIVE_SAVINGS,
            enrollment_period_blocks=72,
            auto_start_when_full=True,
        )
    )
    (plan,) = wallet.plans
    assert plan.function_name == "create-public-group"
    assert plan.guard_mode == GuardMode.ALLOW_ALL
    assert plan.args[2] == NoneCV()
    assert plan.args[6] == UIntCV(2)
    assert plan.args[-1] == BoolCV(True)


@pytest.mark.parametrize("mode", [0, 4, 99])
def test_unknown_group_mode_rejected(groups, wallet, mode) -> None:
    with pytest.raises(GuardAbort) as info:
        asyncio.run(groups.create_private_group("circle", "Circle", 1_000_000, 144, 5, group_mode=mode))
    assert info.value.reason == INVALID_ARGUMENT
    with pytest.raises(GuardAbort):
        asyncio.run(groups.propose_mode_change("circle", mode))
    assert wallet.plans == []


def test_set_status_validates(groups, wallet) -> None:
    with pytest.raises(GuardAbort):
        asyncio.run(groups.set_status("circle", 9))
    asyncio.run(groups.set_status("circle", GroupStatus.PAUSED))
    assert wallet.plans[0].args[1] == UIntCV(3)


def test_admin_calls_are_permissive(groups, wallet) -> None:
    asyncio.run(groups.add_member("circle", BOB, "Bob", 2))
    asyncio.run(groups.vote_on_mode_change("circle", False))
    asyncio.run(groups.mark_paid("circle", BOB, 1))

    assert [p.function_name for p in wallet.plans] == [
        "add-member",
        "vote-on-mode-change",
        "creator-mark-paid",
    ]
    assert all(p.guard_mode == GuardMode.ALLOW_ALL for p in wallet.plans)
    assert wallet.plans[1].args[1] == BoolCV(False)
