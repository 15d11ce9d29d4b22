"""Savings-group writes: creation, enrollment, deposits, payouts, governance."""

from __future__ import annotations

from typing import Optional

from ..errors import GuardAbort
from ..types import GroupMode, GroupStatus, TxOutcome
from .base import INVALID_ARGUMENT, ContractClient, require_positive_int


def _check_mode(mode: int) -> int:
    try:
        return int(GroupMode(mode))
    except ValueError:
        raise GuardAbort(f"unknown group mode {mode!r}", reason=INVALID_ARGUMENT) from None


class SavingsGroupClient(ContractClient):
    async def create_public_group(
        self,
        group_id: str,
        name: str,
        deposit_per_member: int,
        cycle_duration_blocks: int,
        max_members: int,
        group_mode: int = GroupMode.TRADITIONAL_ROSCA,
        enrollment_period_blocks: int = 0,
        auto_start_when_full: bool = False,
        description: Optional[str] = None,
    ) -> TxOutcome:
        require_positive_int(deposit_per_member, "deposit per member")
        return await self._call(
            "create-public-group",
            group_id,
            name,
            description or None,
            deposit_per_member,
            cycle_duration_blocks,
            max_members,
            _check_mode(group_mode),
            enrollment_period_blocks,
            auto_start_when_full,
        )

    async def create_private_group(
        self,
        group_id: str,
        name: str,
        deposit_per_member: int,
        cycle_duration_blocks: int,
        max_members: int,
        group_mode: int = GroupMode.TRADITIONAL_ROSCA,
        description: Optional[str] = None,
    ) -> TxOutcome:
        require_positive_int(deposit_per_member, "deposit per member")
        return await self._call(
            "create-private-group",
            group_id,
            name,
            description or None,
            deposit_per_member,
            cycle_duration_blocks,
            max_members,
            _check_mode(group_mode),
        )

    async def join_public_group(self, group_id: str, member_name: str) -> TxOutcome:
        return await self._call("join-public-group", group_id, member_name)

    async def deposit(self, group_id: str) -> TxOutcome:
        guard = await self.guards.deposit(group_id, self.identity)
        return await self._guarded("deposit", guard, group_id)

    async def claim_payout(self, group_id: str) -> TxOutcome:
        guard = await self.guards.payout(group_id, self.identity)
        return await self._guarded("claim-payout", guard, group_id)

    async def withdraw_savings(self, group_id: str) -> TxOutcome:
        guard = await self.guards.withdraw(group_id, self.identity)
        return await self._guarded("withdraw-savings", guard, group_id)

    # --- Creator administration ---

    async def open_enrollment_period(self, group_id: str, enrollment_period_blocks: int) -> TxOutcome:
        return await self._call("open-enrollment-period", group_id, enrollment_period_blocks)

    async def close_enrollment_and_start(self, group_id: str) -> TxOutcome:
        return await self._call("close-enrollment-and-start", group_id)

    async def add_member(
        self,
        group_id: str,
        member: str,
        member_name: str,
        payout_position: int,
    ) -> TxOutcome:
        return await self._call("add-member", group_id, member, member_name, payout_position)

    async def start_first_cycle(self, group_id: str) -> TxOutcome:
        return await self._call("start-first-cycle", group_id)

    async def open_withdrawal_window(self, group_id: str) -> TxOutcome:
        return await self._call("open-withdrawal-window", group_id)

    async def mark_paid(self, group_id: str, member: str, cycle: int) -> TxOutcome:
        return await self._call("creator-mark-paid", group_id, member, cycle)

    async def set_status(self, group_id: str, status: int) -> TxOutcome:
        try:
            status = int(GroupStatus(status))
        except ValueError:
            raise GuardAbort(f"unknown group status {status!r}", reason=INVALID_ARGUMENT) from None
        return await self._call("creator-set-status", group_id, status)

    async def advance_cycle(self, group_id: str) -> TxOutcome:
        return await self._call("creator-advance-cycle", group_id)

    # --- Mode-change governance ---

    async def propose_mode_change(self, group_id: str, new_mode: int) -> TxOutcome:
        return await self._call("propose-mode-change", group_id, _check_mode(new_mode))

    async def vote_on_mode_change(self, group_id: str, vote_for: bool) -> TxOutcome:
        return await self._call("vote-on-mode-change", group_id, vote_for)

    async def cancel_mode_change(self, group_id: str) -> TxOutcome:
        return await self._call("cancel-mode-change", group_id)
