"""Transaction guard derivation.

Value-moving calls are submitted in deny-unlisted mode with a single STX
post-condition whose bound is computed from freshly read contract state.
`derive_guard` is the pure part; `GuardDeriver` performs the live reads and
the payout time gate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from .config import BLOCK_TIME_MINUTES
from .normalize import canonical_field
from .types import Comparator, GroupStatus, GuardSpec

if TYPE_CHECKING:
    from .contract.reads import ContractReader

logger = logging.getLogger(__name__)


class Operation(Enum):
    FUND_PAYROLL = "fund-payroll"
    DEPOSIT = "deposit"
    PAYOUT = "claim-payout"
    CLAIM_SALARY = "claim-salary"
    WITHDRAW = "withdraw-savings"


# Abort reasons
ZERO_AMOUNT = "zero-amount"
WITHDRAWAL_NOT_OPEN = "withdrawal-not-open"
EMPTY_WITHDRAWAL = "empty-withdrawal"
STATE_UNAVAILABLE = "state-unavailable"
NOT_YOUR_TURN = "not-your-turn"
CYCLE_NOT_ENDED = "cycle-not-ended"
NO_IDENTITY = "no-identity"
EMPLOYEE_INACTIVE = "employee-inactive"


@dataclass(frozen=True)
class Abort:
    reason: str
    detail: str = ""


GuardResult = Union[GuardSpec, Abort]


def claim_bound(salary: int, advance_debt: int) -> int:
    return max(0, int(salary) - int(advance_debt))


def payout_bound(members_count: int, deposit_per_member: int) -> int:
    return int(members_count) * int(deposit_per_member)


def _field(state: Mapping[str, Any], name: str) -> int:
    value = state.get(name)
    return int(value or 0)


def derive_guard(
    operation: Operation,
    live_state: Optional[Mapping[str, Any]],
    *,
    sender: Optional[str] = None,
    contract: Optional[str] = None,
) -> GuardResult:
    """Compute the post-condition for `operation` from `live_state`.

    `sender` is the principal sending in user-to-contract moves; `contract` is
    the contract principal for contract-to-user moves.
    """
    if live_state is None:
        return Abort(STATE_UNAVAILABLE, f"{operation.value}: live state could not be read")
    state = {canonical_field(str(k)): v for k, v in live_state.items()}

    if operation in (Operation.FUND_PAYROLL, Operation.DEPOSIT):
        principal = sender
        comparator = Comparator.EXACTLY
        if operation == Operation.FUND_PAYROLL:
            amount = _field(state, "amount")
        else:
            amount = _field(state, "deposit_per_member")
    elif operation == Operation.PAYOUT:
        principal = contract
        comparator = Comparator.EXACTLY
        if _field(state, "current_cycle") != _field(state, "payout_position"):
            return Abort(
                NOT_YOUR_TURN,
                f"payout position {_field(state, 'payout_position')} is not the current cycle "
                f"{_field(state, 'current_cycle')}",
            )
        amount = payout_bound(_field(state, "members_count"), _field(state, "deposit_per_member"))
    elif operation == Operation.CLAIM_SALARY:
        principal = contract
        comparator = Comparator.AT_MOST
        amount = claim_bound(_field(state, "salary_per_period"), _field(state, "current_advance_debt"))
    elif operation == Operation.WITHDRAW:
        principal = contract
        comparator = Comparator.EXACTLY
        if _field(state, "status") != GroupStatus.WITHDRAWAL_OPEN:
            return Abort(WITHDRAWAL_NOT_OPEN, "the withdrawal window is not open")
        amount = _field(state, "total_contributed")
        if amount == 0:
            return Abort(EMPTY_WITHDRAWAL, "nothing was contributed, nothing to withdraw")
    else:
        raise TypeError(f"unknown operation: {operation}")

    if not principal:
        return Abort(NO_IDENTITY, f"{operation.value}: no principal to bound")
    if amount <= 0:
        return Abort(ZERO_AMOUNT, f"{operation.value}: bound is zero")
    return GuardSpec(principal, comparator, amount)


def describe_wait(blocks: int) -> str:
    minutes = max(0, blocks) * BLOCK_TIME_MINUTES
    days, rem = divmod(minutes, 24 * 60)
    hours = rem // 60
    if days > 0:
        text = f"{days} day{'s' if days != 1 else ''}"
        if hours == 0:
            return text
        return f"{text} {hours} hour{'s' if hours != 1 else ''}"
    if hours > 0:
        return f"{hours} hour{'s' if hours != 1 else ''}"
    return "less than 1 hour"


def check_time_gate(height: Optional[int], deadline: int) -> Optional[Abort]:
    """Abort while the cycle is running; unknown height defers to the contract."""
    if height is None:
        logger.warning("Block height unavailable, skipping cycle time check")
        return None
    if height < deadline:
        remaining = deadline - height
        return Abort(
            CYCLE_NOT_ENDED,
            f"cycle ends in {remaining} blocks (about {describe_wait(remaining)})",
        )
    return None


class GuardDeriver:
    """Reads live state and derives guards immediately before submission."""

    def __init__(self, reader: "ContractReader"):
        self.reader = reader

    @property
    def contract(self) -> str:
        return self.reader.gateway.contract_address + "." + self.reader.gateway.contract_name

    async def fund_payroll(self, owner: Optional[str], amount: int) -> GuardResult:
        return derive_guard(Operation.FUND_PAYROLL, {"amount": amount}, sender=owner)

    async def deposit(self, group_id: str, sender: Optional[str]) -> GuardResult:
        group = await self.reader.get_group(group_id)
        return derive_guard(Operation.DEPOSIT, group, sender=sender)

    async def payout(self, group_id: str, member: Optional[str]) -> GuardResult:
        if not member:
            return Abort(NO_IDENTITY, "claim-payout needs the member address")
        group, record = await asyncio.gather(
            self.reader.get_group(group_id),
            self.reader.get_member(group_id, member),
        )
        if group is None or record is None:
            return Abort(STATE_UNAVAILABLE, "group or member state could not be read")
        state = dict(group)
        state["payout_position"] = record["payout_position"]
        result = derive_guard(Operation.PAYOUT, state, contract=self.contract)
        if isinstance(result, Abort):
            return result

        height = await self.reader.gateway.block_height()
        deadline = int(group["cycle_start_block"]) + int(group["cycle_duration_blocks"])
        gate = check_time_gate(height, deadline)
        if gate is not None:
            return gate
        return result

    async def claim_salary(self, company_id: str, employee: Optional[str]) -> GuardResult:
        if not employee:
            return Abort(NO_IDENTITY, "claim-salary needs the employee address")
        record, stats = await asyncio.gather(
            self.reader.get_employee(company_id, employee),
            self.reader.get_employee_stats(company_id, employee),
        )
        if record is None or stats is None:
            return Abort(STATE_UNAVAILABLE, "employee state could not be read")
        if not record["is_active"]:
            return Abort(EMPLOYEE_INACTIVE, "the employee record is not active")
        state = {
            "salary_per_period": record["salary_per_period"],
            "current_advance_debt": stats["current_advance_debt"],
        }
        return derive_guard(Operation.CLAIM_SALARY, state, contract=self.contract)

    async def withdraw(self, group_id: str, member: Optional[str]) -> GuardResult:
        if not member:
            return Abort(NO_IDENTITY, "withdraw-savings needs the member address")
        group, record = await asyncio.gather(
            self.reader.get_group(group_id),
            self.reader.get_member(group_id, member),
        )
        if group is None:
            return Abort(STATE_UNAVAILABLE, "group state could not be read")
        if group["status"] != GroupStatus.WITHDRAWAL_OPEN:
            return Abort(WITHDRAWAL_NOT_OPEN, "the withdrawal window is not open")
        if record is None:
            return Abort(STATE_UNAVAILABLE, "member state could not be read")
        state = {"status": group["status"], "total_contributed": record["total_contributed"]}
        return derive_guard(Operation.WITHDRAW, state, contract=self.contract)
