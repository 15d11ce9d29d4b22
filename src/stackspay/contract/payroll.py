"""Payroll writes: companies, employees, funding, bonuses, advances, salary claims."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..config import ADVANCE_LIMIT_DIVISOR, MICRO_STX_PER_STX, REFRESH_DELAY_SECONDS
from ..errors import GuardAbort
from ..guards import EMPLOYEE_INACTIVE, NO_IDENTITY, STATE_UNAVAILABLE
from ..orchestrator import DelayedRefresh
from ..storage import saved_companies, saved_employees
from ..types import TxOutcome
from .base import INVALID_AMOUNT, ContractClient, require_positive_int, to_micro_stx

logger = logging.getLogger(__name__)

ADVANCE_EXCEEDS_LIMIT = "advance-exceeds-limit"


def advance_limit_stx(salary_micro: int) -> int:
    """Largest whole-STX advance: half of one period's salary."""
    return int(salary_micro) // (ADVANCE_LIMIT_DIVISOR * MICRO_STX_PER_STX)


class PayrollClient(ContractClient):
    def __init__(self, *args, refresh_delay: float = REFRESH_DELAY_SECONDS, **kwargs):
        super().__init__(*args, **kwargs)
        self.refresh = DelayedRefresh(refresh_delay)

    async def create_company(
        self,
        company_id: str,
        name: str,
        pay_frequency: int,
        pay_day: int,
        description: Optional[str] = None,
    ) -> TxOutcome:
        outcome = await self._call("create-company", company_id, name, description, pay_frequency, pay_day)
        if outcome.ok and self.store is not None:
            saved_companies(self.store).add(company_id, name)
        return outcome

    async def add_employee(self, company_id: str, employee: str, name: str, salary: int) -> TxOutcome:
        outcome = await self._call("add-employee", company_id, employee, name, salary)
        if outcome.ok and self.store is not None:
            saved_employees(self.store, company_id).add(employee, name)
        return outcome

    async def fund_payroll(self, company_id: str, amount_stx: Any) -> TxOutcome:
        amount = to_micro_stx(amount_stx)
        if amount <= 0:
            raise GuardAbort(f"funding amount must be positive, got {amount_stx!r}", reason=INVALID_AMOUNT)
        guard = await self.guards.fund_payroll(self.identity, amount)
        return await self._guarded("fund-payroll", guard, company_id, amount)

    async def add_bonus(
        self,
        company_id: str,
        employee: str,
        amount: int,
        notes: Optional[str] = None,
    ) -> TxOutcome:
        require_positive_int(amount, "bonus amount")
        notes = notes.strip() if notes else None
        return await self._call("add-bonus", company_id, employee, amount, notes or None)

    async def request_advance(self, company_id: str, amount_stx: int) -> TxOutcome:
        """Request an advance of `amount_stx` whole STX, at most half a salary."""
        require_positive_int(amount_stx, "advance amount")
        employee = self.identity
        if not employee:
            raise GuardAbort("request-advance needs a connected wallet", reason=NO_IDENTITY)
        record = await self.reader.get_employee(company_id, employee)
        if record is None:
            raise GuardAbort("employee state could not be read", reason=STATE_UNAVAILABLE)
        if not record["is_active"]:
            raise GuardAbort("the employee record is not active", reason=EMPLOYEE_INACTIVE)
        limit = advance_limit_stx(record["salary_per_period"])
        if amount_stx > limit:
            raise GuardAbort(
                f"advance of {amount_stx} STX exceeds the limit of {limit} STX (50% of salary)",
                reason=ADVANCE_EXCEEDS_LIMIT,
            )
        return await self._call("request-advance", company_id, amount_stx * MICRO_STX_PER_STX)

    async def claim_salary(
        self,
        company_id: str,
        on_refresh: Optional[Callable[[], Any]] = None,
    ) -> TxOutcome:
        """Claim this period's salary; `on_refresh` re-runs after confirmation delay."""
        guard = await self.guards.claim_salary(company_id, self.identity)
        outcome = await self._guarded("claim-salary", guard, company_id)
        if outcome.ok and on_refresh is not None:
            self.refresh.schedule(on_refresh)
        return outcome

    def close(self) -> None:
        self.refresh.cancel()
