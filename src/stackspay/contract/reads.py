"""Typed contract reads built on the read gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .. import normalize as schemas
from ..gateway import ReadGateway
from ..normalize import normalize_record
from ..types import UIntCV
from .functions import PUBLIC_GROUP_INDEX_MAP, get_function

logger = logging.getLogger(__name__)


class ContractReader:
    def __init__(self, gateway: ReadGateway):
        self.gateway = gateway

    async def read(self, function_name: str, *args: Any, sender: Optional[str] = None) -> Any:
        """Encode `args` for `function_name` and return the normalized result.

        Encoding errors propagate; chain failures come back as None.
        """
        spec = get_function(function_name)
        if not spec.read_only:
            raise ValueError(f"{function_name} is not a read-only function")
        return await self.gateway.query(function_name, spec.encode_args(args), sender)

    async def _record(self, fields, function_name: str, *args: Any) -> Optional[Dict[str, Any]]:
        return normalize_record(await self.read(function_name, *args), fields)

    # --- Payroll ---

    async def get_company(self, company_id: str):
        return await self._record(schemas.COMPANY, "get-company", company_id)

    async def get_company_stats(self, company_id: str):
        return await self._record(schemas.COMPANY_STATS, "get-company-stats", company_id)

    async def get_employee(self, company_id: str, employee: str):
        return await self._record(schemas.EMPLOYEE, "get-employee", company_id, employee)

    async def get_employee_stats(self, company_id: str, employee: str):
        return await self._record(schemas.EMPLOYEE_STATS, "get-employee-stats", company_id, employee)

    async def get_current_period(self, company_id: str):
        result = await self.read("get-current-period", company_id)
        if isinstance(result, int) and not isinstance(result, bool):
            result = {"period_number": result}
        return normalize_record(result, schemas.PERIOD)

    async def get_period_claim(self, company_id: str, employee: str, period: int):
        return await self._record(schemas.CLAIM, "get-period-claim", company_id, employee, period)

    async def load_employee_dashboard(self, company_id: str, employee: str) -> Dict[str, Any]:
        """Company, employee, stats and period concurrently, then the period claim."""
        company, record, stats, period = await asyncio.gather(
            self.get_company(company_id),
            self.get_employee(company_id, employee),
            self.get_employee_stats(company_id, employee),
            self.get_current_period(company_id),
        )
        claim = None
        claimed: Optional[bool] = None
        if period is not None:
            claim = await self.get_period_claim(company_id, employee, period["period_number"])
            claimed = claim is not None
        return {
            "company": company,
            "employee": record,
            "stats": stats,
            "period": period,
            "claim": claim,
            "claimed": claimed,
        }

    # --- Savings groups ---

    async def get_group(self, group_id: str):
        return await self._record(schemas.GROUP, "get-group", group_id)

    async def get_member(self, group_id: str, member: str):
        return await self._record(schemas.MEMBER, "get-member", group_id, member)

    async def get_contribution(self, group_id: str, member: str, cycle: int):
        return await self._record(schemas.CONTRIBUTION, "get-contribution", group_id, member, cycle)

    async def get_mode_change_status(self, group_id: str):
        return await self._record(schemas.MODE_CHANGE, "get-mode-change-status", group_id)

    async def get_member_vote_status(self, group_id: str, member: str):
        return await self._record(schemas.VOTE_STATUS, "get-member-vote-status", group_id, member)

    async def get_public_group_count(self) -> Optional[int]:
        return await self.read("get-public-group-count")

    async def get_public_group_id(self, index: int) -> Optional[str]:
        value = await self.gateway.map_entry(PUBLIC_GROUP_INDEX_MAP, UIntCV(index))
        if isinstance(value, dict):
            value = value.get("group_id")
        return value if isinstance(value, str) else None

    async def get_public_group_by_index(self, index: int):
        group = await self._record(schemas.GROUP, "get-public-group-by-index", index)
        if group is None:
            return None
        group_id = await self.get_public_group_id(index)
        if group_id is None:
            logger.warning(f"No id in {PUBLIC_GROUP_INDEX_MAP} for index {index}")
            group_id = f"group_{index}"
        group["group_id"] = group_id
        return group

    async def list_public_groups(self) -> list:
        count = await self.get_public_group_count()
        if not count:
            return []
        groups = await asyncio.gather(*(self.get_public_group_by_index(i) for i in range(count)))
        return [g for g in groups if g is not None]
