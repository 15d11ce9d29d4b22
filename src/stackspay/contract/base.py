"""Shared plumbing for the typed contract clients."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Sequence

from ..config import MICRO_STX_PER_STX
from ..errors import GuardAbort
from ..guards import Abort, GuardDeriver, GuardResult
from ..orchestrator import WriteOrchestrator
from ..storage import KeyValueStore
from ..types import TxOutcome
from .functions import FunctionSpec, get_function
from .reads import ContractReader

logger = logging.getLogger(__name__)

INVALID_AMOUNT = "invalid-amount"
INVALID_ARGUMENT = "invalid-argument"


def to_micro_stx(amount: Any) -> int:
    """Convert a whole or decimal STX amount to micro-STX without rounding."""
    if isinstance(amount, bool):
        raise GuardAbort("amount must be a number", reason=INVALID_AMOUNT)
    try:
        micro = Decimal(str(amount)) * MICRO_STX_PER_STX
    except InvalidOperation as e:
        raise GuardAbort(f"invalid STX amount {amount!r}", reason=INVALID_AMOUNT) from e
    if not micro.is_finite() or micro != micro.to_integral_value():
        raise GuardAbort(f"STX amount {amount!r} has more than 6 decimals", reason=INVALID_AMOUNT)
    return int(micro)


def _failure_context(spec: FunctionSpec, args: Sequence[Any]) -> Dict[str, Any]:
    """Call arguments by parameter name, for error message placeholders."""
    return {
        name.replace("-", "_"): value
        for name, value in zip(spec.param_names, args)
        if isinstance(value, (str, int))
    }


def require_positive_int(amount: Any, what: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise GuardAbort(f"{what} must be a positive integer, got {amount!r}", reason=INVALID_AMOUNT)
    return amount


class ContractClient:
    def __init__(
        self,
        reader: ContractReader,
        orchestrator: WriteOrchestrator,
        store: Optional[KeyValueStore] = None,
    ):
        self.reader = reader
        self.orchestrator = orchestrator
        self.guards = GuardDeriver(reader)
        self.store = store

    @property
    def identity(self) -> Optional[str]:
        return self.reader.gateway.identity

    async def _call(self, function_name: str, *args: Any) -> TxOutcome:
        spec = get_function(function_name)
        plan = self.orchestrator.plan(spec, args)
        return await self.orchestrator.execute(plan, _failure_context(spec, args))

    async def _guarded(self, function_name: str, guard: GuardResult, *args: Any) -> TxOutcome:
        """Submit with the derived guard; an Abort never reaches the wallet."""
        if isinstance(guard, Abort):
            logger.info(f"{function_name} aborted: {guard.reason} {guard.detail}")
            raise GuardAbort(guard.detail or guard.reason, reason=guard.reason)
        spec = get_function(function_name)
        plan = self.orchestrator.plan(spec, args, [guard])
        return await self.orchestrator.execute(plan, _failure_context(spec, args))
