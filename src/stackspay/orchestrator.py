"""Write orchestration.

Builds `CallPlan`s from the function table, hands them to the wallet for
signing and broadcast, and resolves exactly one `TxOutcome` per submission.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Set

from .contract.functions import FunctionSpec
from .error_codes import ErrorClassifier, ErrorCode
from .errors import ContractRejection, GuardAbort, TransportFailure
from .types import CallPlan, GuardMode, GuardSpec, OutcomeKind, TxOutcome

logger = logging.getLogger(__name__)

_CANCELLED = object()


class WalletSession(Protocol):
    """Signs and broadcasts a prepared call.

    Calls exactly one of `on_finish(payload)` / `on_cancel()`, or raises.
    """

    async def open_contract_call(
        self,
        plan: CallPlan,
        on_finish: Callable[[Any], None],
        on_cancel: Callable[[], None],
    ) -> None: ...


def _tx_id(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        return payload.get("txId") or payload.get("tx_id")
    return getattr(payload, "tx_id", None)


class WriteOrchestrator:
    def __init__(
        self,
        wallet: WalletSession,
        classifier: ErrorClassifier,
        contract_address: str,
        contract_name: str,
    ):
        self.wallet = wallet
        self.classifier = classifier
        self.contract_address = contract_address
        self.contract_name = contract_name
        self.pending: Set[str] = set()

    def plan(
        self,
        spec: FunctionSpec,
        args: Sequence[Any],
        guards: Sequence[GuardSpec] = (),
    ) -> CallPlan:
        """Encode `args` and attach `guards`.

        Value-moving functions without guards are refused; permissive mode
        only comes from the function table.
        """
        if spec.read_only:
            raise ValueError(f"{spec.name} is read-only and cannot be submitted")
        if spec.moves_value and not guards:
            raise GuardAbort(f"{spec.name} moves value but no guard was derived", reason="missing-guard")
        return CallPlan(
            contract_address=self.contract_address,
            contract_name=self.contract_name,
            function_name=spec.name,
            args=spec.encode_args(args),
            guards=tuple(guards),
            guard_mode=spec.guard_mode,
        )

    def is_pending(self, function_name: str) -> bool:
        return function_name in self.pending

    async def execute(self, plan: CallPlan, context: Optional[Mapping[str, Any]] = None) -> TxOutcome:
        """Submit `plan` and settle one outcome; `context` fills failure message placeholders."""
        loop = asyncio.get_running_loop()
        settled: asyncio.Future = loop.create_future()

        def on_finish(payload: Any) -> None:
            if not settled.done():
                settled.set_result(payload)

        def on_cancel() -> None:
            if not settled.done():
                settled.set_result(_CANCELLED)

        if plan.guard_mode == GuardMode.ALLOW_ALL:
            logger.info(f"Submitting {plan.function_name} in allow-all mode")
        self.pending.add(plan.function_name)
        try:
            await self.wallet.open_contract_call(plan, on_finish, on_cancel)
            payload = await settled
        except Exception as e:
            return self._failed(plan, e, context)
        finally:
            self.pending.discard(plan.function_name)

        if payload is _CANCELLED:
            logger.info(f"{plan.function_name} cancelled by user")
            return TxOutcome.cancelled()
        tx_id = _tx_id(payload)
        if not tx_id:
            return self._failed(
                plan, TransportFailure("wallet returned no transaction id", payload=payload), context
            )
        logger.info(f"{plan.function_name} broadcast as {tx_id}")
        return TxOutcome.success(tx_id)

    def _failed(
        self,
        plan: CallPlan,
        exc: Exception,
        context: Optional[Mapping[str, Any]] = None,
    ) -> TxOutcome:
        payload = getattr(exc, "payload", None)
        context = {"function": plan.function_name, **(context or {})}
        descriptor = self.classifier.classify(payload if payload is not None else exc, context)
        if isinstance(exc, (TransportFailure, ContractRejection)):
            error: Exception = exc
        elif payload is not None or descriptor.code != ErrorCode.UNKNOWN:
            error = ContractRejection(
                descriptor.user_message, code=int(descriptor.code), descriptor=descriptor
            )
        else:
            error = TransportFailure(f"{plan.function_name} submission failed: {exc}")
        logger.error(f"{plan.function_name} failed: {error}")
        return TxOutcome.failed(error, descriptor)

    def submit(
        self,
        plan: CallPlan,
        on_settled: Callable[[str], None],
        on_cancelled: Callable[[], None],
        on_failed: Callable[[TxOutcome], None],
    ) -> "asyncio.Task[TxOutcome]":
        """Callback form of `execute`; exactly one callback fires."""

        async def _run() -> TxOutcome:
            outcome = await self.execute(plan)
            if outcome.kind == OutcomeKind.SUCCESS:
                on_settled(outcome.tx_id)
            elif outcome.kind == OutcomeKind.CANCELLED:
                on_cancelled()
            else:
                on_failed(outcome)
            return outcome

        return asyncio.ensure_future(_run())


class DelayedRefresh:
    """One-shot re-query after a broadcast; rescheduling replaces the timer."""

    def __init__(self, delay: float):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, refresh: Callable[[], Any]) -> asyncio.Task:
        self.cancel()

        async def _later() -> None:
            await asyncio.sleep(self.delay)
            result = refresh()
            if asyncio.iscoroutine(result):
                await result

        self._task = asyncio.ensure_future(_later())
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
