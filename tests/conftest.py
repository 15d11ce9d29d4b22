"""Shared fakes for the chain endpoint and the wallet."""

from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from stackspay.contract.groups import SavingsGroupClient
from stackspay.contract.payroll import PayrollClient
from stackspay.contract.reads import ContractReader
from stackspay.error_codes import ErrorClassifier
from stackspay.errors import TransportFailure
from stackspay.gateway import ReadGateway
from stackspay.orchestrator import WriteOrchestrator
from stackspay.storage import MemoryStore
from stackspay.test_accounts import ALICE, CONTRACT_ADDRESS, CONTRACT_NAME
from stackspay.types import BoolCV, NoneCV, SomeCV, StringUtf8CV, TupleCV, UIntCV


class FakeEndpoint:
    """Chain query endpoint answering from canned responses.

    A response may be a Clarity value, an exception to raise, or a callable
    taking the encoded args.
    """

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.map_entries: dict[tuple, Any] = {}
        self.height: Any = 1_000
        self.calls: list[tuple] = []

    async def call_read_only(self, contract_address, contract_name, function_name, args, sender):
        self.calls.append((function_name, tuple(args), sender))
        if function_name not in self.responses:
            raise TransportFailure(f"no canned response for {function_name}")
        response = self.responses[function_name]
        if callable(response):
            response = response(tuple(args))
        if isinstance(response, BaseException):
            raise response
        return response

    async def get_map_entry(self, contract_address, contract_name, map_name, key):
        entry = self.map_entries.get((map_name, key))
        if entry is None:
            raise TransportFailure(f"no map entry {map_name}[{key}]")
        return entry

    async def get_block_height(self) -> int:
        if isinstance(self.height, BaseException):
            raise self.height
        return self.height

    def called(self, function_name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == function_name]


class FakeWallet:
    """Wallet that finishes, cancels or fails every call the same way."""

    def __init__(self, mode: str = "finish", tx_id: str = "0xfeed", error: Optional[BaseException] = None):
        self.mode = mode
        self.tx_id = tx_id
        self.error = error
        self.plans: list = []

    async def open_contract_call(self, plan, on_finish, on_cancel) -> None:
        self.plans.append(plan)
        if self.error is not None:
            raise self.error
        if self.mode == "finish":
            on_finish({"txId": self.tx_id})
        elif self.mode == "cancel":
            on_cancel()
        elif self.mode == "finish-then-cancel":
            on_finish({"txId": self.tx_id})
            on_cancel()


def _to_cv(value: Any):
    if isinstance(value, bool):
        return BoolCV(value)
    if isinstance(value, int):
        return UIntCV(value)
    if isinstance(value, str):
        return StringUtf8CV(value)
    if value is None:
        return NoneCV()
    return value


def record_cv(**fields: Any) -> SomeCV:
    """``(some (tuple ...))`` with hyphenated keys, as the contract returns records."""
    return SomeCV(TupleCV({name.replace("_", "-"): _to_cv(v) for name, v in fields.items()}))


@pytest.fixture
def record() -> Callable[..., SomeCV]:
    return record_cv


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def gateway(endpoint: FakeEndpoint) -> ReadGateway:
    return ReadGateway(endpoint, CONTRACT_ADDRESS, CONTRACT_NAME, identity=ALICE)


@pytest.fixture
def reader(gateway: ReadGateway) -> ContractReader:
    return ContractReader(gateway)


@pytest.fixture
def orchestrator(wallet: FakeWallet) -> WriteOrchestrator:
    return WriteOrchestrator(wallet, ErrorClassifier(), CONTRACT_ADDRESS, CONTRACT_NAME)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def payroll(reader, orchestrator, store) -> PayrollClient:
    return PayrollClient(reader, orchestrator, store, refresh_delay=0.01)


@pytest.fixture
def groups(reader, orchestrator) -> SavingsGroupClient:
    return SavingsGroupClient(reader, orchestrator)
