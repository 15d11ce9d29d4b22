"""Contract function table.

Each public function of the StacksPay contract with its parameter shapes and
its write policy. Value-moving functions are always deny-unlisted; the few
permissive writes are marked explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Sequence, Tuple

from .. import codec
from ..codec import BOOL, PRINCIPAL, STRING_UTF8, UINT, Shape, optional
from ..errors import EncodingError
from ..types import ClarityValue, GuardMode


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    params: Tuple[Tuple[str, Shape], ...] = ()
    read_only: bool = False
    moves_value: bool = False
    guard_mode: GuardMode = GuardMode.DENY_UNLISTED

    def __post_init__(self) -> None:
        if self.moves_value and self.guard_mode != GuardMode.DENY_UNLISTED:
            raise ValueError(f"{self.name} moves value and must use deny-unlisted mode")
        if self.read_only and self.moves_value:
            raise ValueError(f"{self.name} cannot be read-only and move value")

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.params)

    def encode_args(self, args: Sequence[Any]) -> Tuple[ClarityValue, ...]:
        if len(args) != len(self.params):
            raise EncodingError(f"{self.name} takes {len(self.params)} arguments, got {len(args)}")
        encoded = []
        for (name, shape), value in zip(self.params, args):
            try:
                encoded.append(codec.encode(value, shape))
            except EncodingError as e:
                raise EncodingError(f"{self.name}: argument {name!r}: {e.message}") from e
        return tuple(encoded)


def _read(name: str, *params: Tuple[str, Shape]) -> FunctionSpec:
    return FunctionSpec(name, params, read_only=True)


def _write(name: str, *params: Tuple[str, Shape], moves_value: bool = False) -> FunctionSpec:
    return FunctionSpec(name, params, moves_value=moves_value)


def _permissive(name: str, *params: Tuple[str, Shape]) -> FunctionSpec:
    return FunctionSpec(name, params, guard_mode=GuardMode.ALLOW_ALL)


COMPANY = ("company-id", STRING_UTF8)
GROUP = ("group-id", STRING_UTF8)

_SPECS = (
    # --- Payroll reads ---
    _read("get-company", COMPANY),
    _read("get-company-stats", COMPANY),
    _read("get-employee", COMPANY, ("employee", PRINCIPAL)),
    _read("get-employee-stats", COMPANY, ("employee", PRINCIPAL)),
    _read("get-current-period", COMPANY),
    _read("get-period-claim", COMPANY, ("employee", PRINCIPAL), ("period", UINT)),
    # --- Payroll writes ---
    _permissive(
        "create-company",
        COMPANY,
        ("name", STRING_UTF8),
        ("description", optional(STRING_UTF8)),
        ("pay-frequency", UINT),
        ("pay-day", UINT),
    ),
    _permissive("add-employee", COMPANY, ("employee", PRINCIPAL), ("name", STRING_UTF8), ("salary", UINT)),
    _write("fund-payroll", COMPANY, ("amount", UINT), moves_value=True),
    _write(
        "add-bonus",
        COMPANY,
        ("employee", PRINCIPAL),
        ("amount", UINT),
        ("notes", optional(STRING_UTF8)),
    ),
    _write("request-advance", COMPANY, ("amount", UINT)),
    _write("claim-salary", COMPANY, moves_value=True),
    # --- Savings group reads ---
    _read("get-group", GROUP),
    _read("get-member", GROUP, ("member", PRINCIPAL)),
    _read("get-contribution", GROUP, ("member", PRINCIPAL), ("cycle", UINT)),
    _read("get-mode-change-status", GROUP),
    _read("get-member-vote-status", GROUP, ("member", PRINCIPAL)),
    _read("get-public-group-count"),
    _read("get-public-group-by-index", ("index", UINT)),
    # --- Savings group writes ---
    _permissive(
        "create-public-group",
        GROUP,
        ("name", STRING_UTF8),
        ("description", optional(STRING_UTF8)),
        ("deposit-per-member", UINT),
        ("cycle-duration-blocks", UINT),
        ("max-members", UINT),
        ("group-mode", UINT),
        ("enrollment-period-blocks", UINT),
        ("auto-start-when-full", BOOL),
    ),
    _permissive(
        "create-private-group",
        GROUP,
        ("name", STRING_UTF8),
        ("description", optional(STRING_UTF8)),
        ("deposit-per-member", UINT),
        ("cycle-duration-blocks", UINT),
        ("max-members", UINT),
        ("group-mode", UINT),
    ),
    _permissive("join-public-group", GROUP, ("member-name", STRING_UTF8)),
    _write("deposit", GROUP, moves_value=True),
    _write("claim-payout", GROUP, moves_value=True),
    _write("withdraw-savings", GROUP, moves_value=True),
    _permissive("open-withdrawal-window", GROUP),
    _permissive("open-enrollment-period", GROUP, ("enrollment-period-blocks", UINT)),
    _permissive("close-enrollment-and-start", GROUP),
    _permissive(
        "add-member",
        GROUP,
        ("member", PRINCIPAL),
        ("member-name", STRING_UTF8),
        ("payout-position", UINT),
    ),
    _permissive("start-first-cycle", GROUP),
    _permissive("creator-mark-paid", GROUP, ("member", PRINCIPAL), ("cycle", UINT)),
    _permissive("creator-set-status", GROUP, ("status", UINT)),
    _permissive("creator-advance-cycle", GROUP),
    _permissive("propose-mode-change", GROUP, ("new-mode", UINT)),
    _permissive("vote-on-mode-change", GROUP, ("vote-for", BOOL)),
    _permissive("cancel-mode-change", GROUP),
)

FUNCTIONS = MappingProxyType({spec.name: spec for spec in _SPECS})

PUBLIC_GROUP_INDEX_MAP = "public_group_index"


def get_function(name: str) -> FunctionSpec:
    try:
        return FUNCTIONS[name]
    except KeyError:
        raise KeyError(f"unknown contract function: {name}") from None
