"""Core types for the StacksPay client.

Typed chain values (the Clarity value union), the decoded `Ok`/`Err`
wrappers, transaction guards, call plans and transaction outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple, Union


class ClarityType(IntEnum):
    INT = 0x00
    UINT = 0x01
    BUFFER = 0x02
    BOOL_TRUE = 0x03
    BOOL_FALSE = 0x04
    PRINCIPAL_STANDARD = 0x05
    PRINCIPAL_CONTRACT = 0x06
    RESPONSE_OK = 0x07
    RESPONSE_ERR = 0x08
    OPTIONAL_NONE = 0x09
    OPTIONAL_SOME = 0x0A
    LIST = 0x0B
    TUPLE = 0x0C
    STRING_ASCII = 0x0D
    STRING_UTF8 = 0x0E


# --- Clarity values ---


@dataclass(frozen=True)
class IntCV:
    value: int


@dataclass(frozen=True)
class UIntCV:
    value: int


@dataclass(frozen=True)
class BoolCV:
    value: bool


@dataclass(frozen=True)
class BufferCV:
    value: bytes


@dataclass(frozen=True)
class StringAsciiCV:
    value: str


@dataclass(frozen=True)
class StringUtf8CV:
    value: str


@dataclass(frozen=True)
class PrincipalCV:
    address: str
    contract_name: Optional[str] = None

    def __str__(self) -> str:
        if self.contract_name is None:
            return self.address
        return f"{self.address}.{self.contract_name}"


@dataclass(frozen=True)
class NoneCV:
    pass


@dataclass(frozen=True)
class SomeCV:
    value: "ClarityValue"


@dataclass(frozen=True)
class OkCV:
    value: "ClarityValue"


@dataclass(frozen=True)
class ErrCV:
    value: "ClarityValue"


@dataclass(frozen=True)
class ListCV:
    items: Tuple["ClarityValue", ...] = ()


@dataclass(frozen=True, eq=False)
class TupleCV:
    fields: Dict[str, "ClarityValue"] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TupleCV):
            return NotImplemented
        return self.fields == other.fields

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.fields.items(), key=lambda kv: kv[0])))


ClarityValue = Union[
    IntCV,
    UIntCV,
    BoolCV,
    BufferCV,
    StringAsciiCV,
    StringUtf8CV,
    PrincipalCV,
    NoneCV,
    SomeCV,
    OkCV,
    ErrCV,
    ListCV,
    TupleCV,
]

CLARITY_VALUE_TYPES = (
    IntCV,
    UIntCV,
    BoolCV,
    BufferCV,
    StringAsciiCV,
    StringUtf8CV,
    PrincipalCV,
    NoneCV,
    SomeCV,
    OkCV,
    ErrCV,
    ListCV,
    TupleCV,
)


# --- Decoded response wrappers ---


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    value: Any


# --- Guards and call plans ---


class Comparator(Enum):
    AT_MOST = "at_most"
    EXACTLY = "exactly"


class GuardMode(Enum):
    DENY_UNLISTED = "deny"
    ALLOW_ALL = "allow"


NATIVE_TOKEN = "STX"


@dataclass(frozen=True)
class GuardSpec:
    principal: str
    comparator: Comparator
    amount: int
    asset: str = NATIVE_TOKEN

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("guard amount must be non-negative")


@dataclass(frozen=True)
class CallPlan:
    contract_address: str
    contract_name: str
    function_name: str
    args: Tuple[ClarityValue, ...] = ()
    guards: Tuple[GuardSpec, ...] = ()
    guard_mode: GuardMode = GuardMode.DENY_UNLISTED

    @property
    def contract_id(self) -> str:
        return f"{self.contract_address}.{self.contract_name}"


# --- Contract enums ---


class GroupMode(IntEnum):
    TRADITIONAL_ROSCA = 1
    COLLECTIVE_SAVINGS = 2
    INTEREST_BEARING = 3


class GroupType(IntEnum):
    PRIVATE = 1
    PUBLIC = 2


class GroupStatus(IntEnum):
    ENROLLMENT = 0
    ACTIVE = 1
    COMPLETED = 2
    PAUSED = 3
    WITHDRAWAL_OPEN = 4


# --- Outcomes ---


class OutcomeKind(Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class TxOutcome:
    kind: OutcomeKind
    tx_id: Optional[str] = None
    error: Optional[BaseException] = None
    descriptor: Optional[Any] = None

    @classmethod
    def success(cls, tx_id: str) -> "TxOutcome":
        return cls(OutcomeKind.SUCCESS, tx_id=tx_id)

    @classmethod
    def cancelled(cls) -> "TxOutcome":
        return cls(OutcomeKind.CANCELLED)

    @classmethod
    def failed(cls, error: BaseException, descriptor: Optional[Any] = None) -> "TxOutcome":
        return cls(OutcomeKind.FAILED, error=error, descriptor=descriptor)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


Decoded = Union[None, int, bool, str, bytes, List[Any], Dict[str, Any], Ok, Err]
