"""StacksPay client error kinds and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional


class ErrorKind(Enum):
    ENCODING = "encoding"
    DECODING = "decoding"
    TRANSPORT = "transport"
    CONTRACT_REJECTION = "contract_rejection"
    GUARD_ABORT = "guard_abort"
    CONFIG = "config"


@dataclass(frozen=True)
class ClientError(Exception):
    message: str

    kind: ClassVar[ErrorKind]

    def __str__(self) -> str:
        return f"{self.kind.name}: {self.message}"


@dataclass(frozen=True)
class EncodingError(ClientError):
    """A value does not fit the parameter shape it was offered for."""

    kind: ClassVar[ErrorKind] = ErrorKind.ENCODING


@dataclass(frozen=True)
class DecodingError(ClientError):
    """Bytes or hex received from the chain are not a valid typed value."""

    kind: ClassVar[ErrorKind] = ErrorKind.DECODING


@dataclass(frozen=True)
class TransportFailure(ClientError):
    kind: ClassVar[ErrorKind] = ErrorKind.TRANSPORT

    payload: Optional[Any] = None


@dataclass(frozen=True)
class ContractRejection(ClientError):
    kind: ClassVar[ErrorKind] = ErrorKind.CONTRACT_REJECTION

    code: int = 999
    descriptor: Optional[Any] = None

    def __str__(self) -> str:
        return f"{self.kind.name}(u{self.code}): {self.message}"


@dataclass(frozen=True)
class GuardAbort(ClientError):
    """Submission refused before reaching the wallet."""

    kind: ClassVar[ErrorKind] = ErrorKind.GUARD_ABORT

    reason: str = ""

    def __str__(self) -> str:
        return f"{self.kind.name}[{self.reason}]: {self.message}"


@dataclass(frozen=True)
class ConfigError(ClientError):
    kind: ClassVar[ErrorKind] = ErrorKind.CONFIG


# Frozen dataclass exceptions must still let Python set traceback/context
# attributes when raised or chained.
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__", "__notes__"))


def _allow_exception_attrs(cls: type) -> None:
    frozen_setattr = cls.__setattr__

    def _setattr(self, name, value):  # type: ignore[no-untyped-def]
        if name in _EXCEPTION_ATTRS:
            object.__setattr__(self, name, value)
        else:
            frozen_setattr(self, name, value)

    cls.__setattr__ = _setattr  # type: ignore[method-assign]


for _cls in (
    ClientError,
    EncodingError,
    DecodingError,
    TransportFailure,
    ContractRejection,
    GuardAbort,
    ConfigError,
):
    _allow_exception_attrs(_cls)
