"""Contract error codes and the error classifier.

The contract aborts with ``(err uNNN)``; wallets, the chain API and the
transport layer each wrap that code differently. `extract_code` digs the code
out of any of those shapes and `ErrorClassifier` maps it onto a user-facing
`ErrorDescriptor`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

from .config import FAUCET_URL
from .errors import ConfigError

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    UNAUTHORIZED = 301
    COMPANY_EXISTS = 302
    COMPANY_NOT_FOUND = 303
    EMPLOYEE_NOT_FOUND = 304
    INSUFFICIENT_FUNDS = 305
    INVALID_AMOUNT = 306
    EMPLOYEE_EXISTS = 307
    NOT_AUTHORIZED = 401
    UNKNOWN = 999


class ErrorAction(Enum):
    RETRY = "retry"
    ADD_FUNDS = "add_funds"
    CHECK_BALANCE = "check_balance"
    CONTACT_CREATOR = "contact_creator"
    BROWSE_GROUPS = "browse_groups"
    VIEW_VOTE = "view_vote"


ACTION_LABELS = MappingProxyType({
    ErrorAction.RETRY: "Try Again",
    ErrorAction.ADD_FUNDS: "Get Faucet",
    ErrorAction.CHECK_BALANCE: "Check Balance",
    ErrorAction.CONTACT_CREATOR: "Contact Creator",
    ErrorAction.BROWSE_GROUPS: "Browse Groups",
    ErrorAction.VIEW_VOTE: "View Vote",
})

# Actions that send the user to the testnet faucet.
ACTION_URLS = MappingProxyType({
    ErrorAction.ADD_FUNDS: FAUCET_URL,
    ErrorAction.CHECK_BALANCE: FAUCET_URL,
})

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class ErrorDescriptor:
    code: int
    short_label: str
    user_message: str
    action: ErrorAction = ErrorAction.RETRY

    @property
    def action_label(self) -> str:
        return ACTION_LABELS[self.action]

    @property
    def action_url(self) -> Optional[str]:
        return ACTION_URLS.get(self.action)

    def render(self, context: Optional[Mapping[str, Any]] = None) -> str:
        """Substitute ``{key}`` placeholders; unknown keys stay verbatim."""
        if not context:
            return self.user_message

        def _sub(match: re.Match) -> str:
            key = match.group(1)
            if key in context:
                return str(context[key])
            return match.group(0)

        return _PLACEHOLDER.sub(_sub, self.user_message)


UNKNOWN_ERROR = ErrorDescriptor(
    ErrorCode.UNKNOWN,
    "Unknown Error",
    "An unexpected blockchain error occurred. Please try again.",
)

_DEFAULT_DESCRIPTORS = (
    ErrorDescriptor(
        ErrorCode.UNAUTHORIZED,
        "Unauthorized",
        "You are not authorized to perform this action. Only the company owner can do this.",
    ),
    ErrorDescriptor(
        ErrorCode.COMPANY_EXISTS,
        "Company Already Exists",
        "A company with this ID already exists on the blockchain.",
    ),
    ErrorDescriptor(
        ErrorCode.COMPANY_NOT_FOUND,
        "Company Not Found",
        "The specified company could not be found on-chain.",
    ),
    ErrorDescriptor(
        ErrorCode.EMPLOYEE_NOT_FOUND,
        "Employee Not Found",
        "The employee record was not found for this company.",
    ),
    ErrorDescriptor(
        ErrorCode.INSUFFICIENT_FUNDS,
        "Insufficient Funds",
        "The company vault has insufficient balance for this payment.",
        ErrorAction.ADD_FUNDS,
    ),
    ErrorDescriptor(
        ErrorCode.INVALID_AMOUNT,
        "Invalid Amount",
        "The amount specified is invalid.",
    ),
    ErrorDescriptor(
        ErrorCode.EMPLOYEE_EXISTS,
        "Employee Already Exists",
        "This employee is already registered under this company.",
    ),
    ErrorDescriptor(
        ErrorCode.NOT_AUTHORIZED,
        "Not Authorized",
        "You do not have permission to access this resource.",
    ),
    UNKNOWN_ERROR,
)


class ErrorTable:
    """Read-only code -> descriptor table."""

    def __init__(self, descriptors):
        entries: Dict[int, ErrorDescriptor] = {}
        for d in descriptors:
            entries[int(d.code)] = d
        if ErrorCode.UNKNOWN not in entries:
            entries[int(ErrorCode.UNKNOWN)] = UNKNOWN_ERROR
        self._entries = MappingProxyType(entries)

    @property
    def entries(self) -> Mapping[int, ErrorDescriptor]:
        return self._entries

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, code: Optional[int]) -> ErrorDescriptor:
        if code is None:
            return self._entries[ErrorCode.UNKNOWN]
        return self._entries.get(code, self._entries[ErrorCode.UNKNOWN])

    def extended(self, descriptors) -> "ErrorTable":
        return ErrorTable(list(self._entries.values()) + list(descriptors))

    @classmethod
    def from_yaml(cls, path: str | Path, base: Optional["ErrorTable"] = None) -> "ErrorTable":
        """Load extra descriptors from YAML, layered over `base`.

        Format: a mapping of code -> {label, message, action?}.
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot load error table {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"error table {path} must be a mapping")

        descriptors = []
        for code, entry in data.items():
            try:
                descriptors.append(
                    ErrorDescriptor(
                        int(code),
                        str(entry["label"]),
                        str(entry["message"]),
                        ErrorAction(entry.get("action", ErrorAction.RETRY.value)),
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise ConfigError(f"invalid error table entry {code!r}: {e}") from e
        return (base or DEFAULT_ERROR_TABLE).extended(descriptors)


DEFAULT_ERROR_TABLE = ErrorTable(_DEFAULT_DESCRIPTORS)


# --- Code extraction ---

_CODE_PATTERN = re.compile(r"(?<![A-Za-z0-9])u(\d+)")


def _code_in(text: Any) -> Optional[int]:
    if not isinstance(text, str):
        return None
    match = _CODE_PATTERN.search(text)
    if match is None:
        return None
    return int(match.group(1))


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def extract_code(raw: Any) -> Optional[int]:
    """Find a contract error code in a failure payload.

    Tried in order, first hit wins: nested ``error.error`` string, top-level
    ``error`` string, ``message`` string (or the exception text), bare
    integer, plain string.
    """
    error = _field(raw, "error")
    code = _code_in(_field(error, "error"))
    if code is not None:
        return code
    code = _code_in(error)
    if code is not None:
        return code

    message = _field(raw, "message")
    if message is None and isinstance(raw, BaseException):
        message = str(raw)
    code = _code_in(message)
    if code is not None:
        return code

    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    return _code_in(raw)


class ErrorClassifier:
    def __init__(self, table: ErrorTable = DEFAULT_ERROR_TABLE):
        self.table = table

    def classify(self, raw: Any, context: Optional[Mapping[str, Any]] = None) -> ErrorDescriptor:
        """Map any failure payload onto a descriptor. Never raises.

        With `context`, the returned descriptor carries the rendered message.
        """
        try:
            code = extract_code(raw)
        except Exception as e:
            logger.warning(f"Error code extraction failed: {e}")
            code = None
        descriptor = self.table.lookup(code)
        logger.debug(f"Classified failure as {descriptor.code} ({descriptor.short_label})")
        if context:
            descriptor = replace(descriptor, user_message=descriptor.render(context))
        return descriptor

    def describe(self, raw: Any, context: Optional[Mapping[str, Any]] = None) -> str:
        """Classify and render the user message in one step."""
        return self.classify(raw, context).user_message
