"""Response normalization.

Chain responses arrive with hyphenated field names, nested optional/response
wrappers and missing fields. `normalize` flattens any of those into plain data
with snake_case keys; `normalize_record` additionally applies a record schema
so every expected field is present with a type-appropriate default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .codec import decode
from .types import CLARITY_VALUE_TYPES, Err, Ok

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def canonical_field(raw: str) -> str:
    """Fold ``deposit-per-member`` / ``depositPerMember`` / ``deposit_per_member``
    onto ``deposit_per_member``."""
    return _CAMEL_BOUNDARY.sub("_", raw).replace("-", "_").lower()


def normalize(value: Any) -> Any:
    """Flatten a Clarity value or decoded value into plain data.

    Total and idempotent: ``normalize(normalize(x)) == normalize(x)``.
    """
    if isinstance(value, CLARITY_VALUE_TYPES):
        value = decode(value)
    if isinstance(value, (Ok, Err)):
        return normalize(value.value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Mapping):
        return {canonical_field(str(key)): normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    return value


@dataclass(frozen=True)
class Field:
    name: str
    default: Any = None
    aliases: Tuple[str, ...] = ()


def normalize_record(value: Any, fields: Tuple[Field, ...]) -> Optional[Dict[str, Any]]:
    """Normalize a record and fill schema fields that are absent or null.

    Returns None when the record itself is absent. Fields outside the schema
    are kept as they are.
    """
    flat = normalize(value)
    if flat is None:
        return None
    if not isinstance(flat, dict):
        return flat
    for f in fields:
        if flat.get(f.name) is not None:
            continue
        for alias in f.aliases:
            aliased = flat.get(canonical_field(alias))
            if aliased is not None:
                flat[f.name] = aliased
                break
        else:
            flat[f.name] = f.default
    return flat


def _amounts(*names: str) -> Tuple[Field, ...]:
    return tuple(Field(name, 0) for name in names)


def _flags(*names: str) -> Tuple[Field, ...]:
    return tuple(Field(name, False) for name in names)


def _optionals(*names: str) -> Tuple[Field, ...]:
    return tuple(Field(name, None) for name in names)


# --- Record schemas ---

COMPANY = (
    _optionals("name", "owner", "description")
    + _amounts("total_balance", "active_employees_count", "total_paid_out", "pay_frequency", "pay_day")
    + _flags("is_active")
)

COMPANY_STATS = _amounts(
    "total_balance",
    "active_employees_count",
    "total_paid_out",
    "total_employees",
    "current_period",
)

EMPLOYEE = (
    _optionals("name", "address")
    + _amounts("salary_per_period", "total_claimed", "joined_at")
    + _flags("is_active")
)

EMPLOYEE_STATS = (
    Field("total_earned", 0, aliases=("total_salary_earned",)),
    Field("total_claimed", 0),
    Field("current_advance_debt", 0),
    Field("periods_claimed", 0),
    Field("total_bonuses", 0),
)

PERIOD = (
    Field("period_number", 0, aliases=("current_period", "period")),
    Field("start_block", 0),
    Field("end_block", 0),
)

CLAIM = (
    Field("amount", 0),
    Field("claimed_at", 0),
)

GROUP = (
    _optionals("creator", "name", "description", "pending_mode_change")
    + _amounts(
        "deposit_per_member",
        "cycle_duration_blocks",
        "max_members",
        "members_count",
        "current_cycle",
        "cycle_start_block",
        "status",
        "total_pool_balance",
        "created_at",
        "mode_change_votes_for",
        "mode_change_votes_against",
        "enrollment_period_blocks",
        "enrollment_end_block",
    )
    + (Field("group_mode", 1), Field("group_type", 1))
    + _flags("auto_start_when_full", "is_public_listed")
)

MEMBER = (
    _optionals("member_name")
    + _amounts("payout_position", "joined_at", "total_contributed")
    + _flags("has_received_payout", "has_withdrawn", "voted_on_mode_change", "vote_for_mode_change")
)

CONTRIBUTION = _amounts("amount", "paid_at_block") + _flags("is_paid")

MODE_CHANGE = (
    _optionals("pending_mode")
    + _amounts("votes_for", "votes_against", "total_members")
    + _flags("all_voted", "approved")
)

VOTE_STATUS = _flags("has_voted", "vote")
