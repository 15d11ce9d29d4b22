"""Typed value codec.

Maps application values onto Clarity values for a declared parameter shape
(`encode`) and Clarity values back onto plain Python data (`decode`).
Decoding keeps the response discriminator as `Ok` / `Err` wrappers;
`discard_outcome` strips it for callers that only want the payload.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from .address import parse_principal
from .config import I128_MAX, I128_MIN, U128_MAX
from .errors import EncodingError
from .types import (
    BoolCV,
    BufferCV,
    ClarityValue,
    Err,
    ErrCV,
    IntCV,
    ListCV,
    NoneCV,
    Ok,
    OkCV,
    PrincipalCV,
    SomeCV,
    StringAsciiCV,
    StringUtf8CV,
    TupleCV,
    UIntCV,
)


class ShapeKind(Enum):
    INT = "int"
    UINT = "uint"
    BOOL = "bool"
    STRING_ASCII = "string-ascii"
    STRING_UTF8 = "string-utf8"
    PRINCIPAL = "principal"
    BUFFER = "buffer"
    OPTIONAL = "optional"
    LIST = "list"
    TUPLE = "tuple"
    RESPONSE = "response"


@dataclass(frozen=True)
class Shape:
    kind: ShapeKind
    inner: Optional["Shape"] = None
    err: Optional["Shape"] = None
    fields: Tuple[Tuple[str, "Shape"], ...] = field(default=())

    def __str__(self) -> str:
        if self.kind == ShapeKind.OPTIONAL:
            return f"(optional {self.inner})"
        if self.kind == ShapeKind.LIST:
            return f"(list {self.inner})"
        if self.kind == ShapeKind.RESPONSE:
            return f"(response {self.inner} {self.err})"
        if self.kind == ShapeKind.TUPLE:
            body = " ".join(f"({name} {shape})" for name, shape in self.fields)
            return f"(tuple {body})"
        return self.kind.value


INT = Shape(ShapeKind.INT)
UINT = Shape(ShapeKind.UINT)
BOOL = Shape(ShapeKind.BOOL)
STRING_ASCII = Shape(ShapeKind.STRING_ASCII)
STRING_UTF8 = Shape(ShapeKind.STRING_UTF8)
PRINCIPAL = Shape(ShapeKind.PRINCIPAL)
BUFFER = Shape(ShapeKind.BUFFER)


def optional(inner: Shape) -> Shape:
    return Shape(ShapeKind.OPTIONAL, inner=inner)


def list_of(inner: Shape) -> Shape:
    return Shape(ShapeKind.LIST, inner=inner)


def tuple_of(fields: Mapping[str, Shape]) -> Shape:
    return Shape(ShapeKind.TUPLE, fields=tuple(sorted(fields.items())))


def response(ok: Shape, err: Shape) -> Shape:
    return Shape(ShapeKind.RESPONSE, inner=ok, err=err)


# --- Encoding ---


def _as_integer(value: Any, shape: Shape) -> int:
    if isinstance(value, bool):
        raise EncodingError(f"{shape} expects a number, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodingError(f"{shape} cannot hold non-finite {value}")
        if not value.is_integer():
            raise EncodingError(f"{shape} cannot hold fractional {value}")
        return int(value)
    raise EncodingError(f"{shape} expects a number, got {type(value).__name__}")


def _expect_str(value: Any, shape: Shape) -> str:
    if not isinstance(value, str):
        raise EncodingError(f"{shape} expects text, got {type(value).__name__}")
    return value


def encode(value: Any, shape: Shape) -> ClarityValue:
    """Encode `value` for a parameter of the given shape.

    Raises EncodingError when the value does not fit; nothing is coerced
    silently (no bool-as-int, no truncated floats, no clamping).
    """
    kind = shape.kind
    if kind == ShapeKind.UINT:
        n = _as_integer(value, shape)
        if n < 0:
            raise EncodingError(f"uint cannot be negative: {n}")
        if n > U128_MAX:
            raise EncodingError(f"uint out of range: {n}")
        return UIntCV(n)
    if kind == ShapeKind.INT:
        n = _as_integer(value, shape)
        if not (I128_MIN <= n <= I128_MAX):
            raise EncodingError(f"int out of range: {n}")
        return IntCV(n)
    if kind == ShapeKind.BOOL:
        if not isinstance(value, bool):
            raise EncodingError(f"bool expects True/False, got {type(value).__name__}")
        return BoolCV(value)
    if kind == ShapeKind.STRING_ASCII:
        text = _expect_str(value, shape)
        if not text.isascii():
            raise EncodingError(f"string-ascii holds non-ASCII text: {text!r}")
        return StringAsciiCV(text)
    if kind == ShapeKind.STRING_UTF8:
        return StringUtf8CV(_expect_str(value, shape))
    if kind == ShapeKind.PRINCIPAL:
        address, contract_name = parse_principal(_expect_str(value, shape))
        return PrincipalCV(address, contract_name)
    if kind == ShapeKind.BUFFER:
        if not isinstance(value, (bytes, bytearray)):
            raise EncodingError(f"buffer expects bytes, got {type(value).__name__}")
        return BufferCV(bytes(value))
    if kind == ShapeKind.OPTIONAL:
        if value is None:
            return NoneCV()
        return SomeCV(encode(value, shape.inner))
    if kind == ShapeKind.LIST:
        if isinstance(value, (str, bytes, bytearray, Mapping)) or not hasattr(value, "__iter__"):
            raise EncodingError(f"list expects a sequence, got {type(value).__name__}")
        return ListCV(tuple(encode(item, shape.inner) for item in value))
    if kind == ShapeKind.TUPLE:
        return _encode_tuple(value, shape)
    if kind == ShapeKind.RESPONSE:
        if isinstance(value, Ok):
            return OkCV(encode(value.value, shape.inner))
        if isinstance(value, Err):
            return ErrCV(encode(value.value, shape.err))
        raise EncodingError(f"response expects Ok(...) or Err(...), got {type(value).__name__}")
    raise TypeError(f"unknown shape kind: {kind}")


def _encode_tuple(value: Any, shape: Shape) -> TupleCV:
    if not isinstance(value, Mapping):
        raise EncodingError(f"tuple expects a mapping, got {type(value).__name__}")
    expected = {name for name, _ in shape.fields}
    missing = expected - set(value)
    if missing:
        raise EncodingError(f"tuple missing fields: {', '.join(sorted(missing))}")
    extra = set(value) - expected
    if extra:
        raise EncodingError(f"tuple has unexpected fields: {', '.join(sorted(map(str, extra)))}")
    return TupleCV({name: encode(value[name], field_shape) for name, field_shape in shape.fields})


# --- Decoding ---


def decode(cv: ClarityValue) -> Any:
    """Decode a Clarity value into plain data.

    ``none`` becomes ``None``; ``(ok x)`` / ``(err x)`` become ``Ok(x)`` /
    ``Err(x)``; lists and tuples decode recursively.
    """
    if isinstance(cv, (IntCV, UIntCV, BoolCV, StringAsciiCV, StringUtf8CV, BufferCV)):
        return cv.value
    if isinstance(cv, PrincipalCV):
        return str(cv)
    if isinstance(cv, NoneCV):
        return None
    if isinstance(cv, SomeCV):
        return decode(cv.value)
    if isinstance(cv, OkCV):
        return Ok(decode(cv.value))
    if isinstance(cv, ErrCV):
        return Err(decode(cv.value))
    if isinstance(cv, ListCV):
        return [decode(item) for item in cv.items]
    if isinstance(cv, TupleCV):
        return {name: decode(value) for name, value in cv.fields.items()}
    raise TypeError(f"not a clarity value: {type(cv).__name__}")


def discard_outcome(value: Any) -> Any:
    """Strip every Ok/Err wrapper, keeping only payloads."""
    if isinstance(value, (Ok, Err)):
        return discard_outcome(value.value)
    if isinstance(value, list):
        return [discard_outcome(item) for item in value]
    if isinstance(value, dict):
        return {key: discard_outcome(item) for key, item in value.items()}
    return value
