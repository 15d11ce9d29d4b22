"""Clarity value wire format.

Consensus serialization used by the chain API: one type-id byte followed by
the payload. Integers are 16-byte big-endian, variable-length payloads carry a
u32 length prefix, tuple keys are written in sorted order.
"""

from __future__ import annotations

from dataclasses import dataclass

from .address import address_from_hash160, parse_address
from .config import I128_MAX, I128_MIN, U128_MAX
from .errors import DecodingError, EncodingError
from .types import (
    BoolCV,
    BufferCV,
    ClarityType,
    ClarityValue,
    ErrCV,
    IntCV,
    ListCV,
    NoneCV,
    OkCV,
    PrincipalCV,
    SomeCV,
    StringAsciiCV,
    StringUtf8CV,
    TupleCV,
    UIntCV,
)


@dataclass
class Writer:
    buf: bytearray

    def write_u8(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(1, "big", signed=False))

    def write_u32(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(4, "big", signed=False))

    def write_u128(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(16, "big", signed=False))

    def write_i128(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(16, "big", signed=True))

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)


@dataclass
class Reader:
    data: bytes
    pos: int = 0

    def _take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise DecodingError(
                f"truncated input: need {size} bytes at offset {self.pos}, have {len(self.data) - self.pos}"
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u32(self) -> int:
        return int.from_bytes(self._take(4), "big", signed=False)

    def read_u128(self) -> int:
        return int.from_bytes(self._take(16), "big", signed=False)

    def read_i128(self) -> int:
        return int.from_bytes(self._take(16), "big", signed=True)

    def read_bytes(self, size: int) -> bytes:
        return self._take(size)

    def at_end(self) -> bool:
        return self.pos == len(self.data)


def _write_name(w: Writer, name: str) -> None:
    try:
        data = name.encode("ascii")
    except UnicodeEncodeError as e:
        raise EncodingError(f"name must be ASCII: {name!r}") from e
    if len(data) > 0xFF:
        raise EncodingError(f"name too long: {name!r}")
    w.write_u8(len(data))
    w.write_bytes(data)


def _write_principal(w: Writer, cv: PrincipalCV) -> None:
    version, hash160 = parse_address(cv.address)
    if cv.contract_name is None:
        w.write_u8(ClarityType.PRINCIPAL_STANDARD)
        w.write_u8(version)
        w.write_bytes(hash160)
        return
    w.write_u8(ClarityType.PRINCIPAL_CONTRACT)
    w.write_u8(version)
    w.write_bytes(hash160)
    _write_name(w, cv.contract_name)


def _write_value(w: Writer, cv: ClarityValue) -> None:
    if isinstance(cv, IntCV):
        if not (I128_MIN <= cv.value <= I128_MAX):
            raise EncodingError(f"int out of range: {cv.value}")
        w.write_u8(ClarityType.INT)
        w.write_i128(cv.value)
    elif isinstance(cv, UIntCV):
        if not (0 <= cv.value <= U128_MAX):
            raise EncodingError(f"uint out of range: {cv.value}")
        w.write_u8(ClarityType.UINT)
        w.write_u128(cv.value)
    elif isinstance(cv, BufferCV):
        w.write_u8(ClarityType.BUFFER)
        w.write_u32(len(cv.value))
        w.write_bytes(cv.value)
    elif isinstance(cv, BoolCV):
        w.write_u8(ClarityType.BOOL_TRUE if cv.value else ClarityType.BOOL_FALSE)
    elif isinstance(cv, PrincipalCV):
        _write_principal(w, cv)
    elif isinstance(cv, OkCV):
        w.write_u8(ClarityType.RESPONSE_OK)
        _write_value(w, cv.value)
    elif isinstance(cv, ErrCV):
        w.write_u8(ClarityType.RESPONSE_ERR)
        _write_value(w, cv.value)
    elif isinstance(cv, NoneCV):
        w.write_u8(ClarityType.OPTIONAL_NONE)
    elif isinstance(cv, SomeCV):
        w.write_u8(ClarityType.OPTIONAL_SOME)
        _write_value(w, cv.value)
    elif isinstance(cv, ListCV):
        w.write_u8(ClarityType.LIST)
        w.write_u32(len(cv.items))
        for item in cv.items:
            _write_value(w, item)
    elif isinstance(cv, TupleCV):
        w.write_u8(ClarityType.TUPLE)
        w.write_u32(len(cv.fields))
        for name in sorted(cv.fields):
            _write_name(w, name)
            _write_value(w, cv.fields[name])
    elif isinstance(cv, StringAsciiCV):
        try:
            data = cv.value.encode("ascii")
        except UnicodeEncodeError as e:
            raise EncodingError(f"string-ascii holds non-ASCII text: {cv.value!r}") from e
        w.write_u8(ClarityType.STRING_ASCII)
        w.write_u32(len(data))
        w.write_bytes(data)
    elif isinstance(cv, StringUtf8CV):
        data = cv.value.encode("utf-8")
        w.write_u8(ClarityType.STRING_UTF8)
        w.write_u32(len(data))
        w.write_bytes(data)
    else:
        raise TypeError(f"not a clarity value: {type(cv).__name__}")


def _read_name(r: Reader) -> str:
    size = r.read_u8()
    try:
        return r.read_bytes(size).decode("ascii")
    except UnicodeDecodeError as e:
        raise DecodingError("name is not ASCII") from e


def _read_text(r: Reader, encoding: str) -> str:
    size = r.read_u32()
    try:
        return r.read_bytes(size).decode(encoding)
    except UnicodeDecodeError as e:
        raise DecodingError(f"string is not valid {encoding}") from e


def _read_principal(r: Reader) -> str:
    version = r.read_u8()
    hash160 = r.read_bytes(20)
    try:
        return address_from_hash160(version, hash160)
    except EncodingError as e:
        raise DecodingError(f"invalid principal: {e.message}") from e


def _read_value(r: Reader) -> ClarityValue:
    type_id = r.read_u8()
    try:
        tag = ClarityType(type_id)
    except ValueError as e:
        raise DecodingError(f"unknown clarity type id 0x{type_id:02x}") from e

    if tag == ClarityType.INT:
        return IntCV(r.read_i128())
    if tag == ClarityType.UINT:
        return UIntCV(r.read_u128())
    if tag == ClarityType.BUFFER:
        return BufferCV(r.read_bytes(r.read_u32()))
    if tag == ClarityType.BOOL_TRUE:
        return BoolCV(True)
    if tag == ClarityType.BOOL_FALSE:
        return BoolCV(False)
    if tag == ClarityType.PRINCIPAL_STANDARD:
        return PrincipalCV(_read_principal(r))
    if tag == ClarityType.PRINCIPAL_CONTRACT:
        address = _read_principal(r)
        return PrincipalCV(address, _read_name(r))
    if tag == ClarityType.RESPONSE_OK:
        return OkCV(_read_value(r))
    if tag == ClarityType.RESPONSE_ERR:
        return ErrCV(_read_value(r))
    if tag == ClarityType.OPTIONAL_NONE:
        return NoneCV()
    if tag == ClarityType.OPTIONAL_SOME:
        return SomeCV(_read_value(r))
    if tag == ClarityType.LIST:
        count = r.read_u32()
        return ListCV(tuple(_read_value(r) for _ in range(count)))
    if tag == ClarityType.TUPLE:
        count = r.read_u32()
        fields = {}
        for _ in range(count):
            name = _read_name(r)
            if name in fields:
                raise DecodingError(f"duplicate tuple field {name!r}")
            fields[name] = _read_value(r)
        return TupleCV(fields)
    if tag == ClarityType.STRING_ASCII:
        return StringAsciiCV(_read_text(r, "ascii"))
    return StringUtf8CV(_read_text(r, "utf-8"))


def serialize(cv: ClarityValue) -> bytes:
    w = Writer(bytearray())
    _write_value(w, cv)
    return bytes(w.buf)


def deserialize(data: bytes) -> ClarityValue:
    r = Reader(bytes(data))
    try:
        cv = _read_value(r)
    except RecursionError as e:
        raise DecodingError("value is nested too deeply") from e
    if not r.at_end():
        raise DecodingError(f"{len(r.data) - r.pos} trailing bytes after value")
    return cv


def to_hex(cv: ClarityValue) -> str:
    return "0x" + serialize(cv).hex()


def from_hex(text: str) -> ClarityValue:
    if not isinstance(text, str):
        raise DecodingError(f"expected hex string, got {type(text).__name__}")
    body = text[2:] if text[:2].lower() == "0x" else text
    try:
        data = bytes.fromhex(body)
    except ValueError as e:
        raise DecodingError(f"invalid hex: {text!r}") from e
    return deserialize(data)
