"""c32check principal addresses.

Stacks addresses are ``S`` + the c32 version character + the c32 encoding of
``hash160 || checksum``, where the checksum is the first four bytes of a
double SHA-256 over ``version || hash160``.
"""

from __future__ import annotations

import hashlib
from typing import Optional, Tuple

from .config import ADDRESS_VERSIONS, MAX_CONTRACT_NAME_LENGTH
from .errors import EncodingError

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_C32_INDEX = {ch: i for i, ch in enumerate(C32_ALPHABET)}
_C32_ALIASES = {"O": "0", "L": "1", "I": "1"}

HASH160_LENGTH = 20
CHECKSUM_LENGTH = 4


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:CHECKSUM_LENGTH]


def _normalize(text: str) -> str:
    upper = text.upper()
    return "".join(_C32_ALIASES.get(ch, ch) for ch in upper)


def c32_encode(data: bytes) -> str:
    """Encode bytes as c32, keeping one ``0`` per leading zero byte."""
    data = bytes(data)
    leading = len(data) - len(data.lstrip(b"\x00"))
    num = int.from_bytes(data, "big")
    chars = []
    while num > 0:
        num, rem = divmod(num, 32)
        chars.append(C32_ALPHABET[rem])
    return "0" * leading + "".join(reversed(chars))


def c32_decode(text: str) -> bytes:
    text = _normalize(text)
    num = 0
    for ch in text:
        if ch not in _C32_INDEX:
            raise EncodingError(f"invalid c32 character {ch!r}")
        num = num * 32 + _C32_INDEX[ch]
    leading = len(text) - len(text.lstrip("0"))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * leading + body


def c32check_encode(version: int, data: bytes) -> str:
    if not (0 <= version < 32):
        raise EncodingError(f"c32check version out of range: {version}")
    data = bytes(data)
    return C32_ALPHABET[version] + c32_encode(data + _checksum(bytes([version]) + data))


def c32check_decode(text: str) -> Tuple[int, bytes]:
    text = _normalize(text)
    if len(text) < 2:
        raise EncodingError("c32check string too short")
    if text[0] not in _C32_INDEX:
        raise EncodingError(f"invalid c32 version character {text[0]!r}")
    version = _C32_INDEX[text[0]]
    raw = c32_decode(text[1:])
    if len(raw) < CHECKSUM_LENGTH:
        raise EncodingError("c32check payload too short")
    data, checksum = raw[:-CHECKSUM_LENGTH], raw[-CHECKSUM_LENGTH:]
    if _checksum(bytes([version]) + data) != checksum:
        raise EncodingError("c32check checksum mismatch")
    return version, data


def address_from_hash160(version: int, hash160: bytes) -> str:
    if len(hash160) != HASH160_LENGTH:
        raise EncodingError(f"hash160 must be {HASH160_LENGTH} bytes")
    if version not in ADDRESS_VERSIONS:
        raise EncodingError(f"unsupported address version {version}")
    return "S" + c32check_encode(version, hash160)


def parse_address(address: str) -> Tuple[int, bytes]:
    """Return ``(version, hash160)`` for a standard principal address."""
    if not isinstance(address, str) or len(address) < 5 or address[0] != "S":
        raise EncodingError(f"invalid address {address!r}")
    version, hash160 = c32check_decode(address[1:])
    if version not in ADDRESS_VERSIONS:
        raise EncodingError(f"unsupported address version {version}")
    if len(hash160) != HASH160_LENGTH:
        raise EncodingError(f"address {address!r} does not hold a 20-byte hash")
    return version, hash160


def _check_contract_name(name: str) -> None:
    if not name or len(name) > MAX_CONTRACT_NAME_LENGTH:
        raise EncodingError(f"invalid contract name {name!r}")
    if not (name[0].isascii() and name[0].isalpha()):
        raise EncodingError(f"contract name must start with a letter: {name!r}")
    for ch in name:
        if not (ch.isascii() and (ch.isalnum() or ch in "-_")):
            raise EncodingError(f"invalid character {ch!r} in contract name")


def parse_principal(text: str) -> Tuple[str, Optional[str]]:
    """Split ``ADDR`` or ``ADDR.contract-name`` and validate both parts."""
    if not isinstance(text, str):
        raise EncodingError(f"principal must be a string, got {type(text).__name__}")
    address, sep, name = text.partition(".")
    parse_address(address)
    if not sep:
        return address, None
    _check_contract_name(name)
    return address, name


def is_valid_principal(text: object) -> bool:
    try:
        parse_principal(text)  # type: ignore[arg-type]
    except EncodingError:
        return False
    return True
