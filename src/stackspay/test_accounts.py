"""Deterministic testnet principals for tests and local experiments."""

from __future__ import annotations

from .address import address_from_hash160
from .config import ADDRESS_VERSION_TESTNET_SINGLESIG


def make_address(seed: int) -> str:
    """Testnet single-sig address whose hash160 is `seed` repeated."""
    return address_from_hash160(ADDRESS_VERSION_TESTNET_SINGLESIG, bytes([seed]) * 20)


# Named constants
OWNER = make_address(1)
ALICE = make_address(2)
BOB = make_address(3)
CAROL = make_address(4)

CONTRACT_ADDRESS = make_address(9)
CONTRACT_NAME = "stackspay"
CONTRACT_ID = f"{CONTRACT_ADDRESS}.{CONTRACT_NAME}"
