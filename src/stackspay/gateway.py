"""Read gateway: side-effect-free contract queries.

Every read returns plain data or None. Transport errors, undecodable
responses and ``(err ...)`` results are logged and reported as None, which
callers treat as "unknown", never as zero.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional, Protocol, Sequence

from .codec import decode
from .normalize import normalize
from .types import ClarityValue, Err

logger = logging.getLogger(__name__)


class ChainQueryEndpoint(Protocol):
    async def call_read_only(
        self,
        contract_address: str,
        contract_name: str,
        function_name: str,
        args: Sequence[ClarityValue],
        sender: str,
    ) -> ClarityValue: ...


class BlockHeightLookup(Protocol):
    async def get_block_height(self) -> int: ...


class ReadGateway:
    def __init__(
        self,
        endpoint: ChainQueryEndpoint,
        contract_address: str,
        contract_name: str,
        identity: Optional[str] = None,
    ):
        self.endpoint = endpoint
        self.contract_address = contract_address
        self.contract_name = contract_name
        self.identity = identity

    def sender_for(self, sender: Optional[str] = None) -> str:
        """Acting identity: explicit sender, else the wallet, else the contract itself."""
        return sender or self.identity or self.contract_address

    async def query_raw(
        self,
        function_name: str,
        args: Sequence[ClarityValue] = (),
        sender: Optional[str] = None,
    ) -> Any:
        """Decoded result with the Ok/Err discriminator intact, or None on failure."""
        try:
            cv = await self.endpoint.call_read_only(
                self.contract_address,
                self.contract_name,
                function_name,
                list(args),
                self.sender_for(sender),
            )
            return decode(cv)
        except Exception as e:
            logger.error(f"Read {function_name} failed: {e}")
            return None

    async def query(
        self,
        function_name: str,
        args: Sequence[ClarityValue] = (),
        sender: Optional[str] = None,
    ) -> Any:
        result = await self.query_raw(function_name, args, sender)
        if isinstance(result, Err):
            logger.warning(f"Read {function_name} returned err {result.value!r}")
            return None
        return normalize(result)

    async def query_many(self, *calls: Awaitable[Any]) -> list:
        """Run unrelated reads concurrently; results keep argument order."""
        return list(await asyncio.gather(*calls))

    async def map_entry(self, map_name: str, key: ClarityValue) -> Any:
        lookup = getattr(self.endpoint, "get_map_entry", None)
        if lookup is None:
            logger.error(f"Endpoint cannot read map {map_name}")
            return None
        try:
            cv = await lookup(self.contract_address, self.contract_name, map_name, key)
            return normalize(cv)
        except Exception as e:
            logger.error(f"Map entry {map_name} read failed: {e}")
            return None

    async def block_height(self) -> Optional[int]:
        lookup = getattr(self.endpoint, "get_block_height", None)
        if lookup is None:
            return None
        try:
            return await lookup()
        except Exception as e:
            logger.warning(f"Block height lookup failed: {e}")
            return None
