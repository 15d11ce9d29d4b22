"""HTTP client for the Stacks chain API (Hiro)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Sequence

import aiohttp

from .config import ClientConfig
from .encoding import from_hex, to_hex
from .errors import TransportFailure
from .types import ClarityValue

logger = logging.getLogger(__name__)


class StacksApiClient:
    """Chain query endpoint backed by the Stacks node REST API.

    The network is fixed by the configured base URL.
    """

    def __init__(self, config: ClientConfig, base_url: Optional[str] = None):
        self.config = config
        self.base_url = (base_url or config.resolved_api_url()).rstrip("/")
        self.session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        """Initialize HTTP session."""
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "StacksApiClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise TransportFailure("API client is not connected")
        return self.session

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        try:
            async with self._session().request(method, url, **kwargs) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise TransportFailure(f"{method} {url} returned HTTP {resp.status}", payload=text)
                return json.loads(text)
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportFailure(f"{method} {url} failed: {e}") from e
        except json.JSONDecodeError as e:
            raise TransportFailure(f"{method} {url} returned invalid JSON: {e}") from e

    async def call_read_only(
        self,
        contract_address: str,
        contract_name: str,
        function_name: str,
        args: Sequence[ClarityValue],
        sender: str,
    ) -> ClarityValue:
        url = f"{self.base_url}/v2/contracts/call-read/{contract_address}/{contract_name}/{function_name}"
        body = {"sender": sender, "arguments": [to_hex(arg) for arg in args]}
        logger.debug(f"call-read {contract_name}::{function_name} as {sender}")
        data = await self._request_json("POST", url, json=body)
        if not isinstance(data, dict) or not data.get("okay"):
            cause = data.get("cause") if isinstance(data, dict) else data
            raise TransportFailure(f"{function_name} call-read rejected: {cause}", payload=data)
        return from_hex(data["result"])

    async def get_map_entry(
        self,
        contract_address: str,
        contract_name: str,
        map_name: str,
        key: ClarityValue,
    ) -> ClarityValue:
        url = f"{self.base_url}/v2/map_entry/{contract_address}/{contract_name}/{map_name}"
        data = await self._request_json("POST", url, json=to_hex(key))
        if not isinstance(data, dict) or "data" not in data:
            raise TransportFailure(f"map_entry {map_name} returned no data", payload=data)
        return from_hex(data["data"])

    async def get_block_height(self) -> int:
        data = await self._request_json("GET", f"{self.base_url}/v2/info")
        height = data.get("stacks_tip_height") if isinstance(data, dict) else None
        if not isinstance(height, int) or isinstance(height, bool):
            raise TransportFailure("info response has no stacks_tip_height", payload=data)
        return height
