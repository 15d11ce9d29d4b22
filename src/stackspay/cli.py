#!/usr/bin/env python3
"""
StacksPay developer CLI

Read-only contract queries, chain height, hex decoding and error
classification against a configured deployment.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

from .api_client import StacksApiClient
from .codec import ShapeKind, decode
from .config import NETWORKS, ClientConfig
from .contract.functions import FUNCTIONS, get_function
from .contract.reads import ContractReader
from .encoding import from_hex
from .error_codes import ErrorClassifier, ErrorTable
from .errors import ClientError
from .gateway import ReadGateway
from .normalize import normalize
from .storage import JsonFileStore, remember_network, resolve_network
from .types import Err, Ok

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = "~/.stackspay/store.json"
STORE_KEY = "stackspay.store"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _parse_arg(text: str, kind: ShapeKind) -> Any:
    """Turn a command-line string into the Python value a parameter expects."""
    if kind in (ShapeKind.UINT, ShapeKind.INT):
        try:
            return int(text)
        except ValueError:
            raise click.BadParameter(f"expected an integer, got {text!r}") from None
    if kind == ShapeKind.BOOL:
        lowered = text.lower()
        if lowered not in ("true", "false"):
            raise click.BadParameter(f"expected true/false, got {text!r}")
        return lowered == "true"
    if kind == ShapeKind.OPTIONAL:
        return None if text == "none" else text
    return text


def _tagged(value: Any) -> Any:
    if isinstance(value, Ok):
        return {"ok": _tagged(value.value)}
    if isinstance(value, Err):
        return {"err": _tagged(value.value)}
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, list):
        return [_tagged(item) for item in value]
    if isinstance(value, dict):
        return {key: _tagged(item) for key, item in value.items()}
    return value


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(value, indent=2, sort_keys=True, default=str))


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True), help="YAML config file")
@click.option("--network", type=click.Choice(list(NETWORKS)), help="Override network")
@click.option("--api-url", help="Override chain API base URL")
@click.option(
    "--store",
    "store_path",
    envvar="STACKSPAY_STORE",
    default=DEFAULT_STORE_PATH,
    show_default=True,
    help="Local preferences file",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    network: Optional[str],
    api_url: Optional[str],
    store_path: str,
    verbose: bool,
) -> None:
    """StacksPay contract client."""
    _configure_logging(verbose)
    try:
        config = ClientConfig.from_yaml(config_path) if config_path else ClientConfig.from_env()
    except ClientError as e:
        raise click.ClickException(str(e)) from e
    store = JsonFileStore(Path(store_path).expanduser())
    ctx.meta[STORE_KEY] = store
    if network:
        config.network = network
    elif not config_path:
        config.network = resolve_network(store)
    if api_url:
        config.api_url = api_url
    ctx.obj = config


@main.command()
@click.argument("function_name")
@click.argument("args", nargs=-1)
@click.option("--sender", help="Acting identity for the read")
@click.pass_obj
def read(config: ClientConfig, function_name: str, args: tuple, sender: Optional[str]) -> None:
    """Call a read-only contract FUNCTION_NAME with ARGS."""
    try:
        spec = get_function(function_name)
    except KeyError:
        names = ", ".join(sorted(n for n, s in FUNCTIONS.items() if s.read_only))
        raise click.ClickException(f"unknown function {function_name}; read-only functions: {names}")
    if not spec.read_only:
        raise click.ClickException(f"{function_name} is not read-only")
    if len(args) != len(spec.params):
        raise click.ClickException(
            f"{function_name} takes {len(spec.params)} arguments: {', '.join(spec.param_names)}"
        )
    values = [_parse_arg(text, shape.kind) for text, (_, shape) in zip(args, spec.params)]

    async def _run() -> Any:
        async with StacksApiClient(config) as client:
            reader = ContractReader(ReadGateway(client, config.contract_address, config.contract_name))
            return await reader.read(function_name, *values, sender=sender)

    try:
        result = asyncio.run(_run())
    except ClientError as e:
        raise click.ClickException(str(e)) from e
    if result is None:
        logger.error(f"{function_name} returned no data")
        sys.exit(1)
    _echo_json(result)


@main.command()
@click.pass_obj
def height(config: ClientConfig) -> None:
    """Print the current chain tip height."""

    async def _run() -> int:
        async with StacksApiClient(config) as client:
            return await client.get_block_height()

    try:
        click.echo(asyncio.run(_run()))
    except ClientError as e:
        raise click.ClickException(str(e)) from e


@main.command("network")
@click.argument("name", required=False, type=click.Choice(list(NETWORKS)))
@click.pass_context
def network_cmd(ctx: click.Context, name: Optional[str]) -> None:
    """Show the active network, or remember NAME as the default."""
    if name is None:
        click.echo(ctx.obj.network)
        return
    remember_network(ctx.meta[STORE_KEY], name)
    click.echo(name)


@main.command("decode")
@click.argument("hex_value")
@click.option("--raw", is_flag=True, help="Keep field names and ok/err tags")
def decode_cmd(hex_value: str, raw: bool) -> None:
    """Decode a serialized Clarity value."""
    try:
        cv = from_hex(hex_value)
    except ClientError as e:
        raise click.ClickException(str(e)) from e
    value = decode(cv)
    _echo_json(_tagged(value) if raw else normalize(value))


@main.command()
@click.argument("raw")
@click.option("--table", "table_path", type=click.Path(exists=True), help="Extra error codes (YAML)")
@click.option("--context", "context_pairs", multiple=True, help="Placeholder KEY=VALUE")
def classify(raw: str, table_path: Optional[str], context_pairs: tuple) -> None:
    """Classify a failure message or JSON payload into a user-facing error."""
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError:
        payload = raw
    context = {}
    for pair in context_pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}")
        context[key] = value
    try:
        table = ErrorTable.from_yaml(table_path) if table_path else None
    except ClientError as e:
        raise click.ClickException(str(e)) from e
    classifier = ErrorClassifier(table) if table is not None else ErrorClassifier()
    descriptor = classifier.classify(payload, context)
    _echo_json({
        "code": int(descriptor.code),
        "label": descriptor.short_label,
        "message": descriptor.user_message,
        "action": descriptor.action_label,
        "action_url": descriptor.action_url,
    })


if __name__ == "__main__":
    main()
