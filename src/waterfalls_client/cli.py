"""
Command-line interface for querying a Waterfalls server.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Annotated, TypeVar

import typer
from embit.transaction import Transaction
from loguru import logger
from pydantic import ValidationError

from waterfalls_client.blocking import BlockingClient
from waterfalls_client.config import ClientConfig
from waterfalls_client.constants import DEFAULT_MAX_RETRIES
from waterfalls_client.decoding import decode_consensus, decode_hex_bytes
from waterfalls_client.errors import WaterfallsError

T = TypeVar("T")

app = typer.Typer(
    name="waterfalls-client",
    help="Query a Waterfalls blockchain index server",
    add_completion=False,
)


def setup_logging(level: str) -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def build_client(config: ClientConfig) -> BlockingClient:
    return config.build_blocking()


def _run(ctx: typer.Context, call: Callable[[BlockingClient], T]) -> T:
    config: ClientConfig = ctx.obj
    try:
        with build_client(config) as client:
            return call(client)
    except (WaterfallsError, ValueError) as e:
        logger.error(str(e))
        raise typer.Exit(1)


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Header must look like 'Name: value', got {value!r}")
        headers[name.strip()] = content.strip()
    return headers


@app.callback()
def main(
    ctx: typer.Context,
    url: Annotated[
        str,
        typer.Option("--url", "-u", envvar="WATERFALLS_BASE_URL", help="Waterfalls server URL"),
    ],
    timeout: Annotated[
        int | None, typer.Option("--timeout", "-t", help="Socket timeout in seconds")
    ] = None,
    max_retries: Annotated[
        int, typer.Option("--max-retries", help="Retries for 429/500/503 responses")
    ] = DEFAULT_MAX_RETRIES,
    proxy: Annotated[
        str | None,
        typer.Option(
            "--proxy", envvar="WATERFALLS_PROXY", help="Proxy URL, e.g. socks5h://127.0.0.1:9050"
        ),
    ] = None,
    header: Annotated[
        list[str] | None,
        typer.Option("--header", "-H", help="Extra request header as 'Name: value', repeatable"),
    ] = None,
    log_level: Annotated[str, typer.Option("--log-level", "-l", help="Log level")] = "WARNING",
) -> None:
    """Waterfalls index server client."""
    setup_logging(log_level)
    try:
        ctx.obj = ClientConfig(
            base_url=url,
            timeout=timeout,
            max_retries=max_retries,
            proxy=proxy,
            headers=_parse_headers(header or []),
        )
    except (ValidationError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1)


@app.command()
def tip(ctx: typer.Context) -> None:
    """Print the hash of the current chain tip."""
    typer.echo(_run(ctx, lambda client: client.get_tip_hash()))


@app.command("tip-height")
def tip_height(ctx: typer.Context) -> None:
    """Print the height of the current chain tip."""
    typer.echo(_run(ctx, lambda client: client.get_tip_height()))


@app.command("block-hash")
def block_hash(
    ctx: typer.Context,
    height: Annotated[int, typer.Argument(help="Block height")],
) -> None:
    """Print the hash of the block at HEIGHT."""
    typer.echo(_run(ctx, lambda client: client.get_block_hash(height)))


@app.command()
def header(
    ctx: typer.Context,
    hash: Annotated[str, typer.Argument(help="Block hash")],
) -> None:
    """Print the serialized header of a block as hex."""
    block_header = _run(ctx, lambda client: client.get_header_by_hash(hash))
    typer.echo(block_header.serialize().hex())


@app.command()
def tx(
    ctx: typer.Context,
    txid: Annotated[str, typer.Argument(help="Transaction id")],
) -> None:
    """Print a raw transaction as hex."""
    transaction = _run(ctx, lambda client: client.get_tx_no_opt(txid))
    typer.echo(transaction.serialize().hex())


@app.command("address-txs")
def address_txs(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Bitcoin address")],
) -> None:
    """Print the transaction history of an address as JSON."""
    typer.echo(_run(ctx, lambda client: client.get_address_txs(address)))


@app.command()
def waterfalls(
    ctx: typer.Context,
    descriptor: Annotated[str, typer.Argument(help="Wallet descriptor")],
    version: Annotated[int, typer.Option("--version", "-v", help="Endpoint version")] = 2,
    page: Annotated[int | None, typer.Option("--page", "-p", help="Page to fetch")] = None,
    to_index: Annotated[
        int | None, typer.Option("--to-index", help="Highest derivation index to scan")
    ] = None,
    utxo_only: Annotated[
        bool, typer.Option("--utxo-only", help="Only transactions with unspent outputs")
    ] = False,
) -> None:
    """Resolve a descriptor to the transactions touching it."""
    response = _run(
        ctx,
        lambda client: client.waterfalls_version(descriptor, version, page, to_index, utxo_only),
    )
    if response.is_empty():
        logger.info("No transactions seen for descriptor")
    typer.echo(response.to_json())


@app.command("server-info")
def server_info(ctx: typer.Context) -> None:
    """Print the server's recipient key, address and freshness."""

    def fetch(client: BlockingClient) -> tuple[str, str, str]:
        return (
            client.server_recipient(),
            client.server_address(),
            client.time_since_last_block(),
        )

    recipient, address, freshness = _run(ctx, fetch)
    typer.echo(f"Recipient:             {recipient}")
    typer.echo(f"Address:               {address}")
    typer.echo(f"Time since last block: {freshness}")


@app.command()
def broadcast(
    ctx: typer.Context,
    tx_hex: Annotated[str, typer.Argument(help="Signed transaction as hex")],
) -> None:
    """Broadcast a signed transaction."""
    try:
        transaction = decode_consensus(decode_hex_bytes(tx_hex), Transaction)
    except WaterfallsError as e:
        logger.error(f"Invalid transaction: {e}")
        raise typer.Exit(1)

    _run(ctx, lambda client: client.broadcast(transaction))
    typer.echo(transaction.txid().hex())


if __name__ == "__main__":
    app()
