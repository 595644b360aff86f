"""CLI entry point for SeatSwap.

Commands:
- serve: run the REST API under uvicorn
- orders: print the active order book
- match: run one matching pass against the configured database
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from seatswap.api.dependencies import close_engine, init_engine
from seatswap.config import ConfigError, SeatSwapConfig, load_config_or_default
from seatswap.logging import setup_logging
from seatswap.matching import MatchAlgorithm, PassResult


def _load(config_path: Path | None, verbose: bool) -> SeatSwapConfig:
    """Load configuration and configure logging, exiting on config errors."""
    try:
        config = load_config_or_default(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(
        log_dir=config.get_log_dir(),
        level="DEBUG" if verbose else config.logging.level,
        console=config.logging.console,
    )
    return config


def _print_result(result: PassResult) -> None:
    click.echo(f"Pass {result.kind.value}: examined {result.examined} orders")
    if not result.matched:
        click.echo("  No cycle executed")
    for cycle in result.cycles:
        ids = ", ".join(str(order_id) for order_id in cycle.order_ids)
        click.echo(f"  Cycle [{ids}]")
        for transfer in cycle.transfers:
            click.echo(
                f"    seat {transfer.seat_id}: {transfer.from_holder} -> {transfer.to_holder}"
            )
    if result.rejected:
        click.echo(f"  {result.rejected} candidate(s) rejected for schedule conflicts")
    for failure in result.failures:
        click.echo(f"  Aborted {list(failure.order_ids)}: {failure.reason}", err=True)


config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to seatswap.yaml (auto-detected if not specified)",
)

verbose_option = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)


@click.group()
@click.version_option(package_name="seatswap")
def main() -> None:
    """SeatSwap - course seat exchange matching."""
    pass


@main.command()
@config_option
@verbose_option
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", type=int, default=None, help="Bind port (default: from config)")
def serve(config_path: Path | None, verbose: bool, host: str | None, port: int | None) -> None:
    """Run the REST API server."""
    import uvicorn

    from seatswap.api.app import create_app

    config = _load(config_path, verbose)
    app = create_app(db_path=config.get_db_path(), admins=config.admins)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


@main.command()
@config_option
@verbose_option
def orders(config_path: Path | None, verbose: bool) -> None:
    """Print the active order book in submission order."""
    config = _load(config_path, verbose)
    engine = init_engine(config.get_db_path(), admins=config.admins)
    try:
        active = engine.list_active_orders()
        if not active:
            click.echo("Order book is empty")
            return
        click.echo(f"{len(active)} active order(s):")
        for order in active:
            click.echo(
                f"  #{order.order_id} {order.submitter}: seat {order.seat_id} "
                f"({order.offered_course} @ {order.time_slot}) -> {order.requested_course}"
            )
    finally:
        close_engine()


@main.command()
@config_option
@verbose_option
@click.option(
    "--kind",
    type=click.Choice(["two-way", "three-way"], case_sensitive=False),
    default="three-way",
    help="Cycle length to match (default: three-way)",
)
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in MatchAlgorithm], case_sensitive=False),
    default=MatchAlgorithm.ADJACENT.value,
    help="Three-way search strategy (default: adjacent)",
)
def match(config_path: Path | None, verbose: bool, kind: str, algorithm: str) -> None:
    """Run one matching pass and print the executed cycles."""
    config = _load(config_path, verbose)
    engine = init_engine(config.get_db_path(), admins=config.admins)
    try:
        if kind.lower() == "two-way":
            result = engine.execute_two_way()
        else:
            result = engine.execute_three_way(MatchAlgorithm(algorithm.lower()))
        _print_result(result)
    finally:
        close_engine()

    if result.failures:
        sys.exit(2)


if __name__ == "__main__":
    main()
