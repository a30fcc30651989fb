"""CLI entry point for the cart harness."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cart_harness.auth.session_broker import clear_sessions
from cart_harness.models.config import HarnessConfig
from cart_harness.models.run_result import RunResult
from cart_harness.runner import ScenarioRunner
from cart_harness.scenarios import SCENARIOS

console = Console()

_RESULT_STYLES = {"pass": "green", "fail": "red", "error": "yellow"}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> HarnessConfig:
    try:
        return HarnessConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'cart-harness init' to create a default config.")
        sys.exit(1)


def render_results(result: RunResult) -> Table:
    table = Table(title=f"Run {result.run_id}")
    table.add_column("Scenario", style="bold")
    table.add_column("Worker")
    table.add_column("Result")
    table.add_column("Time")
    table.add_column("Details")
    for r in result.scenario_results:
        style = _RESULT_STYLES.get(r.result, "white")
        table.add_row(
            r.name,
            str(r.worker_id),
            f"[{style}]{r.result.upper()}[/{style}]",
            f"{r.duration_seconds:.1f}s",
            r.failure_reason or "",
        )
    return table


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Shopping cart UI verification harness"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="cart-harness.json", help="Config file path")
@click.option("--scenario", "-s", "names", multiple=True, help="Scenario to run (repeatable)")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Override the number of workers")
@click.option("--headed", is_flag=True, help="Show the browser window")
def run(config: str, names: tuple[str, ...], workers: int | None, headed: bool) -> None:
    """Run cart scenarios against the storefront."""
    cfg = _load_config(config)
    if workers is not None:
        cfg.workers = workers
    if headed:
        cfg.headless = False

    runner = ScenarioRunner(cfg, Path(cfg.report_output_dir))
    try:
        result = asyncio.run(runner.run(list(names) or None))
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        sys.exit(2)

    console.print(render_results(result))
    for error in result.worker_errors:
        console.print(f"[red]Worker setup failed:[/red] {error}")
    console.print(
        f"[bold]{result.passed}/{result.total} passed[/bold], "
        f"{result.failed} failed, {result.errors} errors in {result.duration_seconds}s"
    )
    console.print(f"  JSON report: [blue]{runner.run_dir / 'results.json'}[/blue]")
    if not result.ok:
        sys.exit(1)


@cli.command()
@click.option("--target", "-t", prompt="Storefront URL", help="Storefront base URL")
@click.option("--config", "-c", default="cart-harness.json", help="Config file path")
def init(target: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = HarnessConfig(base_url=target)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nSet credentials in the 'account' section (use \"env:VAR\" for the password), then run:")
    console.print("  [blue]cart-harness run[/blue]")


@cli.command("scenarios")
def list_scenarios() -> None:
    """List registered scenarios."""
    for sc in SCENARIOS.values():
        console.print(f"  [bold]{sc.name}[/bold]  {sc.description}")


@cli.group()
def sessions() -> None:
    """Manage cached worker sessions."""
    pass


@sessions.command("clear")
@click.option("--config", "-c", default="cart-harness.json", help="Config file path")
def sessions_clear(config: str) -> None:
    """Delete cached session files so workers log in again."""
    cfg = _load_config(config)
    removed = clear_sessions(cfg.session_dir)
    console.print(f"[green]Removed {removed} session file(s)[/green]")


if __name__ == "__main__":
    cli()
