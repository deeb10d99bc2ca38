"""CLI entry point for the treasury series engine.

Every chart command reads a JSON dataset of already-fetched records.

Usage:
    treasury-series balance dataset.json
    treasury-series balance dataset.json --view per_chain --range 30d
    treasury-series volume dataset.json --by-chain --output csv --save out/volume
    treasury-series holders dataset.json --chain 1 --chain 10
    treasury-series curve --rate 2000
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as ModelValidationError
from rich.console import Console
from rich.logging import RichHandler

from .builder import ChartSeriesBuilder
from .calculator.tax_schedule import effective_rate
from .core.config import EngineConfig, reload_config
from .core.exceptions import TreasurySeriesError
from .core.models import ChartSeries, Dataset
from .core.types import SECONDS_PER_DAY, SeriesView, Timestamp
from .output.formatters import CSVFormatter, JSONFormatter, OutputFormatter, TableFormatter
from .series.day_bucket import range_start_for

# Initialize app
app = typer.Typer(
    name="treasury-series",
    help="Treasury balance, volume, price and holder chart series",
    add_completion=False,
)

console = Console()

FORMATTERS: dict[str, type[OutputFormatter]] = {
    "table": TableFormatter,
    "json": JSONFormatter,
    "csv": CSVFormatter,
}

SUFFIXES = {"table": ".txt", "json": ".json", "csv": ".csv"}

DatasetArg = typer.Argument(..., help="JSON file of fetched records")
OutputOpt = typer.Option("table", "--output", "-o", help="Output format: table, json, csv")
SaveOpt = typer.Option(None, "--save", "-s", help="Save output to file")
RangeOpt = typer.Option("all", "--range", "-r", help="Time range: 7d, 30d, 90d, 3m, 1y, all")
EndOpt = typer.Option(None, "--end", "-e", help="Last day of the range (YYYY-MM-DD), default today")
ConfigOpt = typer.Option(None, "--config", help="Path to engine config YAML")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )


def _load_config(config_path: Optional[Path]) -> EngineConfig:
    try:
        return reload_config(config_path)
    except TreasurySeriesError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)


def _load_dataset(path: Path) -> Dataset:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/]")
        raise typer.Exit(1)
    try:
        return Dataset.model_validate_json(path.read_text(encoding="utf-8"))
    except ModelValidationError as e:
        console.print(f"[red]Invalid dataset {path}:[/]\n{e}")
        raise typer.Exit(1)


def _builder(config: EngineConfig, dataset: Dataset | None = None) -> ChartSeriesBuilder:
    builder = ChartSeriesBuilder.from_config(config)
    if dataset is not None:
        builder.balance_decimals = dataset.balance_decimals
    return builder


def _parse_end(end: Optional[str]) -> Timestamp:
    if end is None:
        return int(time.time())
    try:
        day = datetime.strptime(end, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        console.print(f"[red]Invalid date format: {end}. Use YYYY-MM-DD[/]")
        raise typer.Exit(1)
    # Whole last day is included
    return int(day.timestamp()) + SECONDS_PER_DAY - 1


def _window(dataset: Dataset, time_range: str, end: Optional[str]) -> tuple[Timestamp, Timestamp]:
    range_end = _parse_end(end)
    timestamps = [e.timestamp for e in dataset.events] + [m.timestamp for m in dataset.moments]
    project_start = min(timestamps) if timestamps else 0
    try:
        range_start = range_start_for(time_range, range_end, project_start)
    except TreasurySeriesError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)
    return min(range_start, range_end), range_end


def _emit(
    result: ChartSeries,
    output: str,
    save: Optional[Path],
    config: Optional[EngineConfig] = None,
) -> None:
    output_lower = output.lower()
    formatter_cls = FORMATTERS.get(output_lower)
    if formatter_cls is None:
        console.print(f"[red]Invalid output format: {output}[/]")
        console.print(f"Valid formats: {', '.join(FORMATTERS)}")
        raise typer.Exit(1)

    formatter = formatter_cls()
    if isinstance(formatter, TableFormatter) and config is not None:
        formatter.chain_name = config.chain_name
    formatted = formatter.format(result)

    # Display
    if output_lower == "table":
        console.print(formatted)
    else:
        print(formatted)

    # Save if requested
    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save_path = save.with_suffix(SUFFIXES[output_lower])
        formatter.format_to_file(result, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")


def _run(
    build,
    output: str,
    save: Optional[Path],
    verbose: bool,
    config: Optional[EngineConfig] = None,
) -> None:
    """Build a chart, reporting engine errors the way every command does."""
    try:
        result = build()
    except TreasurySeriesError as e:
        console.print(f"[red]Error: {e}[/]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)
    _emit(result, output, save, config)


@app.command()
def balance(
    dataset_path: Path = DatasetArg,
    view: str = typer.Option("combined", "--view", help="Series view: combined, per_chain"),
    output: str = OutputOpt,
    save: Optional[Path] = SaveOpt,
    time_range: str = RangeOpt,
    end: Optional[str] = EndOpt,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """
    Treasury balance over time.

    Examples:
        treasury-series balance dataset.json
        treasury-series balance dataset.json --view per_chain --range 30d
    """
    setup_logging(verbose)
    try:
        series_view = SeriesView(view)
    except ValueError:
        console.print(f"[red]Invalid view: {view}[/]")
        console.print("Valid views: combined, per_chain")
        raise typer.Exit(1)

    cfg = _load_config(config)
    dataset = _load_dataset(dataset_path)
    start, stop = _window(dataset, time_range, end)
    builder = _builder(cfg, dataset)

    _run(
        lambda: builder.balance_chart(
            dataset.moments,
            dataset.events,
            dataset.resolved_chain_ids(),
            start,
            stop,
            view=series_view,
        ),
        output,
        save,
        verbose,
        config=cfg,
    )


@app.command()
def volume(
    dataset_path: Path = DatasetArg,
    by_chain: bool = typer.Option(False, "--by-chain", help="Break counts and volumes down per chain"),
    output: str = OutputOpt,
    save: Optional[Path] = SaveOpt,
    time_range: str = RangeOpt,
    end: Optional[str] = EndOpt,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Daily payment count and volume."""
    setup_logging(verbose)
    cfg = _load_config(config)
    dataset = _load_dataset(dataset_path)
    start, stop = _window(dataset, time_range, end)
    builder = _builder(cfg, dataset)

    _run(
        lambda: builder.volume_chart(dataset.events, start, stop, by_chain=by_chain),
        output,
        save,
        verbose,
        config=cfg,
    )


@app.command()
def price(
    dataset_path: Path = DatasetArg,
    output: str = OutputOpt,
    save: Optional[Path] = SaveOpt,
    time_range: str = RangeOpt,
    end: Optional[str] = EndOpt,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Issuance, cash out and pool price of the project token."""
    setup_logging(verbose)
    cfg = _load_config(config)
    dataset = _load_dataset(dataset_path)
    start, stop = _window(dataset, time_range, end)
    builder = _builder(cfg, dataset)

    _run(
        lambda: builder.price_chart(
            dataset.moments,
            dataset.tax_snapshots,
            dataset.rulesets,
            start,
            stop,
            pool_prices=dataset.pool_prices,
        ),
        output,
        save,
        verbose,
        config=cfg,
    )


@app.command("cash-out")
def cash_out(
    dataset_path: Path = DatasetArg,
    output: str = OutputOpt,
    save: Optional[Path] = SaveOpt,
    time_range: str = RangeOpt,
    end: Optional[str] = EndOpt,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Combined and per-chain cash out value comparison."""
    setup_logging(verbose)
    cfg = _load_config(config)
    dataset = _load_dataset(dataset_path)
    start, stop = _window(dataset, time_range, end)
    builder = _builder(cfg, dataset)

    _run(
        lambda: builder.cash_out_comparison(
            dataset.moments,
            dataset.tax_snapshots,
            dataset.events,
            dataset.resolved_chain_ids(),
            start,
            stop,
        ),
        output,
        save,
        verbose,
        config=cfg,
    )


@app.command()
def holders(
    dataset_path: Path = DatasetArg,
    chain: Optional[list[int]] = typer.Option(None, "--chain", "-c", help="Only holders on this chain (repeatable)"),
    chain_supply: Optional[int] = typer.Option(None, "--chain-supply", help="Token supply on the selected chains"),
    output: str = OutputOpt,
    save: Optional[Path] = SaveOpt,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Token holder distribution."""
    setup_logging(verbose)
    cfg = _load_config(config)
    dataset = _load_dataset(dataset_path)
    builder = _builder(cfg, dataset)

    total_supply = dataset.total_supply
    if total_supply is None:
        total_supply = sum(h.balance_units for h in dataset.holders)

    _run(
        lambda: builder.holder_distribution(
            dataset.holders,
            total_supply,
            chains=chain or None,
            chain_supply=chain_supply,
        ),
        output,
        save,
        verbose,
        config=cfg,
    )


@app.command()
def curve(
    dataset_path: Optional[Path] = typer.Argument(None, help="Dataset whose current tax rate is used"),
    rate: Optional[int] = typer.Option(None, "--rate", help="Cash out tax rate in basis points (0-10000)"),
    steps: int = typer.Option(50, "--steps", help="Number of curve segments"),
    output: str = OutputOpt,
    save: Optional[Path] = SaveOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """
    Redemption curve shape for a cash out tax rate.

    Examples:
        treasury-series curve --rate 2000
        treasury-series curve dataset.json
    """
    setup_logging(verbose)
    if rate is None:
        if dataset_path is None:
            console.print("[red]Provide --rate or a dataset[/]")
            raise typer.Exit(1)
        dataset = _load_dataset(dataset_path)
        rate = effective_rate(dataset.tax_snapshots, int(time.time()))

    _run(lambda: ChartSeriesBuilder().redemption_curve(rate, steps), output, save, verbose)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Treasury Series v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
