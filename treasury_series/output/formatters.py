"""Output formatters for chart series.

Provides multiple output formats:
- JSON: Machine-readable, complete data
- CSV: Spreadsheet-compatible, one row per day (or holder / curve sample)
- Table: Human-readable CLI output
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..calculator.holders import OTHERS_LABEL, display_label
from ..core.models import ChartSeries
from ..core.types import key_chain_id

logger = logging.getLogger(__name__)


def format_day(day: int) -> str:
    """UTC date of a day boundary, e.g. ``2024-01-31``."""
    return datetime.fromtimestamp(day, tz=timezone.utc).strftime("%Y-%m-%d")


def format_value(value: int | float | None, precision: int = 6) -> str:
    if value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    return f"{value:.{precision}f}"


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, result: ChartSeries) -> str:
        """Format the result as a string."""
        pass

    def format_to_file(self, result: ChartSeries, filepath: str) -> None:
        """Write formatted result to a file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(result))


class JSONFormatter(OutputFormatter):
    """Formats results as JSON."""

    def __init__(self, indent: int = 2, include_audit: bool = True):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_audit: Include the audit trail in output
        """
        self.indent = indent
        self.include_audit = include_audit

    def format(self, result: ChartSeries) -> str:
        """Format result as JSON string."""
        exclude = None if self.include_audit else {"audit_trail"}
        data = result.model_dump(mode="json", exclude=exclude)
        return json.dumps(data, indent=self.indent)


class CSVFormatter(OutputFormatter):
    """Formats chart rows as CSV."""

    def __init__(self, delimiter: str = ",", include_flags: bool = True):
        """
        Initialize CSV formatter.

        Args:
            delimiter: CSV delimiter
            include_flags: Append a data quality section when flags exist
        """
        self.delimiter = delimiter
        self.include_flags = include_flags

    def format(self, result: ChartSeries) -> str:
        """Format result as CSV string."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter)

        if result.holders:
            writer.writerow(["address", "balance_units", "percent", "chains"])
            for share in result.holders:
                writer.writerow([
                    OTHERS_LABEL if share.is_others else share.address,
                    share.balance_units,
                    f"{share.percent:.4f}",
                    ";".join(str(c) for c in sorted(share.chains)),
                ])
        elif result.curve:
            writer.writerow(["fraction", "value_per_token"])
            for point in result.curve:
                writer.writerow([f"{point.fraction:.4f}", f"{point.value_per_token:.6f}"])
        else:
            writer.writerow(["date", "day", *result.series_keys])
            for point in result.points:
                writer.writerow([
                    format_day(point.day),
                    point.day,
                    *(format_value(point.get(k)) for k in result.series_keys),
                ])

        if self.include_flags and result.quality_flags:
            writer.writerow([])
            writer.writerow(["# Data Quality Flags"])
            writer.writerow(["Field", "Issue", "Severity"])
            for flag in result.quality_flags:
                writer.writerow([flag.field, flag.issue, flag.severity])

        return output.getvalue()


class TableFormatter(OutputFormatter):
    """Formats results as human-readable tables for CLI output."""

    def __init__(
        self,
        use_rich: bool = True,
        width: int = 100,
        max_rows: int = 60,
        chain_name: Callable[[int], str] | None = None,
    ):
        """
        Initialize table formatter.

        Args:
            use_rich: Use rich for colored output; plain text otherwise
            width: Maximum table width
            max_rows: Only the most recent rows are shown beyond this
            chain_name: Display name for a chain id, used in per-chain column headers
        """
        self.use_rich = use_rich
        self.width = width
        self.max_rows = max_rows
        self.chain_name = chain_name

    def format(self, result: ChartSeries) -> str:
        """Format result as readable tables."""
        if self.use_rich:
            return self._format_rich(result)
        return self._format_plain(result)

    def _rows(self, result: ChartSeries) -> tuple[list[str], list[list[str]]]:
        if result.holders:
            header = ["Holder", "Share"]
            rows = [[display_label(s), f"{s.percent:.2f}%"] for s in result.holders]
        elif result.curve:
            header = ["Fraction cashed out", "Value per token"]
            rows = [[f"{p.fraction:.0%}", f"{p.value_per_token:.4f}"] for p in result.curve]
        else:
            header = ["Date", *(self._column(k) for k in result.series_keys)]
            rows = [
                [format_day(p.day), *(format_value(p.get(k)) for k in result.series_keys)]
                for p in result.points
            ]
        if len(rows) > self.max_rows:
            rows = rows[-self.max_rows:]
        return header, rows

    def _column(self, key: str) -> str:
        chain_id = key_chain_id(key)
        if chain_id is None or self.chain_name is None:
            return key
        field, _, _ = key.rpartition(".")
        name = self.chain_name(chain_id)
        return f"{field} {name}" if field else name

    def _title(self, result: ChartSeries) -> str:
        title = result.chart.value.replace("_", " ").title()
        if result.view is not None:
            title += f" ({result.view.value.replace('_', ' ')})"
        return title

    def _format_plain(self, result: ChartSeries) -> str:
        """Plain text formatting without colors."""
        lines = []
        sep = "=" * 60

        lines.append(sep)
        lines.append(f"  {self._title(result).upper()}")
        lines.append(sep)

        header, rows = self._rows(result)
        if rows:
            widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(header)]
            lines.append("  " + "  ".join(h.ljust(w) for h, w in zip(header, widths)))
            lines.append("  " + "-" * (sum(widths) + 2 * (len(widths) - 1)))
            for row in rows:
                lines.append("  " + "  ".join(c.rjust(w) for c, w in zip(row, widths)))
        else:
            lines.append("  No data")
        lines.append("")

        for note in result.notes:
            lines.append(f"  Note: {note}")
        for flag in result.quality_flags:
            lines.append(f"  [{flag.severity.upper()}] {flag.field}: {flag.issue}")

        lines.append(sep)
        lines.append(f"  Generated: {result.generated_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append(sep)

        return "\n".join(lines)

    def _format_rich(self, result: ChartSeries) -> str:
        """Rich library formatting with colors."""
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width)

        header, rows = self._rows(result)
        table = Table(title=self._title(result))
        for i, column in enumerate(header):
            table.add_column(escape(column), style="cyan" if i == 0 else "green", justify="left" if i == 0 else "right")
        for row in rows:
            table.add_row(*row)

        if rows:
            console.print(table)
        else:
            console.print(f"[yellow]{self._title(result)}: no data[/]")

        if result.notes:
            console.print(Panel(escape("\n".join(result.notes)), title="Notes", expand=False))

        for flag in result.quality_flags:
            color = {"error": "red", "warning": "yellow"}.get(flag.severity, "dim")
            console.print(f"[{color}]{escape(f'[{flag.severity.upper()}]')}[/] {escape(flag.field)}: {escape(flag.issue)}")

        return output.getvalue()
