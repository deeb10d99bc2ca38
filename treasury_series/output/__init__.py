"""Output formatting module."""

from .formatters import CSVFormatter, JSONFormatter, OutputFormatter, TableFormatter

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "CSVFormatter",
    "TableFormatter",
]
