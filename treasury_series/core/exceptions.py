"""Custom exceptions for the treasury series engine."""


class TreasurySeriesError(Exception):
    """Base exception for all treasury series errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(TreasurySeriesError):
    """Raised when an argument is outside its documented domain."""

    def __init__(self, field: str, value: str, reason: str):
        message = f"Validation failed for {field}={value}: {reason}"
        super().__init__(message, {"field": field, "value": value, "reason": reason})
        self.field = field
        self.value = value
        self.reason = reason


class InvalidInputError(TreasurySeriesError):
    """Raised for upstream data that cannot be valued (e.g. zero supply)."""

    def __init__(self, message: str, **details: object):
        super().__init__(message, dict(details))


class UnknownChainError(TreasurySeriesError):
    """Raised when data references a chain outside the requested chain list."""

    def __init__(self, chain_id: int, requested: list[int] | None = None):
        message = f"Chain {chain_id} is not in the requested chain list"
        if requested:
            message += f" ({', '.join(str(c) for c in requested)})"
        super().__init__(message, {"chain_id": chain_id, "requested": requested})
        self.chain_id = chain_id
        self.requested = requested or []


class DataSourceError(TreasurySeriesError):
    """Raised by source adapters when a fetch fails or returns invalid data."""

    def __init__(
        self,
        source: str,
        message: str,
        chain_id: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(full_message, {"source": source, "chain_id": chain_id})
        self.source = source
        self.chain_id = chain_id


class ConfigurationError(TreasurySeriesError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
