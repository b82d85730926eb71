"""
Error taxonomy for the ticker-picker engine.

Every failure inside the engine is fatal for the call that raised it:
nothing here is retried or recovered.  The classes also inherit from the
closest built-in so callers that only catch ``ValueError`` / ``LookupError``
keep working.
"""


class TickerPickerError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(TickerPickerError, ValueError):
    """An option value (mood, fill-price convention, dataset) is not recognised."""


class MissingDataError(TickerPickerError, LookupError):
    """A ticker, table, column, file or trading day the engine needs is absent."""


class ConstructionError(TickerPickerError, ValueError):
    """A record could not be built: a field is missing or has the wrong type."""


class ScoreDomainError(TickerPickerError, ArithmeticError):
    """Single-index inputs produce no finite score (e.g. negative beta with fractional lambda, beta = 0)."""
