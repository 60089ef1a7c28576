"""Custom exceptions for exhaustive-deps."""


class ExhaustiveDepsError(Exception):
    """Base class for errors raised outside the analysis itself."""


class ConfigError(ExhaustiveDepsError):
    """Options file unreadable, malformed, or failing validation."""


class SourceReadError(ExhaustiveDepsError):
    """A source file or path to lint could not be read."""
