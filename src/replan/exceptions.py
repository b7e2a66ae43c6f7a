"""Custom exceptions for Replan."""


class ReplanError(Exception):
    """Base exception for all Replan errors."""

    pass


class ValidationError(ReplanError):
    """Raised when validation fails."""

    pass


class CircularDependencyError(ValidationError):
    """Raised when a dependency edge would close (or already closes) a cycle."""

    pass


class MissingReferenceError(ValidationError):
    """Raised when a referenced ID does not exist."""

    pass


class ParseError(ReplanError):
    """Raised when YAML parsing fails."""

    pass
