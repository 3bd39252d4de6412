"""Planvault exceptions."""

from pathlib import Path  # noqa: TC003 - Used at runtime in signatures
from typing import Any


class PlanvaultError(Exception):
    """Base exception for planvault errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(PlanvaultError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(PlanvaultError):
    """Base exception for versioned repository errors."""


class InitializationError(RepositoryError):
    """Raised when a repository cannot be created or opened.

    Attributes:
        path: The directory that could not be initialized.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The directory that could not be initialized.
        """
        super().__init__(message)
        self.path: Path | None = path


class TransactionFinalizedError(RepositoryError):
    """Raised when stage or commit is called on a committed or canceled transaction.

    Attributes:
        state: The terminal state the transaction was in.
    """

    def __init__(self, message: str, *, state: str | None = None) -> None:
        """Initialize with error message and transaction state.

        Args:
            message: Human-readable error message.
            state: The terminal state the transaction was in.
        """
        super().__init__(message)
        self.state: str | None = state


class StagingError(RepositoryError):
    """Raised when a staging pattern cannot be applied.

    The transaction stays open after this error, so the caller may retry
    staging or cancel.

    Attributes:
        pattern: The pattern that failed, if a single one is to blame.
        path: The repository root the pattern was resolved against.
    """

    def __init__(
        self,
        message: str,
        *,
        pattern: str | None = None,
        path: Path | None = None,
    ) -> None:
        """Initialize with error message and pattern context.

        Args:
            message: Human-readable error message.
            pattern: The pattern that failed.
            path: The repository root the pattern was resolved against.
        """
        super().__init__(message)
        self.pattern: str | None = pattern
        self.path: Path | None = path


class CommitError(RepositoryError):
    """Raised when a commit cannot be created.

    Attributes:
        path: The repository root where the commit failed.
        details: Additional details, such as the SHA of an orphaned commit.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        details: str | None = None,
    ) -> None:
        """Initialize with error message and commit context.

        Args:
            message: Human-readable error message.
            path: The repository root where the commit failed.
            details: Additional details about the failure.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.details: str | None = details


class HistoryQueryError(RepositoryError, KeyError):
    """Raised when a commit reference cannot be resolved.

    Attributes:
        reference: The commit reference that failed to resolve.
    """

    def __init__(self, message: str, *, reference: str | None = None) -> None:
        """Initialize with error message and reference context.

        Args:
            message: Human-readable error message.
            reference: The commit reference that failed to resolve.
        """
        super().__init__(message)
        self.reference: str | None = reference

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""
