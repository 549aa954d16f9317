"""Domain error types raised by the service layer.

Backend (PostgREST / GoTrue) errors are never wrapped in these; they
propagate to the caller as raised by the SDK.
"""

from typing import Any, List, Optional


class PreconditionError(ValueError):
    """An explicit domain check failed before any write was attempted."""


class NotFoundError(PreconditionError):
    """The entity a mutation targets does not exist."""


class PartiallyAppliedError(Exception):
    """A multi-step write failed after some steps were already applied.

    Nothing is rolled back. ``completed`` holds the results of the steps that
    succeeded, ``failed_step`` is the zero-based index of the failing step and
    the original error is chained as ``__cause__`` (also kept on ``error``).
    """

    def __init__(
        self,
        completed: List[Any],
        failed_step: int,
        error: BaseException,
        description: Optional[str] = None,
    ):
        self.completed = completed
        self.failed_step = failed_step
        self.error = error
        self.description = description
        label = f"{description}: " if description else ""
        super().__init__(
            f"{label}step {failed_step + 1} failed after {len(completed)} "
            f"step(s) were applied: {error}"
        )


class CatalogDriftError(RuntimeError):
    """The hand-maintained table catalog disagrees with the live schema."""

    def __init__(self, mismatches: dict):
        self.mismatches = mismatches
        details = "; ".join(
            f"{table}: {problem}" for table, problem in sorted(mismatches.items())
        )
        super().__init__(f"Table catalog does not match live schema: {details}")


def account_not_found(account_id: Any) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def unknown_table(table_name: str) -> str:
    """Return message for a table missing from the editor catalog."""
    return f"Unknown table '{table_name}'"
