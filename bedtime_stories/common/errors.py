"""
Error types and user-facing notifications for the bedtime story workflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

NotificationVariant = Literal["default", "destructive"]


class BedtimeStoryError(RuntimeError):
    """Base class for failures that are reported to the reader, not fatal to the session."""

    kind = "error"


class GenerationFailure(BedtimeStoryError):
    """The story text could not be produced."""

    kind = "generation"


class IllustrationFailure(BedtimeStoryError):
    """An image reference could not be produced for a page."""

    kind = "illustration"

    def __init__(self, message: str, *, page_index: int | None = None) -> None:
        super().__init__(message)
        self.page_index = page_index


@dataclass(frozen=True)
class Notification:
    """
    Transient message surfaced to the reader (the terminal equivalent of a toast).
    """

    title: str
    description: str
    variant: NotificationVariant = "default"
    error: BedtimeStoryError | None = None

    @property
    def kind(self) -> str:
        return self.error.kind if self.error is not None else "info"

    @classmethod
    def from_error(cls, title: str, error: BedtimeStoryError) -> "Notification":
        return cls(title=title, description=str(error), variant="destructive", error=error)


Notifier = Callable[[Notification], None]
