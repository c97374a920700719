"""
Common utilities shared across bedtime story modules.
"""

from .errors import (
    BedtimeStoryError,
    GenerationFailure,
    IllustrationFailure,
    Notification,
    Notifier,
)
from .llm import ChatResult, CompletionCallable, acall_chat_completion

__all__ = [
    "BedtimeStoryError",
    "ChatResult",
    "CompletionCallable",
    "GenerationFailure",
    "IllustrationFailure",
    "Notification",
    "Notifier",
    "acall_chat_completion",
]
