"""
Bedtime stories package exposing story generation, illustration and the paged viewer.
"""

from .common import GenerationFailure, IllustrationFailure, Notification
from .config import BedtimeConfig
from .pipeline import (
    BedtimeStoryOrchestrator,
    Direction,
    PageView,
    Story,
    StorySession,
)

__all__ = [
    "BedtimeConfig",
    "BedtimeStoryOrchestrator",
    "Direction",
    "GenerationFailure",
    "IllustrationFailure",
    "Notification",
    "PageView",
    "Story",
    "StorySession",
]
