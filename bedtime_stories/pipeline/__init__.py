"""
Session state and orchestration for generating and reading bedtime stories.
"""

from .orchestrator import (
    BedtimeStoryOrchestrator,
    Direction,
    PageView,
    ProgressCallback,
)
from .session import IllustrationSet, Story, StorySession, ViewerState

__all__ = [
    "BedtimeStoryOrchestrator",
    "Direction",
    "IllustrationSet",
    "PageView",
    "ProgressCallback",
    "Story",
    "StorySession",
    "ViewerState",
]
