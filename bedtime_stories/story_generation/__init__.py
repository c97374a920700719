"""
Story generation utilities: the story provider and the page splitting rule.
"""

from .pagination import DEFAULT_MAX_PAGES, split_story_into_pages
from .prompting import StoryPrompt, build_daily_story_prompt
from .schemas import StoryRequest, StoryResponse
from .story_service import DailyStoryGenerator

__all__ = [
    "DEFAULT_MAX_PAGES",
    "DailyStoryGenerator",
    "StoryPrompt",
    "StoryRequest",
    "StoryResponse",
    "build_daily_story_prompt",
    "split_story_into_pages",
]
