"""
Read-aloud support for story pages.
"""

from .announcer import (
    SpeechAnnouncer,
    SpeechEngine,
    SpeechHandle,
    UtteranceOptions,
    Voice,
    select_voice,
)
from .gtts_engine import GTTSSpeechEngine

__all__ = [
    "GTTSSpeechEngine",
    "SpeechAnnouncer",
    "SpeechEngine",
    "SpeechHandle",
    "UtteranceOptions",
    "Voice",
    "select_voice",
]
