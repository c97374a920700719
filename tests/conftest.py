"""Shared test fixtures for bedtime story tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from bedtime_stories.ai_generation import IllustrationRequest, IllustrationResponse
from bedtime_stories.common import Notification
from bedtime_stories.config import BedtimeConfig
from bedtime_stories.pipeline import BedtimeStoryOrchestrator
from bedtime_stories.speech import UtteranceOptions, Voice
from bedtime_stories.story_generation import StoryRequest, StoryResponse


class FakeStoryGenerator:
    """Returns queued responses (or raises queued exceptions) in call order."""

    def __init__(self, *responses: StoryResponse | Exception) -> None:
        self._responses = list(responses)
        self.requests: list[StoryRequest] = []
        self.gates: dict[str, asyncio.Event] = {}

    def queue(self, *responses: StoryResponse | Exception) -> None:
        self._responses.extend(responses)

    async def generate_story(self, request: StoryRequest) -> StoryResponse:
        self.requests.append(request)
        item = self._responses.pop(0)
        gate = self.gates.get(request.story_theme)
        if gate is not None:
            await gate.wait()
        if isinstance(item, Exception):
            raise item
        return item


class FakeIllustrator:
    """Returns a URL derived from the page text; selected texts fail or block."""

    def __init__(self) -> None:
        self.requests: list[IllustrationRequest] = []
        self.fail_once: set[str] = set()
        self.fail_always: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.started = asyncio.Event()

    @property
    def texts(self) -> list[str]:
        return [request.story_text for request in self.requests]

    async def generate_illustration(self, request: IllustrationRequest) -> IllustrationResponse:
        self.requests.append(request)
        self.started.set()
        text = request.story_text
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        if text in self.fail_once:
            self.fail_once.discard(text)
            raise RuntimeError(f"image service unavailable for {text!r}")
        if text in self.fail_always:
            raise RuntimeError(f"image service unavailable for {text!r}")
        slug = text.lower().replace(" ", "-").strip("!?")
        return IllustrationResponse(image_url=f"https://img.test/{slug}/{len(self.requests)}")


class FakeSpeechEngine:
    """Records utterances; can block until released or fail."""

    def __init__(self, voices: tuple[Voice, ...] = ()) -> None:
        self._voices = voices
        self.spoken: list[tuple[str, UtteranceOptions]] = []
        self.block = False
        self.fail = False
        self.release = asyncio.Event()

    def voices(self) -> tuple[Voice, ...]:
        return self._voices

    async def say(self, text: str, options: UtteranceOptions) -> str:
        self.spoken.append((text, options))
        if self.block:
            await self.release.wait()
        if self.fail:
            raise RuntimeError("speech engine crashed")
        return f"audio:{text}"


@pytest.fixture
def notifications() -> list[Notification]:
    return []


@pytest.fixture
def progress_events() -> list[tuple[str, dict[str, Any]]]:
    return []


@pytest.fixture
def story_generator() -> FakeStoryGenerator:
    return FakeStoryGenerator()


@pytest.fixture
def illustrator() -> FakeIllustrator:
    return FakeIllustrator()


@pytest.fixture
def speech_engine() -> FakeSpeechEngine:
    return FakeSpeechEngine(
        voices=(
            Voice(id="fr", name="French", language="fr"),
            Voice(id="en", name="English", language="en"),
        )
    )


@pytest.fixture
def config() -> BedtimeConfig:
    return BedtimeConfig()


@pytest.fixture
def orchestrator(
    story_generator: FakeStoryGenerator,
    illustrator: FakeIllustrator,
    config: BedtimeConfig,
    notifications: list[Notification],
    progress_events: list[tuple[str, dict[str, Any]]],
) -> BedtimeStoryOrchestrator:
    return BedtimeStoryOrchestrator(
        story_generator=story_generator,
        illustrator=illustrator,
        config=config,
        notifier=notifications.append,
        progress_callback=lambda stage, payload: progress_events.append((stage, payload)),
    )
