"""
Coordinates story generation, pagination, illustrations and the viewer controls.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator

from pydantic import ValidationError

from bedtime_stories.ai_generation import IllustrationRequest, ReplicateStoryIllustrator
from bedtime_stories.common import (
    BedtimeStoryError,
    GenerationFailure,
    IllustrationFailure,
    Notification,
    Notifier,
)
from bedtime_stories.config import BedtimeConfig
from bedtime_stories.speech import SpeechAnnouncer, SpeechHandle
from bedtime_stories.story_generation import (
    DailyStoryGenerator,
    StoryRequest,
    split_story_into_pages,
)

from .session import Story, StorySession

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]

STORY_ERROR_TITLE = "Error generating story"
VISUAL_ERROR_TITLE = "Error generating visual"


class Direction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"


@dataclass(frozen=True)
class PageView:
    """What the viewer shows for the current page."""

    index: int
    total: int
    title: str
    text: str
    image_url: str | None
    font_size: int


class BedtimeStoryOrchestrator:
    """
    Turns an age and a theme into a paged, illustrated story and drives the viewer.

    Failures from the story or illustration providers never escape: they are
    reported through ``notifier`` and the session stays usable. Calling an
    operation that needs a story before one exists raises ``RuntimeError``.
    """

    def __init__(
        self,
        *,
        story_generator: DailyStoryGenerator | None = None,
        illustrator: ReplicateStoryIllustrator | None = None,
        config: BedtimeConfig | None = None,
        announcer: SpeechAnnouncer | None = None,
        notifier: Notifier | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._story_generator = story_generator or DailyStoryGenerator()
        self._illustrator = illustrator or ReplicateStoryIllustrator()
        self._config = config or BedtimeConfig()
        self._announcer = announcer
        self._notifier = notifier
        self._progress_callback = progress_callback

    @property
    def config(self) -> BedtimeConfig:
        return self._config

    def new_session(self) -> StorySession:
        return StorySession(font_size=self._config.default_font_size)

    # ------------------------------------------------------------------ story generation

    async def generate_story(self, session: StorySession, *, age: Any, theme: str) -> Story | None:
        """
        Generate a new story, reset the viewer to its first page and illustrate every page.

        Pages are illustrated one after another; a failed page is reported and left
        without an image while the remaining pages continue. Returns ``None`` when the
        story itself could not be produced, in which case the previous story stays.
        """
        token = session.issue_token()

        try:
            request = self._build_story_request(age, theme)
        except GenerationFailure as exc:
            self._report(STORY_ERROR_TITLE, exc)
            return None

        with self._busy(session):
            self._progress("story:generating", age=request.child_age, theme=request.story_theme)
            try:
                response = await self._story_generator.generate_story(request)
            except Exception as exc:
                if token < session.committed_token:
                    logger.debug("Ignoring failure of superseded story request %s: %s", token, exc)
                    return None
                self._report(STORY_ERROR_TITLE, _as_generation_failure(exc))
                return None

            if token < session.committed_token:
                logger.debug("Discarding story for request %s; a newer story is shown.", token)
                return None

            pages = split_story_into_pages(response.story, max_pages=self._config.max_pages)
            if not pages:
                self._report(
                    STORY_ERROR_TITLE,
                    GenerationFailure("The generated story did not contain any sentences."),
                )
                return None

            story = Story(title=response.title, pages=tuple(pages))
            if session.viewer.is_narrating:
                self.stop_reading(session)
            session.commit_story(story, token)
            self._progress("story:generated", title=story.title, total_pages=story.page_count)

            await self._illustrate_all_pages(session, story, token)

        return story

    def _build_story_request(self, age: Any, theme: str) -> StoryRequest:
        config = self._config
        if isinstance(age, bool) or (isinstance(age, float) and not age.is_integer()):
            raise GenerationFailure(f"Child age must be a whole number, received {age!r}.")
        try:
            age_value = int(age)
        except (TypeError, ValueError) as exc:
            raise GenerationFailure(f"Child age must be a whole number, received {age!r}.") from exc

        if not config.min_child_age <= age_value <= config.max_child_age:
            raise GenerationFailure(
                f"Child age must fall between {config.min_child_age} and "
                f"{config.max_child_age}, received {age_value}."
            )

        try:
            return StoryRequest(child_age=age_value, story_theme=theme)
        except ValidationError as exc:
            raise GenerationFailure("Story theme must be a non-empty string.") from exc

    async def _illustrate_all_pages(self, session: StorySession, story: Story, token: int) -> None:
        total_pages = story.page_count
        for index, text in enumerate(story.pages):
            if session.committed_token != token:
                logger.debug("Stopping illustrations for superseded story %s.", token)
                return

            self._progress("page:illustrating", page_index=index, total_pages=total_pages)
            request = self._illustration_request(text)
            try:
                image_url = await self._request_illustration(request)
            except Exception as exc:
                if session.committed_token != token:
                    return
                self._report(VISUAL_ERROR_TITLE, _as_illustration_failure(exc, index))
                self._progress("page:failed", page_index=index, total_pages=total_pages)
                continue

            if session.committed_token != token:
                logger.debug("Discarding illustration for page %s of superseded story.", index)
                return

            session.illustrations.set(index, image_url)
            self._progress("page:illustrated", page_index=index, total_pages=total_pages)

        self._progress(
            "illustrations:complete",
            total_pages=total_pages,
            illustrated=len(session.illustrations),
        )

    # ------------------------------------------------------------------ illustrations

    async def ensure_illustration(
        self,
        session: StorySession,
        page_index: int,
        *,
        regenerate: bool = False,
    ) -> str | None:
        """
        Make sure ``page_index`` has an illustration.

        Without ``regenerate`` an existing entry is returned untouched. With it the
        provider is always called and the entry overwritten. Returns ``None`` when
        generation failed or the story was replaced while the call was in flight.
        """
        story = self._require_story(session)
        if not 0 <= page_index < story.page_count:
            raise IndexError(
                f"Page index {page_index} is out of range for a {story.page_count}-page story."
            )

        if not regenerate and session.illustrations.has(page_index):
            return session.illustrations.get(page_index)

        token = session.committed_token
        request = self._illustration_request(story.pages[page_index])
        with self._busy(session):
            try:
                image_url = await self._request_illustration(request)
            except Exception as exc:
                if session.committed_token == token:
                    self._report(VISUAL_ERROR_TITLE, _as_illustration_failure(exc, page_index))
                return None

        if session.committed_token != token:
            logger.debug("Discarding illustration for page %s; the story changed.", page_index)
            return None

        session.illustrations.set(page_index, image_url)
        return image_url

    async def regenerate_illustration(
        self,
        session: StorySession,
        page_index: int | None = None,
    ) -> str | None:
        """Replace the illustration of ``page_index`` (default: the current page)."""
        if page_index is None:
            page_index = session.viewer.current_page_index
        return await self.ensure_illustration(session, page_index, regenerate=True)

    def _illustration_request(self, text: str) -> IllustrationRequest:
        return IllustrationRequest(story_text=text, style=self._config.illustration_style)

    async def _request_illustration(self, request: IllustrationRequest) -> str:
        response = await self._illustrator.generate_illustration(request)
        return response.image_url

    # ------------------------------------------------------------------ navigation & display

    async def navigate(self, session: StorySession, direction: Direction | str) -> int:
        """
        Move one page forward or back, clamped to the story bounds (no wrap-around).

        Landing on a new page without an illustration triggers a lazy fill, and an
        active narration moves on to the new page.
        """
        story = self._require_story(session)
        direction = Direction(direction)
        viewer = session.viewer

        current = viewer.current_page_index
        if direction is Direction.NEXT:
            target = min(current + 1, story.page_count - 1)
        else:
            target = max(current - 1, 0)

        if target == current:
            return current

        viewer.current_page_index = target
        if viewer.is_narrating and self._announcer is not None:
            self._start_narration(session)

        if not session.illustrations.has(target):
            await self.ensure_illustration(session, target)
        return target

    def current_page(self, session: StorySession) -> PageView:
        story = self._require_story(session)
        index = session.viewer.current_page_index
        return PageView(
            index=index,
            total=story.page_count,
            title=story.title,
            text=story.pages[index],
            image_url=session.illustrations.get(index),
            font_size=session.viewer.font_size,
        )

    def adjust_font_size(self, session: StorySession, delta: int) -> int:
        config = self._config
        size = session.viewer.font_size + delta
        session.viewer.font_size = max(config.min_font_size, min(size, config.max_font_size))
        return session.viewer.font_size

    def increase_font_size(self, session: StorySession) -> int:
        return self.adjust_font_size(session, self._config.font_size_step)

    def decrease_font_size(self, session: StorySession) -> int:
        return self.adjust_font_size(session, -self._config.font_size_step)

    def export_pdf(self, session: StorySession) -> None:
        # Not implemented yet; the reader gets told so.
        self._emit(
            Notification(
                title="Export to PDF",
                description="This feature is not implemented yet.",
            )
        )

    # ------------------------------------------------------------------ narration

    def read_aloud(self, session: StorySession) -> SpeechHandle | None:
        """
        Toggle narration: stop it when active, otherwise read the current page.
        """
        if self._announcer is None:
            raise RuntimeError("No speech announcer is configured.")
        if session.viewer.is_narrating:
            self.stop_reading(session)
            return None
        return self._start_narration(session)

    def stop_reading(self, session: StorySession) -> None:
        if self._announcer is not None:
            self._announcer.stop()
        session.narration = None
        session.viewer.is_narrating = False

    def _start_narration(self, session: StorySession) -> SpeechHandle:
        story = self._require_story(session)
        handle = self._announcer.speak(story.pages[session.viewer.current_page_index])
        session.narration = handle
        session.viewer.is_narrating = True
        handle.add_done_callback(lambda finished: self._narration_finished(session, finished))
        return handle

    @staticmethod
    def _narration_finished(session: StorySession, handle: SpeechHandle) -> None:
        # A replaced utterance must not clear the flag of its successor.
        if session.narration is handle:
            session.narration = None
            session.viewer.is_narrating = False

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _require_story(session: StorySession) -> Story:
        if session.story is None:
            raise RuntimeError("No story has been generated for this session yet.")
        return session.story

    @staticmethod
    @contextmanager
    def _busy(session: StorySession) -> Iterator[None]:
        session.viewer.pending_calls += 1
        try:
            yield
        finally:
            session.viewer.pending_calls -= 1

    def _report(self, title: str, failure: BedtimeStoryError) -> None:
        logger.warning("%s: %s", title, failure, exc_info=failure.__cause__ or failure)
        self._emit(Notification.from_error(title, failure))

    def _emit(self, notification: Notification) -> None:
        if self._notifier is not None:
            self._notifier(notification)

    def _progress(self, stage: str, **payload: Any) -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, payload)


def _as_generation_failure(exc: Exception) -> GenerationFailure:
    if isinstance(exc, GenerationFailure):
        return exc
    failure = GenerationFailure(str(exc) or type(exc).__name__)
    failure.__cause__ = exc
    return failure


def _as_illustration_failure(exc: Exception, page_index: int) -> IllustrationFailure:
    if isinstance(exc, IllustrationFailure):
        if exc.page_index is None:
            exc.page_index = page_index
        return exc
    failure = IllustrationFailure(str(exc) or type(exc).__name__, page_index=page_index)
    failure.__cause__ = exc
    return failure
