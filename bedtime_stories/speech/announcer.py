"""
Read-aloud adapter: at most one utterance at a time, completion exposed as an awaitable handle.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Generator, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voice:
    """A voice offered by a speech engine."""

    id: str
    name: str
    language: str


@dataclass(frozen=True)
class UtteranceOptions:
    """
    Per-utterance speech settings.

    Engines apply what they support; unsupported knobs are ignored.
    """

    language: str = "en"
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0
    voice: Voice | None = None


class SpeechEngine(Protocol):
    def voices(self) -> Sequence[Voice]: ...

    async def say(self, text: str, options: UtteranceOptions) -> Any: ...


def _primary_subtag(language: str) -> str:
    return language.strip().lower().replace("_", "-").split("-", 1)[0]


def select_voice(voices: Sequence[Voice], language: str) -> Voice | None:
    """
    Pick a voice for ``language``, preferring an exact tag, then any English voice.
    ``None`` means the engine default.
    """
    wanted = language.strip().lower().replace("_", "-")
    for voice in voices:
        if voice.language.lower().replace("_", "-") == wanted:
            return voice

    for voice in voices:
        if _primary_subtag(voice.language) == "en":
            return voice
    return None


class SpeechHandle:
    """
    Awaitable handle for one utterance.

    Awaiting it returns the engine result, raises the engine error, or raises
    :class:`asyncio.CancelledError` if the utterance was stopped.
    """

    def __init__(self, task: asyncio.Task[Any], text: str) -> None:
        self._task = task
        self.text = text

    def __await__(self) -> Generator[Any, None, Any]:
        return self._task.__await__()

    def done(self) -> bool:
        return self._task.done()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def cancel(self) -> bool:
        return self._task.cancel()

    def exception(self) -> BaseException | None:
        return self._task.exception()

    def result(self) -> Any:
        return self._task.result()

    def add_done_callback(self, callback: Callable[["SpeechHandle"], None]) -> None:
        self._task.add_done_callback(lambda _task: callback(self))


class SpeechAnnouncer:
    """
    Speaks text through a :class:`SpeechEngine`, cancelling any utterance still in progress.

    Callbacks
    ---------
    on_start(text):
        Called when an utterance begins.
    on_end(text):
        Called when an utterance finishes or is stopped.
    on_error(text, exc):
        Called when the engine fails.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        *,
        options: UtteranceOptions | None = None,
        on_start: Callable[[str], None] | None = None,
        on_end: Callable[[str], None] | None = None,
        on_error: Callable[[str, BaseException], None] | None = None,
    ) -> None:
        self._engine = engine
        self._options = options or UtteranceOptions()
        self._on_start = on_start
        self._on_end = on_end
        self._on_error = on_error
        self._active: SpeechHandle | None = None

    @property
    def options(self) -> UtteranceOptions:
        return self._options

    @property
    def is_speaking(self) -> bool:
        return self._active is not None and not self._active.done()

    def speak(self, text: str) -> SpeechHandle:
        """
        Start speaking ``text``. Must be called from a running event loop.
        """
        self.stop()

        options = self._options
        if options.voice is None:
            options = replace(options, voice=select_voice(self._engine.voices(), options.language))

        task = asyncio.get_running_loop().create_task(self._utter(text, options))
        handle = SpeechHandle(task, text)
        handle.add_done_callback(self._finished)
        self._active = handle
        return handle

    def stop(self) -> None:
        """Cancel the active utterance, if any."""
        active = self._active
        self._active = None
        if active is not None and not active.done():
            active.cancel()

    async def _utter(self, text: str, options: UtteranceOptions) -> Any:
        if self._on_start is not None:
            self._on_start(text)
        return await self._engine.say(text, options)

    def _finished(self, handle: SpeechHandle) -> None:
        if self._active is handle:
            self._active = None

        if handle.cancelled():
            if self._on_end is not None:
                self._on_end(handle.text)
            return

        error = handle.exception()
        if error is not None:
            logger.warning("Speech engine failed to read text aloud.", exc_info=error)
            if self._on_error is not None:
                self._on_error(handle.text, error)
            return

        if self._on_end is not None:
            self._on_end(handle.text)
