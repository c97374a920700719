"""
gTTS-backed speech engine that renders each utterance to an MP3 file.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Sequence

from gtts import gTTS
from gtts.lang import tts_langs

from .announcer import UtteranceOptions, Voice

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


class GTTSSpeechEngine:
    """
    Speech engine using Google Translate's TTS through gTTS.

    Parameters
    ----------
    output_dir:
        Directory that receives the rendered MP3 files. Identical utterances reuse
        the same file.
    tld:
        Google domain used for the accent (e.g., ``"co.uk"``).
    """

    def __init__(self, output_dir: Path | str, *, tld: str = "com") -> None:
        self._output_dir = Path(output_dir).expanduser()
        self._tld = tld
        self._voices: tuple[Voice, ...] | None = None

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def voices(self) -> Sequence[Voice]:
        if self._voices is None:
            self._voices = tuple(
                Voice(id=code, name=name, language=code)
                for code, name in sorted(tts_langs().items())
            )
        return self._voices

    async def say(self, text: str, options: UtteranceOptions) -> Path:
        """
        Render ``text`` and return the path of the MP3 file.

        Only the voice language and a slow mode for ``rate < 1`` are supported;
        pitch and volume are ignored.
        """
        language = options.voice.id if options.voice is not None else DEFAULT_LANGUAGE
        slow = options.rate < 1.0
        digest = hashlib.sha1(f"{language}|{slow}|{self._tld}|{text}".encode("utf-8")).hexdigest()
        target = self._output_dir / f"utterance-{digest[:16]}.mp3"

        if target.exists():
            return target

        await asyncio.to_thread(self._render, text, language, slow, target)
        logger.debug("Rendered narration to %s", target)
        return target

    def _render(self, text: str, language: str, slow: bool, target: Path) -> None:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        partial = target.with_suffix(".part")
        gTTS(text=text, lang=language, slow=slow, tld=self._tld).save(str(partial))
        partial.replace(target)
