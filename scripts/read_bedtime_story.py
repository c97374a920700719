"""
Interactive terminal viewer: generate a bedtime story and page through it.

Usage:
    python scripts/read_bedtime_story.py --age 5 --theme "Adventure" \
        --audio-dir narration --output bedtime_story.yaml

Environment variables:
    OPENAI_API_KEY       - API key for the story model (or LITELLM_API_KEY)
    REPLICATE_API_TOKEN  - required for illustrations
    BEDTIME_*            - configuration overrides (see bedtime_stories.config)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv
from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bedtime_stories import (  # noqa: E402
    BedtimeConfig,
    BedtimeStoryOrchestrator,
    Notification,
    StorySession,
)
from bedtime_stories.ai_generation import ReplicateStoryIllustrator  # noqa: E402
from bedtime_stories.speech import (  # noqa: E402
    GTTSSpeechEngine,
    SpeechAnnouncer,
    SpeechHandle,
    UtteranceOptions,
)
from bedtime_stories.story_generation import DailyStoryGenerator  # noqa: E402

COMMANDS = """Commands:
  n  next page          p  previous page
  r  regenerate visual  a  read aloud / stop reading
  +  bigger text        -  smaller text
  g  new story          e  export to PDF
  s  save story         q  quit"""


class ProgressTracker:
    """
    Command-line progress updates while a story is written and illustrated.
    """

    def __init__(self) -> None:
        self._page_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "story:generating":
                self._write(
                    f"Writing a {payload.get('theme')} story for a "
                    f"{payload.get('age')}-year-old..."
                )
            case "story:generated":
                total = payload.get("total_pages", 0)
                self._write(f"\"{payload.get('title')}\" is ready ({total} pages). Illustrating...")
                self.close()
                self._page_bar = tqdm(total=total, desc="Illustrated pages", unit="page")
            case "page:illustrating":
                if self._page_bar is not None:
                    self._page_bar.set_description(f"Page {payload.get('page_index', 0) + 1}")
            case "page:illustrated" | "page:failed":
                if self._page_bar is not None:
                    self._page_bar.update(1)
            case "illustrations:complete":
                self.close()
                self._write(
                    f"Illustrated {payload.get('illustrated')} of {payload.get('total_pages')} pages."
                )

    def close(self) -> None:
        if self._page_bar is not None:
            self._page_bar.close()
            self._page_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def show_notification(notification: Notification) -> None:
    marker = "!!" if notification.variant == "destructive" else "--"
    tqdm.write(f"{marker} {notification.title}: {notification.description}")


def show_page(orchestrator: BedtimeStoryOrchestrator, session: StorySession) -> None:
    view = orchestrator.current_page(session)
    print()
    print(f"{view.title} - page {view.index + 1} of {view.total} (text size {view.font_size}px)")
    print(f"  {view.text}")
    print(f"  Illustration: {view.image_url or '(not generated yet)'}")


def announce_narration_file(handle: SpeechHandle) -> None:
    if handle.cancelled() or handle.exception() is not None:
        return
    tqdm.write(f"Narration audio: {handle.result()}")


async def ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def run_viewer(
    orchestrator: BedtimeStoryOrchestrator,
    session: StorySession,
    *,
    age: int,
    theme: str,
) -> None:
    await orchestrator.generate_story(session, age=age, theme=theme)
    if session.story is None:
        return

    print(COMMANDS)
    show_page(orchestrator, session)

    while True:
        try:
            command = (await ask("> ")).lower()
        except EOFError:
            break

        if command in {"q", "quit"}:
            break
        elif command in {"n", "next"}:
            await orchestrator.navigate(session, "next")
        elif command in {"p", "prev", "previous"}:
            await orchestrator.navigate(session, "previous")
        elif command in {"r", "regenerate"}:
            await orchestrator.regenerate_illustration(session)
        elif command in {"a", "read"}:
            handle = orchestrator.read_aloud(session)
            if handle is not None:
                handle.add_done_callback(announce_narration_file)
            continue
        elif command == "+":
            orchestrator.increase_font_size(session)
        elif command == "-":
            orchestrator.decrease_font_size(session)
        elif command in {"e", "export"}:
            orchestrator.export_pdf(session)
            continue
        elif command in {"s", "save"}:
            path = Path(await ask("Save to [bedtime_story.yaml]: ") or "bedtime_story.yaml")
            path.write_text(session.to_yaml(), encoding="utf-8")
            print(f"Saved story to {path}")
            continue
        elif command in {"g", "new"}:
            new_age = await ask(f"Child age [{age}]: ") or str(age)
            new_theme = await ask(f"Story theme [{theme}]: ") or theme
            if await orchestrator.generate_story(session, age=new_age, theme=new_theme):
                age, theme = int(new_age), new_theme
        else:
            print(COMMANDS)
            continue

        show_page(orchestrator, session)

    orchestrator.stop_reading(session)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate and read an illustrated bedtime story.")
    parser.add_argument("--age", type=int, default=5, help="Child's age (default: 5).")
    parser.add_argument("--theme", default="Adventure", help="Story theme (default: Adventure).")
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML/JSON configuration file.",
    )
    parser.add_argument(
        "--audio-dir",
        default="narration",
        help="Directory for read-aloud MP3 files (default: narration).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Optional YAML file to store the final story and illustration URLs.",
    )
    parser.add_argument(
        "--story-model",
        default=None,
        help="Override the LiteLLM model used to write the story.",
    )
    parser.add_argument(
        "--image-model",
        default=None,
        help="Override the Replicate model used for illustrations.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = BedtimeConfig.load(args.config)
    announcer = SpeechAnnouncer(
        GTTSSpeechEngine(args.audio_dir),
        options=UtteranceOptions(language=config.speech_language, rate=config.speech_rate),
    )
    tracker = ProgressTracker()
    orchestrator = BedtimeStoryOrchestrator(
        story_generator=DailyStoryGenerator(model=args.story_model),
        illustrator=ReplicateStoryIllustrator(model_identifier=args.image_model),
        config=config,
        announcer=announcer,
        notifier=show_notification,
        progress_callback=tracker,
    )
    session = orchestrator.new_session()

    try:
        asyncio.run(run_viewer(orchestrator, session, age=args.age, theme=args.theme))
    finally:
        tracker.close()

    if args.output and session.story is not None:
        output_path = Path(args.output)
        output_path.write_text(session.to_yaml(), encoding="utf-8")
        print(f"Saved story to {output_path}")
    return 0 if session.story is not None else 1


if __name__ == "__main__":
    raise SystemExit(main())
