"""
Per-session state owned by the presentation layer and mutated by the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator

import yaml

if TYPE_CHECKING:
    from bedtime_stories.speech import SpeechHandle


@dataclass(frozen=True)
class Story:
    """A generated story split into pages. Replaced wholesale, never edited."""

    title: str
    pages: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.pages:
            raise ValueError("A story must contain at least one page.")

    @property
    def page_count(self) -> int:
        return len(self.pages)


class IllustrationSet:
    """
    Sparse image references aligned by index with :attr:`Story.pages`.

    ``len()`` counts present entries; absent pages have no entry.
    """

    def __init__(self) -> None:
        self._entries: dict[int, str] = {}

    def get(self, page_index: int) -> str | None:
        return self._entries.get(page_index)

    def has(self, page_index: int) -> bool:
        return page_index in self._entries

    def set(self, page_index: int, image_url: str) -> None:
        if page_index < 0:
            raise IndexError(f"Page index must be non-negative, received {page_index}.")
        self._entries[page_index] = image_url

    def clear(self) -> None:
        self._entries.clear()

    def as_list(self, length: int) -> list[str | None]:
        return [self._entries.get(index) for index in range(length)]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, page_index: object) -> bool:
        return page_index in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._entries))


@dataclass
class ViewerState:
    """Viewer controls. ``is_busy`` is true while any provider call is outstanding."""

    current_page_index: int = 0
    is_narrating: bool = False
    font_size: int = 24
    pending_calls: int = 0

    @property
    def is_busy(self) -> bool:
        return self.pending_calls > 0


class StorySession:
    """
    Everything one reader session owns: the story, its illustrations and the viewer state.

    Generation tokens order competing story requests: each request takes a token when
    it starts and only the most recently committed token may write illustrations.
    """

    def __init__(self, *, font_size: int = 24) -> None:
        self.story: Story | None = None
        self.illustrations = IllustrationSet()
        self.viewer = ViewerState(font_size=font_size)
        self.narration: SpeechHandle | None = None
        self.committed_token = 0
        self._issued_tokens = 0

    def issue_token(self) -> int:
        self._issued_tokens += 1
        return self._issued_tokens

    def commit_story(self, story: Story, token: int) -> None:
        self.story = story
        self.illustrations.clear()
        self.viewer.current_page_index = 0
        self.committed_token = token

    def to_dict(self) -> dict[str, Any]:
        if self.story is None:
            return {"title": None, "pages": [], "current_page": None, "font_size": self.viewer.font_size}

        images = self.illustrations.as_list(self.story.page_count)
        return {
            "title": self.story.title,
            "pages": [
                {"page_number": index + 1, "text": text, "image_url": images[index]}
                for index, text in enumerate(self.story.pages)
            ],
            "current_page": self.viewer.current_page_index + 1,
            "font_size": self.viewer.font_size,
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)
