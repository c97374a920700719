"""
Prompt construction utilities for bedtime story illustrations.
"""

from __future__ import annotations

from dataclasses import dataclass

from bedtime_stories.config import DEFAULT_ILLUSTRATION_STYLE

NEGATIVE_PROMPT = (
    "scary, violent, gore, dark horror atmosphere, harsh shadows, distorted anatomy, "
    "extra limbs, cluttered background, watermark, text, letters, logo"
)


@dataclass(frozen=True)
class IllustrationPrompt:
    """Container for the positive and negative prompts passed to the image model."""

    positive: str
    negative: str = NEGATIVE_PROMPT


def build_illustration_prompt(
    story_text: str,
    *,
    style: str | None = None,
) -> IllustrationPrompt:
    """
    Build the prompt used to illustrate a single story page.

    Parameters
    ----------
    story_text:
        Text of the page; the illustration depicts this scene.
    style:
        Art style for the illustration. Falls back to the default playful cartoon look.
    """
    if not story_text or not story_text.strip():
        raise ValueError("story_text must be a non-empty string.")

    art_style = style.strip() if style and style.strip() else DEFAULT_ILLUSTRATION_STYLE

    positive_prompt = f"""TASK
Create a children's picture-book illustration that depicts the scene below.

SCENE
- {story_text.strip()}
- Characters and setting come from the scene text; keep the main character as the clear focal point.

ART DIRECTION
- Art style: {art_style}.
- Soft, warm bedtime palette; gentle lighting; rounded friendly shapes.
- Wholesome, comforting mood suitable for young children.

RENDERING
- Clean composition with a simple background that supports the story moment.
- No written words, captions, or logos in the image."""

    return IllustrationPrompt(positive=positive_prompt)
