"""
Prompt construction utilities for the bedtime story generation workflow.
"""

from __future__ import annotations

from dataclasses import dataclass

from .schemas import StoryRequest

DEFAULT_LENGTH_GUIDANCE = (
    "Keep it short enough to read aloud at bedtime: roughly 8-12 short sentences."
)

RESPONSE_FORMAT_GUIDANCE = (
    "Respond with valid JSON matching this schema:\n"
    '{"title": "string, the title of the story", "story": "string, the full story text"}\n'
    "Do not include commentary outside the JSON."
)


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the LLM.
    """

    system: str
    user: str


def build_daily_story_prompt(
    request: StoryRequest,
    *,
    length_guidance: str = DEFAULT_LENGTH_GUIDANCE,
) -> StoryPrompt:
    """
    Build the prompt pair used to solicit a bedtime story for a child's age and theme.
    """
    system_prompt = f"""You are a children's story writer. You generate a unique, age-appropriate story for a child.
The story should have simple vocabulary, an engaging plot, positive themes, and appropriate length for bedtime.

Writing directives:
- Match vocabulary and sentence length to the child's age.
- End every sentence with clear punctuation; each sentence becomes one illustrated page.
- Keep the tone calm and reassuring so the story winds down towards sleep.
- {length_guidance}

Safety guardrails:
- Avoid frightening peril, violence, or mature themes.
- Keep the language kind, inclusive, and safe for children.

{RESPONSE_FORMAT_GUIDANCE}"""

    user_prompt = f"""Age: {request.child_age}
Theme: {request.story_theme}

Write a story with the above criteria and respond with a title and the story."""

    return StoryPrompt(system=system_prompt, user=user_prompt)
