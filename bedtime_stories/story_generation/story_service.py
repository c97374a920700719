"""
Service layer for producing bedtime stories via LiteLLM-compatible models.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

from pydantic import ValidationError

from bedtime_stories.common import (
    ChatResult,
    CompletionCallable,
    GenerationFailure,
    acall_chat_completion,
)

from .prompting import StoryPrompt, build_daily_story_prompt
from .schemas import StoryRequest, StoryResponse

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class DailyStoryGenerator:
    """
    Turns a child's age and a theme into a titled bedtime story.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("BEDTIME_STORY_MODEL")
            or os.getenv("LITELLM_STORY_MODEL")
            or os.getenv("LITELLM_MODEL")
            or "gpt-4.1-mini"
        )
        self._completion_fn: CompletionCallable = completion_fn or acall_chat_completion

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    async def generate_story(
        self,
        request: StoryRequest,
        *,
        temperature: float = 0.8,
        max_output_tokens: int = 1200,
        **response_kwargs: Any,
    ) -> StoryResponse:
        """
        Invoke the configured LLM and return the validated title and story.

        Raises
        ------
        GenerationFailure
            If the call fails or the response is not a usable ``{title, story}`` payload.
        """
        prompt: StoryPrompt = build_daily_story_prompt(request)

        messages = [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": prompt.user},
        ]

        try:
            result: ChatResult = await self._completion_fn(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_output_tokens,
                api_key=self._api_key,
                **response_kwargs,
            )
        except Exception as exc:
            raise GenerationFailure(f"Story model call failed: {exc}") from exc

        if not result.text:
            raise GenerationFailure("LLM response did not contain any text content.")

        payload = _parse_story_json(result.text)
        try:
            return StoryResponse.model_validate(payload)
        except ValidationError as exc:
            raise GenerationFailure(f"Story response did not match the schema: {exc}") from exc


def _parse_story_json(raw_text: str) -> dict[str, Any]:
    text = raw_text.strip()
    fenced = _FENCED_JSON.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.debug("Unparseable story response: %.200s", raw_text)
        raise GenerationFailure("Failed to parse story response as JSON.") from exc

    if not isinstance(parsed, dict):
        raise GenerationFailure("Story response JSON must be an object.")
    return parsed
