from pydantic import BaseModel, Field, field_validator

from bedtime_stories.config import DEFAULT_ILLUSTRATION_STYLE


class IllustrationRequest(BaseModel):
    story_text: str = Field(description="The text content of the story page.")
    style: str = Field(
        default=DEFAULT_ILLUSTRATION_STYLE,
        description="The art style for the illustration.",
    )

    @field_validator("story_text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("story_text must be a non-empty string.")
        return cleaned


class IllustrationResponse(BaseModel):
    image_url: str = Field(description="The URL of the generated image.")
