from pydantic import BaseModel, Field, field_validator


class StoryRequest(BaseModel):
    child_age: int = Field(gt=0, description="The age of the child the story is for.")
    story_theme: str = Field(description="The theme of the story.")

    @field_validator("story_theme")
    @classmethod
    def _theme_not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("story_theme must be a non-empty string.")
        return cleaned


class StoryResponse(BaseModel):
    title: str = Field(description="The title of the story.")
    story: str = Field(description="The generated story.")

    @field_validator("title", "story")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must be a non-empty string.")
        return cleaned
