"""
AI image generation package: the illustration provider.
"""

from .prompting import IllustrationPrompt, build_illustration_prompt
from .replicate_service import ReplicateStoryIllustrator, normalize_image_outputs
from .schemas import IllustrationRequest, IllustrationResponse

__all__ = [
    "IllustrationPrompt",
    "IllustrationRequest",
    "IllustrationResponse",
    "ReplicateStoryIllustrator",
    "build_illustration_prompt",
    "normalize_image_outputs",
]
