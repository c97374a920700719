"""
Runtime configuration for the bedtime story viewer.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_ILLUSTRATION_STYLE = "cartoonish, playful"

_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "BEDTIME_MAX_PAGES": ("max_pages", int),
    "BEDTIME_ILLUSTRATION_STYLE": ("illustration_style", str),
    "BEDTIME_MIN_CHILD_AGE": ("min_child_age", int),
    "BEDTIME_MAX_CHILD_AGE": ("max_child_age", int),
    "BEDTIME_FONT_SIZE": ("default_font_size", int),
    "BEDTIME_MIN_FONT_SIZE": ("min_font_size", int),
    "BEDTIME_MAX_FONT_SIZE": ("max_font_size", int),
    "BEDTIME_FONT_SIZE_STEP": ("font_size_step", int),
    "BEDTIME_SPEECH_LANGUAGE": ("speech_language", str),
    "BEDTIME_SPEECH_RATE": ("speech_rate", float),
}

_FIELD_TYPES: dict[str, type] = {attribute: caster for attribute, caster in _ENV_OVERRIDES.values()}


@dataclass(frozen=True)
class BedtimeConfig:
    """
    Configuration knobs for pagination, illustration and the viewer controls.

    Attributes
    ----------
    max_pages:
        Upper bound on the number of pages a story is split into. Extra sentences
        are dropped.
    illustration_style:
        Art style forwarded to the illustration provider for every page.
    min_child_age, max_child_age:
        Inclusive range of ages accepted by story generation.
    default_font_size, min_font_size, max_font_size, font_size_step:
        Font size used for a fresh session and the bounds/step of the size controls.
    speech_language:
        Preferred narration language tag (an English voice is used when absent).
    speech_rate:
        Narration speed multiplier.
    """

    max_pages: int = 10
    illustration_style: str = DEFAULT_ILLUSTRATION_STYLE
    min_child_age: int = 1
    max_child_age: int = 10
    default_font_size: int = 24
    min_font_size: int = 16
    max_font_size: int = 48
    font_size_step: int = 4
    speech_language: str = "en"
    speech_rate: float = 1.0

    def __post_init__(self) -> None:
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, received {self.max_pages}.")
        if not 1 <= self.min_child_age <= self.max_child_age:
            raise ValueError(
                "Child age range must satisfy 1 <= min_child_age <= max_child_age, "
                f"received {self.min_child_age}-{self.max_child_age}."
            )
        if not self.min_font_size <= self.default_font_size <= self.max_font_size:
            raise ValueError(
                f"default_font_size must fall between {self.min_font_size} and "
                f"{self.max_font_size}, received {self.default_font_size}."
            )
        if self.font_size_step < 1:
            raise ValueError("font_size_step must be a positive integer.")
        if not self.illustration_style.strip():
            raise ValueError("illustration_style must be a non-empty string.")
        if self.speech_rate <= 0:
            raise ValueError("speech_rate must be positive.")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BedtimeConfig":
        """
        Build a config from a dict-like object, rejecting unknown keys.

        Values are coerced to the field type (``"10"`` becomes ``10``); values that
        cannot be coerced raise ``ValueError``.
        """
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}.")

        values: dict[str, Any] = {}
        for key, raw in data.items():
            caster = _FIELD_TYPES[key]
            if isinstance(raw, bool) or raw is None:
                raise ValueError(f"Invalid value for {key}: {raw!r}")
            try:
                values[key] = raw if isinstance(raw, caster) else caster(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from exc
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path | str) -> "BedtimeConfig":
        """
        Load configuration from a YAML or JSON file.
        """
        data = _load_mapping_file(Path(path))
        return cls.from_mapping(data)

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> "BedtimeConfig":
        """
        Return a copy with ``BEDTIME_*`` environment variables applied.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for variable, (attribute, caster) in _ENV_OVERRIDES.items():
            raw = env.get(variable)
            if raw is None or not raw.strip():
                continue
            try:
                overrides[attribute] = caster(raw.strip())
            except ValueError as exc:
                raise ValueError(f"Invalid value for {variable}: {raw!r}") from exc
        return replace(self, **overrides) if overrides else self

    @classmethod
    def load(
        cls,
        path: Path | str | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> "BedtimeConfig":
        """
        Defaults, then the optional config file, then environment overrides.
        """
        base = cls.from_file(path) if path is not None else cls()
        return base.with_env_overrides(environ)


def _load_mapping_file(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported config file format. Use YAML or JSON.")

    if not isinstance(data, Mapping):
        raise ValueError("Config file must deserialize to a mapping.")
    return data
