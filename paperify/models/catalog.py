"""
paperify/models/catalog.py

Curriculum catalog names.

Syllabus files spell a subject or chapter name either as a plain string or
as an {"en": ..., "ur": ...} pair. Both are parsed into `LocalizedText` and
read through `.text`, which prefers the English form.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Plain:
    value: str

    @property
    def en(self) -> str:
        return self.value

    @property
    def ur(self) -> str:
        return ""

    @property
    def text(self) -> str:
        return self.value


@dataclass(frozen=True)
class Bilingual:
    en: Optional[str]
    ur: Optional[str]

    @property
    def text(self) -> Optional[str]:
        return self.en or self.ur or None


LocalizedText = Union[Plain, Bilingual]


def parse_localized(raw: Any) -> Optional[LocalizedText]:
    if isinstance(raw, str):
        return Plain(raw)
    if isinstance(raw, dict):
        en = raw.get("en")
        ur = raw.get("ur")
        return Bilingual(
            en=en if isinstance(en, str) else None,
            ur=ur if isinstance(ur, str) else None,
        )
    return None


def localized_text(raw: Any) -> Optional[str]:
    """Display text of a raw name, or None when it carries no usable text."""
    parsed = parse_localized(raw)
    return parsed.text if parsed else None


def normalize_name(value: Optional[str]) -> str:
    """Case-insensitive, whitespace-trimmed matching key."""
    return (value or "").strip().lower()
