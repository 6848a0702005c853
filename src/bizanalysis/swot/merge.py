"""Duplicate-aware merge of suggested SWOT items into user-edited lists."""

from __future__ import annotations

import re
from typing import Iterable, List

from pydantic import BaseModel

from bizanalysis.models import SWOTIn, SWOTSuggestion

_LINE_BREAKS = re.compile(r"\n+")

SECTIONS = ("strengths", "weaknesses", "opportunities", "threats")


def to_list(text: str) -> List[str]:
    """Split newline-joined text into trimmed, non-empty items."""

    return [item.strip() for item in _LINE_BREAKS.split(text or "") if item.strip()]


def from_list(items: Iterable[str]) -> str:
    return "\n".join(items)


def is_duplicate(candidate: str, existing: Iterable[str]) -> bool:
    """Case-insensitive containment in either direction.

    "Strong brand" and "Strong brand recognition" count as the same item.
    Short items get no special treatment, so a suggestion such as "AI" is
    dropped when any existing item contains those letters.
    """

    needle = candidate.lower()
    for item in existing:
        other = item.lower()
        if needle in other or other in needle:
            return True
    return False


def merge(existing_text: str, suggested_items: Iterable[str]) -> str:
    """Append genuinely new suggestions to a newline-joined list.

    Existing items keep their order. Two rules go beyond a plain check
    against the saved list: each suggestion is trimmed before it is compared,
    and a suggestion accepted earlier in the same call counts as existing for
    later ones, so a batch cannot add near-duplicates of itself.
    """

    items = to_list(existing_text)
    for suggestion in suggested_items:
        candidate = (suggestion or "").strip()
        if not candidate or is_duplicate(candidate, items):
            continue
        items.append(candidate)
    return from_list(items)


class SwotDraft(BaseModel):
    """Editable SWOT text, one item per line in each section."""

    strengths: str = "Strong brand\nLow cost base"
    weaknesses: str = "Churn in SMB"
    opportunities: str = "APAC demand growing"
    threats: str = "Platform policy risk"

    def build(self) -> SWOTIn:
        return SWOTIn(**{section: to_list(getattr(self, section)) for section in SECTIONS})

    def merge_suggestion(self, suggestion: SWOTSuggestion) -> "SwotDraft":
        """Return a new draft with *suggestion* merged into every section."""

        return self.model_copy(
            update={
                section: merge(getattr(self, section), getattr(suggestion, section))
                for section in SECTIONS
            }
        )

    @classmethod
    def from_swot(cls, swot: SWOTIn) -> "SwotDraft":
        return cls(**{section: from_list(getattr(swot, section)) for section in SECTIONS})


__all__ = ["SECTIONS", "SwotDraft", "from_list", "is_duplicate", "merge", "to_list"]
