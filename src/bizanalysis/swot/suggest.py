"""Build the AI suggestion request from BCG points and merge its answer."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from bizanalysis.models import (
    BCGPoint,
    SuggestMarket,
    SuggestProduct,
    SuggestSWOTIn,
    SWOTSuggestion,
)
from bizanalysis.observability import log_event
from bizanalysis.swot.merge import SECTIONS, SwotDraft

# Rival share is not part of a BCG point; the service only needs a rough value.
RIVAL_SHARE_FACTOR = 0.8
RIVAL_SHARE_FLOOR = 0.1


class SuggestBackend(Protocol):
    def suggest_swot(self, request: SuggestSWOTIn) -> SWOTSuggestion: ...


def build_suggest_request(
    points: Sequence[BCGPoint],
    company: Optional[str] = None,
    industry: Optional[str] = None,
) -> SuggestSWOTIn:
    return SuggestSWOTIn(
        company=company,
        industry=industry,
        points=list(points),
        markets=[SuggestMarket(name=point.name, growth_rate=point.growth) for point in points],
        products=[
            SuggestProduct(
                name=point.name,
                market_share=point.rms,
                largest_rival_share=max(point.rms * RIVAL_SHARE_FACTOR, RIVAL_SHARE_FLOOR),
            )
            for point in points
        ],
    )


def suggest_and_merge(
    backend: SuggestBackend,
    draft: SwotDraft,
    points: Sequence[BCGPoint] = (),
    company: Optional[str] = None,
    industry: Optional[str] = None,
) -> SwotDraft:
    """Fetch suggestions for *points* and merge them into *draft*."""

    request = build_suggest_request(points, company=company, industry=industry)
    suggestion = backend.suggest_swot(request)
    merged = draft.merge_suggestion(suggestion)
    before, after = draft.build(), merged.build()
    added = {section: len(getattr(after, section)) - len(getattr(before, section)) for section in SECTIONS}
    log_event("swot.suggestions.merged", **added)
    return merged


__all__ = ["build_suggest_request", "suggest_and_merge"]
