"""SWOT list editing helpers."""

from .merge import SwotDraft, from_list, is_duplicate, merge, to_list

__all__ = ["SwotDraft", "from_list", "is_duplicate", "merge", "to_list"]
