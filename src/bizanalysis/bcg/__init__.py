"""BCG growth/share matrix: classification, comparison and bulk import."""

from .quadrant import CONTRACT_CASES, DEFAULT_CONTRACT, Quadrant, classify

__all__ = ["CONTRACT_CASES", "DEFAULT_CONTRACT", "Quadrant", "classify"]
