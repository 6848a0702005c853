"""Client SDK for the strategic-analysis service."""
