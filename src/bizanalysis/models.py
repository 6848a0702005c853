"""Pydantic models for the analysis service payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bizanalysis.bcg.quadrant import Quadrant, classify


class BCGPoint(BaseModel):
    """A product placed on the growth/share matrix."""

    name: str
    rms: float = Field(..., description="Relative market share (own share / largest rival share)")
    growth: float = Field(..., description="Market growth rate in percent")
    quadrant: Quadrant

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _derive_missing_quadrant(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("quadrant") is None:
            try:
                rms = float(data["rms"])
                growth = float(data["growth"])
            except (KeyError, TypeError, ValueError):
                return data
            data = {**data, "quadrant": classify(rms, growth)}
        return data


class ProductIn(BaseModel):
    """Input row for ``POST /bcg``. Shares are fractions, growth is a percent."""

    name: str
    market_share: float
    largest_rival_share: float
    market_growth_rate: float

    model_config = ConfigDict(extra="forbid")


class MarketIn(BaseModel):
    name: str
    growth_rate: float

    model_config = ConfigDict(extra="forbid")


class MarketOut(BaseModel):
    id: str
    name: str
    growth_rate: Optional[float] = None

    model_config = ConfigDict(extra="allow")


class ProductCreate(BaseModel):
    name: str
    market_id: Optional[str] = None
    market_share: float
    largest_rival_share: float

    model_config = ConfigDict(extra="forbid")


class ProductOut(BaseModel):
    id: str
    name: str
    market_id: Optional[str] = None
    market_share: Optional[float] = None
    largest_rival_share: Optional[float] = None

    model_config = ConfigDict(extra="allow")


class ImportRow(BaseModel):
    """A validated row of a tabular upload. Share fields are percentages."""

    product_name: str
    market_name: str
    market_growth_rate: float
    market_share_percent: float
    largest_rival_share_percent: float

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_product_in(self) -> ProductIn:
        return ProductIn(
            name=self.product_name,
            market_share=self.market_share_percent / 100,
            largest_rival_share=self.largest_rival_share_percent / 100,
            market_growth_rate=self.market_growth_rate,
        )

    def to_product_create(self, market_id: Optional[str]) -> ProductCreate:
        return ProductCreate(
            name=self.product_name,
            market_id=market_id,
            market_share=self.market_share_percent / 100,
            largest_rival_share=self.largest_rival_share_percent / 100,
        )


class SnapshotKind(str, Enum):
    """Analysis types a snapshot can capture."""

    BCG = "BCG"
    SWOT = "SWOT"
    PESTLE = "PESTLE"
    PORTER = "PORTER"
    VRIO = "VRIO"
    ANSOFF = "ANSOFF"


class SnapshotIn(BaseModel):
    kind: SnapshotKind
    payload: Dict[str, Any]
    note: Optional[str] = None


class Snapshot(BaseModel):
    """Immutable, server-persisted capture of one analysis payload."""

    id: str
    kind: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(frozen=True, extra="allow")


class SWOTIn(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    threats: List[str] = Field(default_factory=list)


class SWOTSuggestion(BaseModel):
    """Response of ``POST /ai/suggest-swot``."""

    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    threats: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class SuggestMarket(BaseModel):
    name: str
    growth_rate: float


class SuggestProduct(BaseModel):
    name: str
    market_share: float
    largest_rival_share: float


class SuggestSWOTIn(BaseModel):
    """Context sent to ``POST /ai/suggest-swot``."""

    company: Optional[str] = None
    industry: Optional[str] = None
    markets: List[SuggestMarket] = Field(default_factory=list)
    products: List[SuggestProduct] = Field(default_factory=list)
    points: List[BCGPoint] = Field(default_factory=list)


__all__ = [
    "BCGPoint",
    "ImportRow",
    "MarketIn",
    "MarketOut",
    "ProductCreate",
    "ProductIn",
    "ProductOut",
    "SWOTIn",
    "SWOTSuggestion",
    "Snapshot",
    "SnapshotIn",
    "SnapshotKind",
    "SuggestMarket",
    "SuggestProduct",
    "SuggestSWOTIn",
]
