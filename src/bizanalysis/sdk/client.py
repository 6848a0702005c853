"""Typed Python SDK for the strategic-analysis service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests  # type: ignore[import-untyped]
from pydantic import TypeAdapter

from bizanalysis.errors import ApiError, SnapshotNotFoundError
from bizanalysis.models import (
    BCGPoint,
    MarketIn,
    MarketOut,
    ProductCreate,
    ProductIn,
    ProductOut,
    Snapshot,
    SnapshotIn,
    SnapshotKind,
    SuggestSWOTIn,
    SWOTIn,
    SWOTSuggestion,
)
from bizanalysis.observability import redact_api_key

logger = logging.getLogger(__name__)

_POINTS = TypeAdapter(List[BCGPoint])
_SNAPSHOTS = TypeAdapter(List[Snapshot])
_MARKETS = TypeAdapter(List[MarketOut])
_PRODUCTS = TypeAdapter(List[ProductOut])


@dataclass
class BizConfig:
    """Configuration for :class:`BizClient`."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: Optional[float] = None

    @property
    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        env_value = os.getenv("BIZ_API_BASE_URL")
        if env_value:
            return env_value.rstrip("/")
        return "http://localhost:8000"

    @property
    def resolved_api_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        return os.getenv("BIZ_API_KEY") or None

    @property
    def resolved_timeout(self) -> float:
        if self.timeout is not None:
            return self.timeout
        env_value = os.getenv("BIZ_API_TIMEOUT")
        if env_value:
            try:
                return float(env_value)
            except ValueError:
                logger.warning("Ignoring non-numeric BIZ_API_TIMEOUT=%r", env_value)
        return 30.0


def _error_detail(response: Any) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return body["detail"]
    return body


class BizClient:
    """High-level synchronous client for the analysis service REST API."""

    def __init__(self, cfg: Optional[BizConfig] = None, session: Optional[requests.Session] = None):
        self.cfg = cfg or BizConfig()
        self._session = session or requests.Session()
        api_key = self.cfg.resolved_api_key
        if api_key:
            self._session.headers.setdefault("X-API-Key", api_key)
        logger.debug(
            "BizClient configured for %s (api key %s)", self.base_url, redact_api_key(api_key)
        )
        self.snapshots = SnapshotsClient(self)

    @property
    def base_url(self) -> str:
        return self.cfg.resolved_base_url

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: for transport failures, non-2xx responses and bodies
                that are not JSON.
        """

        url = f"{self.base_url}{path}"
        if isinstance(self._session, requests.Session):
            kwargs.setdefault("timeout", self.cfg.resolved_timeout)
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(
                f"{method} {path} failed: {exc}", method=method, path=path
            ) from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            raise ApiError(
                f"{method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
                detail=detail,
                method=method,
                path=path,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
                method=method,
                path=path,
            ) from exc

    def health(self) -> Dict[str, Any]:
        """Return the service health payload."""

        return self._request("GET", "/health")

    def compute_bcg(self, products: Sequence[ProductIn]) -> List[BCGPoint]:
        """Compute BCG points for the given products.

        Args:
            products: Inputs with shares as fractions and growth in percent.
        Returns:
            One :class:`BCGPoint` per product, as classified by the service.
        """

        body = [product.model_dump(mode="json") for product in products]
        return _POINTS.validate_python(self._request("POST", "/bcg", json=body))

    def _bulk_items(self, path: str, items: List[Dict[str, Any]]) -> Any:
        data = self._request("POST", path, json={"items": items})
        if not isinstance(data, dict):
            raise ApiError(
                f"POST {path} returned {type(data).__name__}, expected an object with items",
                detail=data,
                method="POST",
                path=path,
            )
        return data.get("items", [])

    def bulk_markets(self, markets: Sequence[MarketIn]) -> List[MarketOut]:
        """Create markets in one call and return them with server ids."""

        items = [market.model_dump(mode="json") for market in markets]
        return _MARKETS.validate_python(self._bulk_items("/markets/bulk", items))

    def bulk_products(self, products: Sequence[ProductCreate]) -> List[ProductOut]:
        """Create products in one call; each may reference a market id."""

        items = [product.model_dump(mode="json") for product in products]
        return _PRODUCTS.validate_python(self._bulk_items("/products/bulk", items))

    def preview_swot(self, swot: SWOTIn) -> Dict[str, Any]:
        return self._request("POST", "/swot", json=swot.model_dump(mode="json"))

    def suggest_swot(self, request: SuggestSWOTIn) -> SWOTSuggestion:
        """Ask the service for machine-generated SWOT items."""

        data = self._request(
            "POST", "/ai/suggest-swot", json=request.model_dump(mode="json", exclude_none=True)
        )
        return SWOTSuggestion.model_validate(data)


class SnapshotsClient:
    """Namespace for snapshot-related API helpers."""

    def __init__(self, client: BizClient):
        self._client = client

    def create(
        self, kind: SnapshotKind | str, payload: Dict[str, Any], note: Optional[str] = None
    ) -> Snapshot:
        body = SnapshotIn(kind=kind, payload=payload, note=note)
        data = self._client._request(
            "POST", "/snapshots", json=body.model_dump(mode="json", exclude_none=True)
        )
        return Snapshot.model_validate(data)

    def list(self, kind: SnapshotKind | str | None = None, limit: Optional[int] = None) -> List[Snapshot]:
        params: Dict[str, Any] = {}
        if kind is not None:
            params["kind"] = SnapshotKind(kind).value
        if limit is not None:
            params["limit"] = limit
        data = self._client._request("GET", "/snapshots", params=params)
        return _SNAPSHOTS.validate_python(data)

    def get(self, snapshot_id: str) -> Snapshot:
        """Fetch one snapshot.

        Raises:
            SnapshotNotFoundError: when the service answers 404.
        """

        path = f"/snapshots/{snapshot_id}"
        try:
            data = self._client._request("GET", path)
        except ApiError as exc:
            if exc.status_code == 404:
                raise SnapshotNotFoundError(
                    f"Snapshot {snapshot_id} not found",
                    status_code=404,
                    detail=exc.detail,
                    method="GET",
                    path=path,
                ) from exc
            raise
        return Snapshot.model_validate(data)
