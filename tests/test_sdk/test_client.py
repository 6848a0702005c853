import pytest
import requests

from bizanalysis.errors import ApiError, SnapshotNotFoundError
from bizanalysis.models import MarketIn, ProductIn, SnapshotKind, SWOTIn
from bizanalysis.sdk.client import BizClient, BizConfig


def test_sdk_client_roundtrip(client, service):
    assert client.health() == {"status": "ok"}

    points = client.compute_bcg(
        [ProductIn(name="Alpha", market_share=0.30, largest_rival_share=0.25, market_growth_rate=14)]
    )
    assert points[0].name == "Alpha"
    assert points[0].quadrant.value == "Star"

    markets = client.bulk_markets([MarketIn(name="US SMB HR", growth_rate=14)])
    assert markets[0].id
    assert markets[0].name == "US SMB HR"

    snapshot = client.snapshots.create(SnapshotKind.BCG, {"points": [p.model_dump(mode="json") for p in points]})
    assert snapshot.kind == "BCG"
    assert snapshot.note is None
    assert client.snapshots.get(snapshot.id) == snapshot

    listed = client.snapshots.list(kind="BCG", limit=5)
    assert [s.id for s in listed] == [snapshot.id]
    assert client.snapshots.list(kind=SnapshotKind.SWOT) == []

    preview = client.preview_swot(SWOTIn(strengths=["a", "b"]))
    assert preview["counts"]["strengths"] == 2


def test_unknown_snapshot_is_a_lookup_error(client):
    with pytest.raises(SnapshotNotFoundError) as exc_info:
        client.snapshots.get("does-not-exist")

    assert isinstance(exc_info.value, LookupError)
    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Snapshot not found"


def test_error_status_raises_api_error(client, service):
    service.failing.add("/health")
    with pytest.raises(ApiError) as exc_info:
        client.health()
    assert exc_info.value.status_code == 503
    assert exc_info.value.path == "/health"


class _RefusingSession(requests.Session):
    def request(self, method, url, *args, **kwargs):
        raise requests.ConnectionError(f"connection refused: {url}")


def test_transport_failure_raises_api_error():
    client = BizClient(cfg=BizConfig(base_url="http://offline.invalid"), session=_RefusingSession())
    with pytest.raises(ApiError) as exc_info:
        client.health()
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


def test_config_resolution(monkeypatch):
    monkeypatch.setenv("BIZ_API_BASE_URL", "https://api.example.test/")
    monkeypatch.setenv("BIZ_API_KEY", "secret-key")
    monkeypatch.setenv("BIZ_API_TIMEOUT", "5")
    cfg = BizConfig()
    assert cfg.resolved_base_url == "https://api.example.test"
    assert cfg.resolved_api_key == "secret-key"
    assert cfg.resolved_timeout == 5.0

    explicit = BizConfig(base_url="http://localhost:9000", api_key="k", timeout=1.5)
    assert explicit.resolved_base_url == "http://localhost:9000"
    assert explicit.resolved_api_key == "k"
    assert explicit.resolved_timeout == 1.5


def test_config_defaults(monkeypatch):
    for name in ("BIZ_API_BASE_URL", "BIZ_API_KEY", "BIZ_API_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    cfg = BizConfig()
    assert cfg.resolved_base_url == "http://localhost:8000"
    assert cfg.resolved_api_key is None
    assert cfg.resolved_timeout == 30.0


def test_api_key_header_is_set(monkeypatch):
    monkeypatch.delenv("BIZ_API_KEY", raising=False)
    session = requests.Session()
    BizClient(cfg=BizConfig(api_key="secret-key"), session=session)
    assert session.headers["X-API-Key"] == "secret-key"

    bare = requests.Session()
    BizClient(cfg=BizConfig(), session=bare)
    assert "X-API-Key" not in bare.headers


def test_bulk_body_must_be_an_object(client, service):
    service.raw_bodies["/products/bulk"] = [{"id": "p1", "name": "Alpha"}]
    with pytest.raises(ApiError) as exc_info:
        client.bulk_products([])
    assert exc_info.value.path == "/products/bulk"
    assert exc_info.value.detail == [{"id": "p1", "name": "Alpha"}]
