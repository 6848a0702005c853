"""Shared fixtures: a fake analysis service and a client bound to it."""

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from bizanalysis.sdk.client import BizClient, BizConfig
from tests.helpers.fake_service import FakeService


@pytest.fixture()
def service() -> FakeService:
    return FakeService()


@pytest.fixture()
def http(service) -> Iterator[TestClient]:
    with TestClient(service.app) as session:
        yield session


@pytest.fixture()
def client(http, monkeypatch) -> BizClient:
    monkeypatch.delenv("BIZ_API_KEY", raising=False)
    return BizClient(cfg=BizConfig(base_url="http://testserver"), session=http)


@pytest.fixture()
def sample_rows():
    return [
        {
            "product_name": "Alpha",
            "market_name": "US SMB HR",
            "market_growth_rate": "14",
            "market_share_percent": "30",
            "largest_rival_share_percent": "25",
        },
        {
            "product_name": "Beta",
            "market_name": "US SMB HR",
            "market_growth_rate": "9",
            "market_share_percent": "18",
            "largest_rival_share_percent": "35",
        },
        {
            "product_name": "Gamma",
            "market_name": "EU Payroll",
            "market_growth_rate": "6",
            "market_share_percent": "42",
            "largest_rival_share_percent": "28",
        },
    ]
