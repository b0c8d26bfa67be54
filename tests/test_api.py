from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from firefly_sankey.app import create_app
from firefly_sankey.integration.firefly import FireflyConfigError


@pytest.fixture
def mock_firefly() -> AsyncMock:
    mock = AsyncMock()
    mock.configured = True
    mock.get_all_transactions.return_value = []
    return mock


@pytest.fixture
def client(mock_firefly: AsyncMock) -> Generator[TestClient, None, None]:
    with TestClient(create_app(firefly=mock_firefly)) as test_client:
        yield test_client


def _withdrawal(make_raw_transaction: Any) -> dict[str, Any]:
    return make_raw_transaction(
        "1",
        {
            "type": "withdrawal",
            "amount": "12.50",
            "source_name": "Checking",
            "destination_name": "Cafe",
            "category_name": "Coffee",
            "currency_code": "EUR",
        },
    )


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_get_sankey_json(
    client: TestClient, mock_firefly: AsyncMock, make_raw_transaction: Any
) -> None:
    mock_firefly.get_all_transactions.return_value = [_withdrawal(make_raw_transaction)]

    response = client.get(
        "/api/sankey",
        params={"period": "2024-01", "with_accounts": "true", "include_budgets": "false"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["metadata"]["startDate"] == "2024-01-01"
    assert data["metadata"]["endDate"] == "2024-01-31"
    assert data["metadata"]["currency"] == "EUR"
    assert [node["name"] for node in data["nodes"]] == ["All Funds", "Coffee", "Cafe"]
    assert [link["value"] for link in data["links"]] == [12.5, 12.5]
    kwargs = mock_firefly.get_all_transactions.call_args.kwargs
    assert kwargs["start"] == "2024-01-01"
    assert kwargs["end"] == "2024-01-31"


def test_get_sankey_applies_exclusions(
    client: TestClient, mock_firefly: AsyncMock, make_raw_transaction: Any
) -> None:
    mock_firefly.get_all_transactions.return_value = [_withdrawal(make_raw_transaction)]

    response = client.get(
        "/api/sankey",
        params={"start_date": "2024-01-01", "end_date": "2024-01-31", "exclude_accounts": "Cafe"},
    )

    assert response.status_code == 200
    assert response.json()["nodes"] == []


def test_get_sankey_sankeymatic_text(
    client: TestClient, mock_firefly: AsyncMock, make_raw_transaction: Any
) -> None:
    mock_firefly.get_all_transactions.return_value = [_withdrawal(make_raw_transaction)]

    response = client.get("/api/sankey/sankeymatic", params={"period": "2024", "include_url": "false"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "// Period: 2024-01-01 to 2024-12-31" in response.text
    assert "All Funds [12.50] [NO BUDGET]" in response.text
    assert "Direct Link" not in response.text


def test_get_sankey_readable_text(client: TestClient) -> None:
    response = client.get("/api/sankey/readable", params={"period": "2024-Q1"})

    assert response.status_code == 200
    assert response.text.startswith("Firefly III Sankey Diagram")
    assert "Nodes (0):" in response.text


@pytest.mark.parametrize(
    "params",
    [
        {"period": "someday"},
        {"start_date": "2024-02-01", "end_date": "2024-01-01"},
        {"start_date": "2024-13-01"},
    ],
)
def test_invalid_dates_return_400(client: TestClient, params: dict[str, str]) -> None:
    response = client.get("/api/sankey", params=params)

    assert response.status_code == 400


def test_validation_errors_return_422(client: TestClient) -> None:
    assert client.get("/api/sankey", params={"min_amount_account": "-5"}).status_code == 422
    assert client.get("/api/sankey/xml").status_code == 422


def test_unconfigured_firefly_returns_503(client: TestClient, mock_firefly: AsyncMock) -> None:
    mock_firefly.get_all_transactions.side_effect = FireflyConfigError("not configured")

    response = client.get("/api/sankey")

    assert response.status_code == 503
    assert response.json()["detail"] == "not configured"


def test_upstream_http_error_returns_502(client: TestClient, mock_firefly: AsyncMock) -> None:
    request = httpx.Request("GET", "http://firefly/api/v1/transactions")
    mock_firefly.get_all_transactions.side_effect = httpx.HTTPStatusError(
        "server error", request=request, response=httpx.Response(500, request=request)
    )

    response = client.get("/api/sankey")

    assert response.status_code == 502
    assert response.json()["detail"] == "Firefly III returned HTTP 500"


def test_network_error_returns_502(client: TestClient, mock_firefly: AsyncMock) -> None:
    mock_firefly.get_all_transactions.side_effect = httpx.ConnectError("refused")

    response = client.get("/api/sankey")

    assert response.status_code == 502


def test_invalid_amount_returns_502(
    client: TestClient, mock_firefly: AsyncMock, make_raw_transaction: Any
) -> None:
    mock_firefly.get_all_transactions.return_value = [
        make_raw_transaction("1", {"type": "withdrawal", "amount": "lots"})
    ]

    response = client.get("/api/sankey")

    assert response.status_code == 502
    assert "Invalid amount" in response.json()["detail"]


def test_lifespan_closes_client(mock_firefly: AsyncMock) -> None:
    with TestClient(create_app(firefly=mock_firefly)):
        pass

    mock_firefly.aclose.assert_awaited_once()
