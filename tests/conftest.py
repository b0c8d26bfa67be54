from collections.abc import Callable
from typing import Any

import pytest

from firefly_sankey.models import TransactionSplit

SplitFactory = Callable[..., TransactionSplit]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def build_split(**overrides: Any) -> TransactionSplit:
    values: dict[str, Any] = {
        "type": "withdrawal",
        "amount": "100.00",
        "source_name": "Checking",
        "destination_name": "Store",
        "category_name": None,
        "budget_name": None,
        "tags": [],
        "currency_code": "USD",
    }
    values.update(overrides)
    return TransactionSplit(**values)


@pytest.fixture
def make_split() -> SplitFactory:
    return build_split


def raw_transaction(tx_id: str, *splits: dict[str, Any]) -> dict[str, Any]:
    """A transaction group shaped like the Firefly III JSON:API response."""
    return {
        "type": "transactions",
        "id": tx_id,
        "attributes": {
            "created_at": "2024-01-01T00:00:00Z",
            "group_title": None,
            "transactions": list(splits),
        },
    }


@pytest.fixture
def make_raw_transaction() -> Callable[..., dict[str, Any]]:
    return raw_transaction
