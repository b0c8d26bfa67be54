from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal, InvalidOperation
from typing import Any

from firefly_sankey.models import Transaction, TransactionSplit


class InvalidAmountError(ValueError):
    def __init__(self, raw: Any) -> None:
        super().__init__(f"Invalid amount: {raw!r}")
        self.raw = raw


def parse_amount(raw: Any) -> Decimal:
    """Parse a Firefly amount string. Never returns NaN or infinity."""
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip() if raw is not None else ""
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(raw) from None
    if not value.is_finite():
        raise InvalidAmountError(raw)
    return value


def absolute_amount(split: TransactionSplit) -> Decimal:
    return abs(parse_amount(split.amount))


def build_transaction(t_data: dict[str, Any]) -> Transaction:
    """Convert one JSON:API transaction group from Firefly III."""
    attrs = t_data.get("attributes") or {}
    raw_splits = attrs.get("transactions") or []
    splits = [
        TransactionSplit.model_validate(raw)
        for raw in raw_splits
        if isinstance(raw, dict)
    ]
    tx_id = t_data.get("id")
    return Transaction(id=str(tx_id) if tx_id is not None else None, splits=splits)


def build_transactions(raw_txs: Iterable[dict[str, Any]]) -> list[Transaction]:
    return [build_transaction(t_data) for t_data in raw_txs]


def iter_splits(
    items: Iterable[Transaction | TransactionSplit | dict[str, Any]],
) -> Iterator[TransactionSplit]:
    """Flatten groups, bare splits and raw payloads into splits, in order."""
    for item in items:
        if isinstance(item, TransactionSplit):
            yield item
        elif isinstance(item, Transaction):
            yield from item.splits
        elif isinstance(item, dict):
            if "attributes" in item:
                yield from build_transaction(item).splits
            else:
                yield TransactionSplit.model_validate(item)
        else:
            raise TypeError(f"Unsupported transaction item: {type(item).__name__}")
