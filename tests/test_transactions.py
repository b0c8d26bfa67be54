from decimal import Decimal

import pytest

from firefly_sankey.domain.tags import normalize_tags, parse_tag_list
from firefly_sankey.domain.timefmt import format_duration
from firefly_sankey.domain.transactions import (
    InvalidAmountError,
    absolute_amount,
    build_transactions,
    iter_splits,
    parse_amount,
)
from firefly_sankey.models import Transaction


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("100.00", Decimal("100.00")),
        (" -45.5 ", Decimal("-45.5")),
        (12, Decimal("12")),
        ("0", Decimal("0")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", None, "NaN", "Infinity", "-inf"])
def test_parse_amount_rejects(raw):
    with pytest.raises(InvalidAmountError, match="Invalid amount"):
        parse_amount(raw)


def test_absolute_amount(make_split):
    assert absolute_amount(make_split(amount="-19.99")) == Decimal("19.99")


def test_split_normalizes_fields(make_split):
    split = make_split(amount=12.5, source_name=None, tags="a, b,,a")

    assert split.amount == "12.5"
    assert split.source_name == ""
    assert split.tags == ["a", "b"]


def test_build_transactions_reads_json_api(make_raw_transaction):
    raw = make_raw_transaction(
        "7",
        {"type": "withdrawal", "amount": "5.00", "source_name": "Checking", "destination_name": "Cafe"},
        {"type": "withdrawal", "amount": "2.50", "source_name": "Checking", "destination_name": "Bakery"},
    )

    [transaction] = build_transactions([raw])

    assert transaction.id == "7"
    assert [split.destination_name for split in transaction.splits] == ["Cafe", "Bakery"]
    assert transaction.splits[0].currency_code == "EUR"


def test_iter_splits_flattens_mixed_input(make_split, make_raw_transaction):
    first = make_split(destination_name="A")
    second = make_split(destination_name="B")
    raw = make_raw_transaction("1", {"type": "deposit", "amount": "1", "source_name": "C"})
    bare = {"type": "withdrawal", "amount": "3", "destination_name": "D"}

    splits = list(iter_splits([first, Transaction(id="x", splits=[second]), raw, bare]))

    assert [s.destination_name or s.source_name for s in splits] == ["A", "B", "C", "D"]


def test_iter_splits_rejects_unknown_items():
    with pytest.raises(TypeError, match="Unsupported transaction item"):
        list(iter_splits([42]))


def test_tag_helpers():
    assert parse_tag_list(" a, b ,, a ") == ["a", "b"]
    assert parse_tag_list(None) == []
    assert normalize_tags(["x", " y ", "x", ""]) == ["x", "y"]
    assert normalize_tags(5) == []


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0 ms"), (0.25, "250.0 ms"), (3.456, "3.46 s"), (125, "2 min 5.0 s")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
