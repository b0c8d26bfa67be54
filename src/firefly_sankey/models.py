from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from firefly_sankey.domain.tags import normalize_tags


class TransactionSplit(BaseModel):
    """One leg of a Firefly III transaction group."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str
    amount: str
    source_name: str = ""
    destination_name: str = ""
    category_name: str | None = None
    budget_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    currency_code: str = "EUR"
    description: str = ""
    date: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> str:
        # Firefly sends strings; tests and callers sometimes pass numbers
        return "" if value is None else str(value)

    @field_validator("source_name", "destination_name", mode="before")
    @classmethod
    def _name_or_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> list[str]:
        return normalize_tags(value)


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    splits: list[TransactionSplit] = Field(default_factory=list)


class NodeType(str, Enum):
    REVENUE = "revenue"
    ASSET = "asset"
    EXPENSE = "expense"
    CATEGORY = "category"
    BUDGET = "budget"


class SankeyNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    type: NodeType


class SankeyLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: int
    target: int
    value: float
    currency: str


class SankeyMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    generated_at: str = Field(alias="generatedAt")
    currency: str


class SankeyDiagram(BaseModel):
    nodes: list[SankeyNode]
    links: list[SankeyLink]
    metadata: SankeyMetadata


class SankeyOptions(BaseModel):
    """Graph construction settings. Thresholds of ``None`` or ``0`` are disabled."""

    start_date: str = ""
    end_date: str = ""
    with_accounts: bool = False
    with_assets: bool = False
    include_categories: bool = True
    include_budgets: bool = True
    exclude_accounts: list[str] = Field(default_factory=list)
    exclude_categories: list[str] = Field(default_factory=list)
    exclude_budgets: list[str] = Field(default_factory=list)
    include_tags: list[str] = Field(default_factory=list)
    exclude_tags: list[str] = Field(default_factory=list)
    min_amount_transaction: float | None = None
    min_amount_account: float | None = None
    min_account_grouping_amount: float | None = None
    min_category_grouping_amount: float | None = None


@dataclass
class FlowGraph:
    nodes: list[SankeyNode] = field(default_factory=list)
    links: list[SankeyLink] = field(default_factory=list)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
