from typing import Annotated

from fastapi import HTTPException, Query, Request

from firefly_sankey.core import settings
from firefly_sankey.domain.periods import resolve_date_range
from firefly_sankey.domain.tags import parse_tag_list
from firefly_sankey.integration.firefly import FireflyClient
from firefly_sankey.models import SankeyOptions


def get_firefly(request: Request) -> FireflyClient:
    firefly = getattr(request.app.state, "firefly", None)
    if not firefly:
        raise HTTPException(status_code=500, detail="Firefly client not initialized")
    return firefly


def get_options(
    start_date: str | None = None,
    end_date: str | None = None,
    period: str | None = None,
    with_accounts: bool | None = None,
    with_assets: bool | None = None,
    include_categories: bool | None = None,
    include_budgets: bool | None = None,
    exclude_accounts: Annotated[str | None, Query(description="Comma-separated names")] = None,
    exclude_categories: Annotated[str | None, Query(description="Comma-separated names")] = None,
    exclude_budgets: Annotated[str | None, Query(description="Comma-separated names")] = None,
    include_tags: Annotated[str | None, Query(description="Comma-separated tags")] = None,
    exclude_tags: Annotated[str | None, Query(description="Comma-separated tags")] = None,
    min_amount_transaction: Annotated[float | None, Query(ge=0)] = None,
    min_amount_account: Annotated[float | None, Query(ge=0)] = None,
    min_account_grouping_amount: Annotated[float | None, Query(ge=0)] = None,
    min_category_grouping_amount: Annotated[float | None, Query(ge=0)] = None,
) -> SankeyOptions:
    try:
        date_range = resolve_date_range(start_date, end_date, period)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    def _list(raw: str | None) -> list[str] | None:
        return parse_tag_list(raw) if raw is not None else None

    return settings.default_options(
        start_date=date_range.start,
        end_date=date_range.end,
        with_accounts=with_accounts,
        with_assets=with_assets,
        include_categories=include_categories,
        include_budgets=include_budgets,
        exclude_accounts=_list(exclude_accounts),
        exclude_categories=_list(exclude_categories),
        exclude_budgets=_list(exclude_budgets),
        include_tags=_list(include_tags),
        exclude_tags=_list(exclude_tags),
        min_amount_transaction=min_amount_transaction,
        min_amount_account=min_amount_account,
        min_account_grouping_amount=min_account_grouping_amount,
        min_category_grouping_amount=min_category_grouping_amount,
    )
