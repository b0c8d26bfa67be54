from collections.abc import Iterable
from typing import Any

from firefly_sankey.domain.transactions import iter_splits
from firefly_sankey.logger import get_logger
from firefly_sankey.models import (
    SankeyDiagram,
    SankeyMetadata,
    SankeyOptions,
    Transaction,
    TransactionSplit,
    utc_timestamp,
)
from firefly_sankey.sankey.builder import FlowGraphBuilder
from firefly_sankey.sankey.duplicates import identify_duplicates, most_common_currency
from firefly_sankey.sankey.filters import filter_accounts_by_amount, is_candidate
from firefly_sankey.sankey.groups import group_small_nodes

logger = get_logger(__name__)


class SankeyProcessor:
    """Turns a list of transactions into a ``SankeyDiagram``.

    One instance may be reused; every call works on fresh state.
    """

    def __init__(self, options: SankeyOptions | None = None) -> None:
        self.options = options or SankeyOptions()

    def process_transactions(
        self,
        transactions: Iterable[Transaction | TransactionSplit | dict[str, Any]],
    ) -> SankeyDiagram:
        options = self.options
        splits = list(iter_splits(transactions))
        candidates = [split for split in splits if is_candidate(split, options)]

        duplicates = identify_duplicates(candidates, options)
        builder = FlowGraphBuilder(options, duplicates)
        builder.add_splits(candidates)
        graph = builder.build()
        logger.debug(
            "[SANKEY] Built %d nodes and %d links from %d/%d splits.",
            len(graph.nodes),
            len(graph.links),
            len(candidates),
            len(splits),
        )

        if options.min_account_grouping_amount or options.min_category_grouping_amount:
            graph = group_small_nodes(
                graph,
                options.min_account_grouping_amount,
                options.min_category_grouping_amount,
            )

        if options.min_amount_account:
            graph = filter_accounts_by_amount(graph, options.min_amount_account)

        return SankeyDiagram(
            nodes=graph.nodes,
            links=graph.links,
            metadata=SankeyMetadata(
                start_date=options.start_date,
                end_date=options.end_date,
                generated_at=utc_timestamp(),
                currency=most_common_currency(splits),
            ),
        )
