from collections import defaultdict
from decimal import Decimal

from firefly_sankey.domain.transactions import absolute_amount
from firefly_sankey.logger import get_logger
from firefly_sankey.models import FlowGraph, NodeType, SankeyOptions, TransactionSplit
from firefly_sankey.sankey.graph import node_lookup, renumber, to_decimal, valid_links

logger = get_logger(__name__)


def should_exclude_split(split: TransactionSplit, options: SankeyOptions) -> bool:
    """True when any exclusion rule or the tag allow-list rejects ``split``."""
    if options.exclude_accounts and (
        split.source_name in options.exclude_accounts
        or split.destination_name in options.exclude_accounts
    ):
        return True

    if options.exclude_categories and split.category_name:
        if split.category_name in options.exclude_categories:
            return True

    if options.exclude_budgets and split.budget_name:
        if split.budget_name in options.exclude_budgets:
            return True

    tags = set(split.tags)
    if options.include_tags and not tags.intersection(options.include_tags):
        return True

    if options.exclude_tags and tags.intersection(options.exclude_tags):
        return True

    return False


def is_below_min_amount(split: TransactionSplit, options: SankeyOptions) -> bool:
    if not options.min_amount_transaction:
        return False
    return absolute_amount(split) < options.min_amount_transaction


def is_candidate(split: TransactionSplit, options: SankeyOptions) -> bool:
    return not should_exclude_split(split, options) and not is_below_min_amount(split, options)


def filter_accounts_by_amount(graph: FlowGraph, min_amount: float) -> FlowGraph:
    """
    Drop revenue and expense accounts whose total flow is below ``min_amount``.

    Revenue accounts are measured by outgoing value, expense accounts by
    incoming value. Totals add values across currencies as plain numbers.
    Nodes left without links are removed and the rest renumbered.
    """
    links = valid_links(graph, "FILTER")
    nodes = node_lookup(graph)
    threshold = to_decimal(min_amount)

    totals: dict[int, Decimal] = defaultdict(Decimal)
    for link in links:
        if nodes[link.source].type == NodeType.REVENUE:
            totals[link.source] += to_decimal(link.value)
        if nodes[link.target].type == NodeType.EXPENSE:
            totals[link.target] += to_decimal(link.value)

    removed = {node_id for node_id, total in totals.items() if total < threshold}
    if removed:
        logger.debug(
            "[FILTER] Removing %d account(s) below %s: %s",
            len(removed),
            threshold,
            ", ".join(nodes[node_id].name for node_id in sorted(removed)),
        )

    kept_links = [
        link for link in links
        if link.source not in removed and link.target not in removed
    ]

    referenced = {link.source for link in kept_links} | {link.target for link in kept_links}
    kept_nodes = [(node.id, node) for node in graph.nodes if node.id in referenced]

    return renumber(kept_nodes, kept_links)
