from collections import defaultdict
from collections.abc import Hashable
from decimal import Decimal

from firefly_sankey.logger import get_logger
from firefly_sankey.models import FlowGraph, NodeType, SankeyNode
from firefly_sankey.sankey.builder import EXPENSE_SUFFIX, INCOME_SUFFIX, with_suffix
from firefly_sankey.sankey.graph import LinkKey, links_from_totals, node_lookup, to_decimal, valid_links

logger = get_logger(__name__)

OTHER_ACCOUNTS = "[OTHER ACCOUNTS]"
OTHER_CATEGORIES = "[OTHER CATEGORIES]"

# Keys for the synthetic nodes; real nodes are keyed by their id.
_OTHER_REVENUE = "other-revenue"
_OTHER_EXPENSE = "other-expense"
_OTHER_CATEGORY_INCOME = "other-category-income"
_OTHER_CATEGORY_EXPENSE = "other-category-expense"

_ACCOUNT_TYPES = (NodeType.REVENUE, NodeType.EXPENSE)


def _other_nodes() -> list[tuple[str, str, NodeType]]:
    return [
        (_OTHER_REVENUE, with_suffix(OTHER_ACCOUNTS, INCOME_SUFFIX), NodeType.REVENUE),
        (_OTHER_EXPENSE, with_suffix(OTHER_ACCOUNTS, EXPENSE_SUFFIX), NodeType.EXPENSE),
        (_OTHER_CATEGORY_INCOME, with_suffix(OTHER_CATEGORIES, INCOME_SUFFIX), NodeType.CATEGORY),
        (_OTHER_CATEGORY_EXPENSE, with_suffix(OTHER_CATEGORIES, EXPENSE_SUFFIX), NodeType.CATEGORY),
    ]


def _group_key(node: SankeyNode) -> str:
    if node.type == NodeType.REVENUE:
        return _OTHER_REVENUE
    if node.type == NodeType.EXPENSE:
        return _OTHER_EXPENSE
    if node.name.endswith(INCOME_SUFFIX):
        return _OTHER_CATEGORY_INCOME
    return _OTHER_CATEGORY_EXPENSE


def group_small_nodes(
    graph: FlowGraph,
    min_account_amount: float | None = None,
    min_category_amount: float | None = None,
) -> FlowGraph:
    """
    Merge low-value accounts and categories into ``[OTHER ...]`` nodes.

    Revenue accounts are measured by outgoing value, expense accounts by
    incoming value and categories by both. Totals add values across
    currencies as plain numbers. Links are re-aggregated per
    ``(source, target, currency)`` after the merge.
    """
    nodes = node_lookup(graph)
    links = valid_links(graph, "GROUP")

    totals: dict[int, Decimal] = defaultdict(Decimal)
    for link in links:
        value = to_decimal(link.value)
        if nodes[link.source].type in (NodeType.REVENUE, NodeType.CATEGORY):
            totals[link.source] += value
        if nodes[link.target].type in (NodeType.EXPENSE, NodeType.CATEGORY):
            totals[link.target] += value

    account_floor = to_decimal(min_account_amount) if min_account_amount else None
    category_floor = to_decimal(min_category_amount) if min_category_amount else None

    to_group: set[int] = set()
    for node_id, total in totals.items():
        node_type = nodes[node_id].type
        if account_floor is not None and node_type in _ACCOUNT_TYPES and total < account_floor:
            to_group.add(node_id)
        elif category_floor is not None and node_type == NodeType.CATEGORY and total < category_floor:
            to_group.add(node_id)

    if not to_group:
        return FlowGraph(nodes=list(graph.nodes), links=links)

    logger.debug(
        "[GROUP] Grouping %d node(s): %s",
        len(to_group),
        ", ".join(nodes[node_id].name for node_id in sorted(to_group)),
    )

    key_map: dict[int, Hashable] = {
        node_id: _group_key(node) if node_id in to_group else node_id
        for node_id, node in nodes.items()
    }
    used = {key_map[link.source] for link in links} | {key_map[link.target] for link in links}

    # Synthetic nodes first, then the survivors in their original order
    new_nodes: list[SankeyNode] = []
    index: dict[Hashable, int] = {}
    for key, name, node_type in _other_nodes():
        if key in used:
            index[key] = len(new_nodes)
            new_nodes.append(SankeyNode(id=len(new_nodes), name=name, type=node_type))
    for node in graph.nodes:
        if node.id not in to_group:
            index[node.id] = len(new_nodes)
            new_nodes.append(node.model_copy(update={"id": len(new_nodes)}))

    aggregated: dict[LinkKey, Decimal] = {}
    for link in links:
        key = (index[key_map[link.source]], index[key_map[link.target]], link.currency)
        aggregated[key] = aggregated.get(key, Decimal(0)) + to_decimal(link.value)

    return FlowGraph(nodes=new_nodes, links=links_from_totals(aggregated))
