from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from firefly_sankey.logger import get_logger
from firefly_sankey.models import FlowGraph, SankeyLink, SankeyNode

logger = get_logger(__name__)

CENTS = Decimal("0.01")

LinkKey = tuple[int, int, str]


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_value(value: float | Decimal) -> float:
    return float(to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def sort_links(links: Iterable[SankeyLink]) -> list[SankeyLink]:
    """Descending by value; equal values keep their current order."""
    return sorted(links, key=lambda link: -link.value)


def links_from_totals(totals: dict[LinkKey, Decimal]) -> list[SankeyLink]:
    links = [
        SankeyLink(source=source, target=target, value=round_value(value), currency=currency)
        for (source, target, currency), value in totals.items()
    ]
    return sort_links(links)


def node_lookup(graph: FlowGraph) -> dict[int, SankeyNode]:
    return {node.id: node for node in graph.nodes}


def valid_links(graph: FlowGraph, stage: str) -> list[SankeyLink]:
    """Links whose endpoints both match a node id in ``graph.nodes``."""
    nodes = node_lookup(graph)
    result: list[SankeyLink] = []
    for link in graph.links:
        if link.source in nodes and link.target in nodes:
            result.append(link)
        else:
            logger.warning(
                "[%s] Skipping link %s -> %s with unknown endpoint (%d nodes).",
                stage,
                link.source,
                link.target,
                len(nodes),
            )
    return result


def renumber(
    keyed_nodes: Iterable[tuple[int, SankeyNode]],
    links: Iterable[SankeyLink],
) -> FlowGraph:
    """
    Give nodes dense ids in order and remap ``links`` onto them.

    ``keyed_nodes`` pairs each node with the id the links currently use for it.
    """
    id_map: dict[int, int] = {}
    new_nodes: list[SankeyNode] = []
    for index, (key, node) in enumerate(keyed_nodes):
        id_map[key] = index
        new_nodes.append(node.model_copy(update={"id": index}))

    new_links = [
        link.model_copy(update={"source": id_map[link.source], "target": id_map[link.target]})
        for link in links
    ]
    return FlowGraph(nodes=new_nodes, links=new_links)
