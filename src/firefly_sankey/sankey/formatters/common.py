from datetime import datetime

from firefly_sankey.models import SankeyDiagram, SankeyLink, SankeyNode


def node_index(data: SankeyDiagram) -> dict[int, SankeyNode]:
    return {node.id: node for node in data.nodes}


def resolve_link(
    nodes: dict[int, SankeyNode], link: SankeyLink
) -> tuple[SankeyNode, SankeyNode] | None:
    """Both endpoints of ``link``, or ``None`` if either is missing."""
    source = nodes.get(link.source)
    target = nodes.get(link.target)
    if source is None or target is None:
        return None
    return source, target


def format_generated_at(value: str) -> str:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")
