from firefly_sankey.models import SankeyDiagram
from firefly_sankey.sankey.formatters.common import format_generated_at, node_index, resolve_link


def format_readable(data: SankeyDiagram) -> str:
    metadata = data.metadata
    lines = [
        "Firefly III Sankey Diagram",
        "============================",
        f"Period: {metadata.start_date} to {metadata.end_date}",
        f"Generated: {format_generated_at(metadata.generated_at)}",
        f"Currency: {metadata.currency}",
        "",
        f"Nodes ({len(data.nodes)}):",
    ]
    for node in data.nodes:
        lines.append(f"  [{node.id}] {node.name} ({node.type.value})")

    lines.append("")
    lines.append(f"Flows ({len(data.links)}):")
    nodes = node_index(data)
    for link in data.links:
        endpoints = resolve_link(nodes, link)
        if endpoints is None:
            continue
        source, target = endpoints
        lines.append(f"  {source.name} → {target.name}: {link.value:.2f} {link.currency}")

    return "\n".join(lines) + "\n"
