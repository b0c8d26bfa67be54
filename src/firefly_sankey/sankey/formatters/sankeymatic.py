"""
SankeyMatic text output.

The result can be pasted into https://sankeymatic.com/build/ as is.
"""
from lzstring import LZString

from firefly_sankey.models import NodeType, SankeyDiagram, SankeyLink, SankeyNode
from firefly_sankey.sankey.builder import ALL_FUNDS
from firefly_sankey.sankey.formatters.common import format_generated_at, node_index, resolve_link

DEFAULT_BASE_URL = "https://sankeymatic.com"

# Section titles in output order
INCOME_TO_CATEGORIES = "Income Accounts -> Income Categories"
INCOME_TO_ASSETS = "Income -> Assets"
ASSETS_TO_BUDGETS = "Assets -> Budgets"
BUDGETS_TO_CATEGORIES = "Budgets -> Expense Categories"
ASSETS_TO_CATEGORIES = "Assets -> Expense Categories (no budget)"
CATEGORIES_TO_EXPENSES = "Expense Categories -> Expense Accounts"
BUDGETS_TO_EXPENSES = "Budgets -> Expense Accounts (no category)"
ASSETS_TO_EXPENSES = "Assets -> Expense Accounts (no budget or category)"
OTHER_FLOWS = "Other Flows (Transfers, etc.)"

SECTIONS = (
    INCOME_TO_CATEGORIES,
    INCOME_TO_ASSETS,
    ASSETS_TO_BUDGETS,
    BUDGETS_TO_CATEGORIES,
    ASSETS_TO_CATEGORIES,
    CATEGORIES_TO_EXPENSES,
    BUDGETS_TO_EXPENSES,
    ASSETS_TO_EXPENSES,
    OTHER_FLOWS,
)

_RULE = "━" * 66


def _clean_base_url(base_url: str | None) -> str:
    return (base_url or DEFAULT_BASE_URL).rstrip("/")


def generate_sankeymatic_url(diagram_text: str, base_url: str | None = None) -> str:
    compressed = LZString().compressToEncodedURIComponent(diagram_text)
    return f"{_clean_base_url(base_url)}/build/?i={compressed}"


def _is_funds(node: SankeyNode) -> bool:
    return node.type == NodeType.ASSET or node.name == ALL_FUNDS


def classify_flow(source: SankeyNode, target: SankeyNode) -> str:
    if source.type == NodeType.REVENUE and target.type == NodeType.CATEGORY:
        return INCOME_TO_CATEGORIES
    if source.type == NodeType.CATEGORY and _is_funds(target):
        return INCOME_TO_ASSETS
    if source.type == NodeType.REVENUE and _is_funds(target):
        return INCOME_TO_ASSETS
    if _is_funds(source) and target.type == NodeType.BUDGET:
        return ASSETS_TO_BUDGETS
    if _is_funds(source) and target.type == NodeType.CATEGORY:
        return ASSETS_TO_CATEGORIES
    if _is_funds(source) and target.type == NodeType.EXPENSE:
        return ASSETS_TO_EXPENSES
    if source.type == NodeType.BUDGET and target.type == NodeType.CATEGORY:
        return BUDGETS_TO_CATEGORIES
    if source.type == NodeType.BUDGET and target.type == NodeType.EXPENSE:
        return BUDGETS_TO_EXPENSES
    if source.type == NodeType.CATEGORY and target.type == NodeType.EXPENSE:
        return CATEGORIES_TO_EXPENSES
    return OTHER_FLOWS


def _flow_line(source: SankeyNode, target: SankeyNode, link: SankeyLink) -> str:
    return f"{source.name} [{link.value:.2f}] {target.name}"


def format_sankeymatic(
    data: SankeyDiagram,
    *,
    include_url: bool = True,
    base_url: str | None = None,
) -> str:
    clean_url = _clean_base_url(base_url)
    metadata = data.metadata
    header = [
        "// Firefly III Sankey Diagram",
        f"// Period: {metadata.start_date} to {metadata.end_date}",
        f"// Generated: {format_generated_at(metadata.generated_at)}",
        f"// Currency: {metadata.currency}",
        f"// Paste this into {clean_url}/build/",
        "",
    ]

    nodes = node_index(data)
    sections: dict[str, list[str]] = {title: [] for title in SECTIONS}
    for link in data.links:
        endpoints = resolve_link(nodes, link)
        if endpoints is None:
            continue
        source, target = endpoints
        sections[classify_flow(source, target)].append(_flow_line(source, target, link))

    body: list[str] = []
    flow_lines: list[str] = []
    for title in SECTIONS:
        lines = sections[title]
        if not lines:
            continue
        body.append(f"// {title}")
        body.extend(lines)
        body.append("")
        flow_lines.extend(lines)

    output = "\n".join(header + body)
    if not output.endswith("\n"):
        output += "\n"

    if include_url:
        url = generate_sankeymatic_url("\n".join(flow_lines), base_url)
        output += f"\n// {_RULE}\n"
        output += "// Direct Link (open in SankeyMatic):\n"
        output += f"// {url}\n"

    return output
