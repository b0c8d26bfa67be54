from enum import Enum

from firefly_sankey.models import SankeyDiagram
from firefly_sankey.sankey.formatters.json import format_json
from firefly_sankey.sankey.formatters.readable import format_readable
from firefly_sankey.sankey.formatters.sankeymatic import format_sankeymatic


class OutputFormat(str, Enum):
    JSON = "json"
    READABLE = "readable"
    SANKEYMATIC = "sankeymatic"


def render(
    data: SankeyDiagram,
    fmt: OutputFormat | str,
    *,
    include_url: bool = True,
    base_url: str | None = None,
) -> str:
    try:
        output_format = OutputFormat(fmt)
    except ValueError:
        choices = ", ".join(item.value for item in OutputFormat)
        raise ValueError(f"Unknown output format '{fmt}'. Expected one of: {choices}") from None

    if output_format is OutputFormat.JSON:
        return format_json(data)
    if output_format is OutputFormat.SANKEYMATIC:
        return format_sankeymatic(data, include_url=include_url, base_url=base_url)
    return format_readable(data)
