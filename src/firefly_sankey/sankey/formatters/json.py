from firefly_sankey.models import SankeyDiagram


def format_json(data: SankeyDiagram) -> str:
    return data.model_dump_json(by_alias=True, indent=2)
