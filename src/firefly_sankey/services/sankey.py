import asyncio
from time import perf_counter

from firefly_sankey.domain.timefmt import format_duration
from firefly_sankey.domain.transactions import build_transactions
from firefly_sankey.integration.firefly import DEFAULT_PAGE_SIZE, FireflyClient
from firefly_sankey.logger import get_logger
from firefly_sankey.models import SankeyDiagram, SankeyOptions
from firefly_sankey.sankey.processor import SankeyProcessor

logger = get_logger(__name__)


async def generate_diagram(
    firefly: FireflyClient,
    options: SankeyOptions,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> SankeyDiagram:
    """Fetch every transaction in the options' date range and build the diagram."""
    started = perf_counter()
    raw_txs = await firefly.get_all_transactions(
        start=options.start_date or None,
        end=options.end_date or None,
        limit_per_page=page_size,
    )
    logger.info(
        "[SANKEY] Fetched %d transactions from %s to %s in %s.",
        len(raw_txs),
        options.start_date or "(open)",
        options.end_date or "(open)",
        format_duration(perf_counter() - started),
    )

    transactions = build_transactions(raw_txs)
    processor = SankeyProcessor(options)
    diagram = await asyncio.to_thread(processor.process_transactions, transactions)
    logger.info(
        "[SANKEY] Generated diagram with %d nodes and %d links.",
        len(diagram.nodes),
        len(diagram.links),
    )
    return diagram
