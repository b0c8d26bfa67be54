from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from firefly_sankey.api.dependencies import get_firefly, get_options
from firefly_sankey.core import settings
from firefly_sankey.domain.transactions import InvalidAmountError
from firefly_sankey.integration.firefly import FireflyClient, FireflyConfigError
from firefly_sankey.logger import get_logger
from firefly_sankey.models import SankeyDiagram, SankeyOptions
from firefly_sankey.sankey.formatters.render import OutputFormat, render
from firefly_sankey.services.sankey import generate_diagram

logger = get_logger(__name__)

router = APIRouter()


async def _build_diagram(firefly: FireflyClient, options: SankeyOptions) -> SankeyDiagram:
    try:
        return await generate_diagram(firefly, options, page_size=settings.FIREFLY_PAGE_SIZE)
    except FireflyConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except InvalidAmountError as exc:
        logger.error("[SANKEY] %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except httpx.HTTPStatusError as exc:
        logger.error("[FIREFLY] Upstream returned %s: %s", exc.response.status_code, exc)
        raise HTTPException(
            status_code=502,
            detail=f"Firefly III returned HTTP {exc.response.status_code}",
        ) from exc
    except httpx.RequestError as exc:
        logger.error("[FIREFLY] Request failed: %s", exc)
        raise HTTPException(status_code=502, detail="Could not reach Firefly III") from exc


@router.get("/api/sankey", response_model=SankeyDiagram)
async def get_sankey(
    firefly: Annotated[FireflyClient, Depends(get_firefly)],
    options: Annotated[SankeyOptions, Depends(get_options)],
) -> SankeyDiagram:
    return await _build_diagram(firefly, options)


@router.get("/api/sankey/{fmt}", response_class=PlainTextResponse)
async def get_sankey_text(
    fmt: OutputFormat,
    firefly: Annotated[FireflyClient, Depends(get_firefly)],
    options: Annotated[SankeyOptions, Depends(get_options)],
    include_url: bool = True,
) -> PlainTextResponse:
    diagram = await _build_diagram(firefly, options)
    text = render(diagram, fmt, include_url=include_url, base_url=settings.SANKEYMATIC_URL)
    media_type = "application/json" if fmt is OutputFormat.JSON else "text/plain"
    return PlainTextResponse(text, media_type=media_type)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
