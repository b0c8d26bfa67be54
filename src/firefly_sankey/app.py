from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from firefly_sankey.api.routes import sankey
from firefly_sankey.core import settings
from firefly_sankey.integration.firefly import FireflyClient
from firefly_sankey.logger import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(firefly: FireflyClient | None = None) -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        client = firefly or FireflyClient()
        if not client.configured:
            logger.warning("FIREFLY_URL or FIREFLY_TOKEN not set. Diagram requests will fail.")
        app.state.firefly = client

        logger.info("Services initialized.")
        yield
        await client.aclose()
        logger.info("Service shutting down.")

    app = FastAPI(title="Firefly Sankey", lifespan=lifespan)
    app.include_router(sankey.router)
    return app


app = create_app()
