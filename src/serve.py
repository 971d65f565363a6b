"""FastAPI app for the MaintainX due-date automation service.

Routes:
- POST /maintainx-webhook  signed work-order webhooks (see src.webhooks.handlers)
- GET  /health             liveness probe

Run with ``python -m src.serve`` (port from SERVICE_PORT, default 3000).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from src.config import Settings, get_settings
from src.webhooks.dispatcher import drain
from src.webhooks.handlers import WEBHOOK_PATH, register_webhook_routes
from src.webhooks.processor import EventProcessor
from src.workorders.client import WorkOrderClient

logger = logging.getLogger(__name__)

# Seconds to let in-flight updates finish on shutdown
SHUTDOWN_DRAIN_TIMEOUT = 10.0


def create_app(settings: Settings | None = None, processor: EventProcessor | None = None) -> FastAPI:
    """Build the app. Settings are loaded (and validated) here, not at import."""
    settings = settings or get_settings()
    client = None
    if processor is None:
        client = WorkOrderClient(settings)
        processor = EventProcessor(client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("MaintainX Work Order Due Date Automation service starting")
        yield
        await drain(timeout=SHUTDOWN_DRAIN_TIMEOUT)
        if client is not None:
            await client.aclose()

    app = FastAPI(title="MaintainX Due Date Automation", lifespan=lifespan)
    app.state.settings = settings
    app.state.processor = processor

    register_webhook_routes(app)

    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        """Liveness probe for load balancers / orchestrators."""
        return "Service is healthy!"

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Webhook URL for MaintainX: http://localhost:%d%s", settings.service_port, WEBHOOK_PATH)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.service_port)


if __name__ == "__main__":
    main()
