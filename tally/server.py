"""Tally server. Entry point for the signup counter backend."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tally.api import create_api
from tally.config import load_config
from tally.core.services import create_services, start_workers, stop_workers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("tally")


def build_app():
    """Connect the database, build services, and mount the API at /api.

    Workers start and stop with the outer app's lifespan; the mounted API
    app only serves already-computed state.
    """
    config = load_config()
    svc = create_services(config=config)
    svc.db.connect()

    @asynccontextmanager
    async def lifespan(app):
        start_workers(svc)
        try:
            yield
        finally:
            stop_workers(svc)

    app = FastAPI(title="Tally", lifespan=lifespan, docs_url=None, redoc_url=None)
    app.mount("/api", create_api(svc))
    return app, config


def main():
    """Run the Tally HTTP server."""
    import uvicorn

    app, config = build_app()
    logger.info("Starting Tally (HTTP on %s:%d, API at /api)", config.http_host, config.http_port)
    uvicorn.run(app, host=config.http_host, port=config.http_port)


if __name__ == "__main__":
    main()
