"""Tally REST API — read-only JSON endpoints for the display layer.

Split into domain modules under tally/api/. Each module exports a
register_routes(router, svc) function that adds its endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tally import __version__
from tally.core.services import Services

logger = logging.getLogger(__name__)


def create_api(svc: Services, **route_kw) -> FastAPI:
    """Build the REST API as a FastAPI app.

    Serves state the workers have already computed; no request touches the
    database. Worker lifecycle belongs to the caller (see tally.server).
    Extra keyword arguments (e.g. clock) are passed to every route module.
    """
    app = FastAPI(
        title="Tally API",
        version=__version__,
        description="Signup counter, trend statistics and chart series.",
        docs_url="/swagger",
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=svc.config.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    router = APIRouter()

    from tally.api.core import register_routes as reg_core
    from tally.api.counter import register_routes as reg_counter

    reg_core(router, svc, **route_kw)
    reg_counter(router, svc, **route_kw)

    app.include_router(router)
    return app
