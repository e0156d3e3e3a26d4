"""
FastAPI application setup and configuration.

Architecture:
- create_api_app() binds one Application to one FastAPI instance (app.state.application)
- All routes live under /api/v1
- The lifespan starts the Application and flushes it on shutdown
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse

from tabage.__version__ import __version__
from tabage.host.memory_host import InMemoryHost
from tabage.interfaces.api.v1 import engine_if, sandbox_if, settings_if

if TYPE_CHECKING:
    from tabage.app import Application


def create_api_app(application: Application, start_reason: str = "startup") -> FastAPI:
    """
    Build the FastAPI app for ``application``.

    Args:
        application: Engine composition root served by this app
        start_reason: Passed to Application.start() when the server starts

    Returns:
        Configured FastAPI instance
    """

    # ----------------------------------------------------------------------
    #  App lifecycle
    # ----------------------------------------------------------------------
    @asynccontextmanager
    async def lifespan(_app_instance: FastAPI):
        logging.info("[API] FastAPI starting")
        await application.start(start_reason)
        try:
            yield
        finally:
            logging.info("[API] FastAPI shutting down...")
            await application.stop()
            logging.info("[API] Shutdown complete")

    api_app = FastAPI(title="Tabage", version=__version__, lifespan=lifespan)
    api_app.state.application = application

    # Global exception handler
    @api_app.exception_handler(Exception)
    async def exception_handler(request, exc: Exception):
        logging.exception(f"[API] Exception: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    v1_router = APIRouter(prefix="/api")
    v1_router.include_router(engine_if.router, tags=["Engine"])
    v1_router.include_router(settings_if.router, tags=["Settings"])
    if isinstance(application.host, InMemoryHost):
        v1_router.include_router(sandbox_if.router, tags=["Sandbox"])
    api_app.include_router(v1_router)

    return api_app
