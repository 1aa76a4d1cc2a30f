"""
FastAPI Application Entry Point.

Creates the tts-gate application, registers the routes and ties the
minute-window ticker to the application lifecycle.

Usage:
    uvicorn tts_gate.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tts_gate.api.dependencies import start_ticker, stop_ticker
from tts_gate.api.routes import router
from tts_gate.core.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the minute-window ticker for the lifetime of the app."""
    # The minute window only counts down while the ticker runs
    start_ticker()
    try:
        yield
    finally:
        stop_ticker()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    app = FastAPI(title="tts-gate", lifespan=lifespan)
    app.include_router(router)

    return app


app = create_app()
