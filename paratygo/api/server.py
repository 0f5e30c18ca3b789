"""FastAPI server for the Paraty GO! registration backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paratygo.api.routes import router
from paratygo.mailer import Mailer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared resources on startup."""
    if getattr(app.state, "mailer", None) is None:
        app.state.mailer = Mailer()
    if not app.state.mailer.is_configured:
        logger.warning("RESEND_API_KEY not set — registration emails will fail")
    # Firestore is connected lazily on the first registration
    yield
    logger.info("Paraty GO! API shutting down")


def create_app() -> FastAPI:
    app = FastAPI(title="Paraty GO! API", version="1.0.0", lifespan=lifespan)
    app.state.firestore = None
    app.state.mailer = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")
    return app


app = create_app()
