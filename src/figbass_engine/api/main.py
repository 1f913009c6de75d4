"""figbass-engine — FastAPI application serving the figured bass API."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from figbass_engine import __version__
from figbass_engine.api.routes import figures, health, reference


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load token spellings, layout config and fonts on startup."""
    from figbass_engine.figures.font import load_fonts
    from figbass_engine.figures.layout import load_layout_config
    from figbass_engine.figures.tokens import load_token_table

    app.state.tokens = load_token_table()
    app.state.layout_config = load_layout_config()
    app.state.fonts = load_fonts()
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="figbass-engine",
        description="Figured bass parsing, normalization and layout API",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(figures.router, prefix="/api/v1", tags=["figured-bass"])
    app.include_router(reference.router, prefix="/api/v1", tags=["reference"])

    return app


app = create_app()
