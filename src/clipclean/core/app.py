"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from ..config import AppConfig, load_config
from ..dependencies import include_routers
from ..lifecycle import build_lifespan
from ..logging import configure_logging


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    app = FastAPI(title="clipclean", lifespan=build_lifespan(cfg))
    include_routers(app, cfg)
    return app


__all__ = ["create_app"]
