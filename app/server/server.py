from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.router import api_router
from api.dependencies.language import setup_i18n_error_handlers
from api.dependencies.rate_limits import setup_rate_limiter
from infrastructure.configuration import Settings
from infrastructure.i18n.factory import create_i18n_components
from infrastructure.logging import get_module_logger
from infrastructure.services import get_settings
from server.language_middleware import LanguageMiddleware
from server.lifespan import lifespan

logger = get_module_logger()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application.

    The i18n components are built here rather than in the lifespan so that
    every request, including those from a TestClient used without a context
    manager, finds them on ``app.state``.

    Args:
        settings: Settings to build from (default: the cached settings).

    Returns:
        Configured FastAPI application.

    Raises:
        ValueError: If the i18n signal order or locales directory is invalid.
    """
    settings = settings or get_settings()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.i18n = create_i18n_components(settings.i18n)

    setup_rate_limiter(app)
    setup_i18n_error_handlers(app)

    allow_origins = (
        ["*"]
        if settings.is_production
        else [
            "http://localhost:8000",
            "http://127.0.0.1:8000",
        ]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LanguageMiddleware, components=app.state.i18n)

    app.include_router(api_router)
    return app


handler = create_app()
