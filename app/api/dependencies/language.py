"""FastAPI dependencies for the request language.

Handlers receive the pre-resolved Detection through ``RequestLanguageDep``
and, when they render translated content, a request-owned runtime through
``RequestRuntimeDep``. Nothing here keeps per-session state between requests.
"""

from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from infrastructure.i18n import (
    Detection,
    LanguageRuntime,
    UnsupportedLanguage,
    create_request_runtime,
    pre_resolve,
    server_context,
)
from infrastructure.i18n.factory import I18nComponents
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def get_i18n(request: Request) -> I18nComponents:
    """Application-scoped i18n components built at startup."""
    return request.app.state.i18n


I18nDep = Annotated[I18nComponents, Depends(get_i18n)]


def get_request_language(request: Request, i18n: I18nDep) -> Detection:
    """Language pre-resolved for this request.

    Uses the Detection stored by LanguageMiddleware, or resolves it here when
    the middleware is not installed.
    """
    detection = getattr(request.state, "language", None)
    if detection is not None:
        return detection

    return pre_resolve(
        i18n.chain,
        explicit_tag=request.query_params.get(i18n.settings.query_parameter),
        cookie_header=request.headers.get("cookie"),
        headers=dict(request.headers),
    )


RequestLanguageDep = Annotated[Detection, Depends(get_request_language)]


def get_request_runtime(request: Request, i18n: I18nDep) -> LanguageRuntime:
    """Build a READY runtime owned by this request."""
    context = server_context(
        explicit_tag=request.query_params.get(i18n.settings.query_parameter),
        cookie_header=request.headers.get("cookie"),
        headers=dict(request.headers),
    )
    return create_request_runtime(
        i18n.chain,
        i18n.backend,
        context,
        cookie_name=i18n.settings.cookie_name,
        cookie_options=i18n.cookie_options(secure=request.url.scheme == "https"),
        default_namespace=i18n.settings.default_namespace,
    )


RequestRuntimeDep = Annotated[LanguageRuntime, Depends(get_request_runtime)]


async def unsupported_language_handler(request: Request, exc: Exception):
    """Return a 400 with a JSON error body for unsupported language tags."""
    if isinstance(exc, UnsupportedLanguage):
        logger.info(
            "unsupported_language_request",
            requested=exc.tag,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=400,
            content={
                "error": "unsupported_language",
                "message": str(exc),
                "requested": exc.tag,
                "supported": exc.supported,
            },
        )


def setup_i18n_error_handlers(app: FastAPI):
    """Register the i18n exception handlers on the application."""
    app.add_exception_handler(UnsupportedLanguage, unsupported_language_handler)
