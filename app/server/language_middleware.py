from starlette.middleware.base import BaseHTTPMiddleware

from infrastructure.i18n import pre_resolve
from infrastructure.logging import (
    bind_request_context,
    get_correlation_id,
    get_module_logger,
)

logger = get_module_logger()


class LanguageMiddleware(BaseHTTPMiddleware):
    """Pre-resolve the request language before any handler renders.

    Stores the Detection on ``request.state.language`` and binds the language
    and correlation ID into the logging context for the duration of the
    request. The correlation ID is echoed in ``X-Correlation-ID``.
    """

    def __init__(self, app, components):
        super().__init__(app)
        self.components = components

    async def dispatch(self, request, call_next):
        i18n = self.components.settings
        detection = pre_resolve(
            self.components.chain,
            explicit_tag=request.query_params.get(i18n.query_parameter),
            cookie_header=request.headers.get("cookie"),
            headers=dict(request.headers),
        )
        request.state.language = detection

        with bind_request_context(
            correlation_id=request.headers.get("x-correlation-id"),
            language=detection.language,
            request_path=request.url.path,
            request_method=request.method,
        ):
            correlation_id = get_correlation_id()
            response = await call_next(request)

        response.headers.setdefault("Content-Language", detection.language)
        response.headers.setdefault("X-Correlation-ID", correlation_id)
        return response
