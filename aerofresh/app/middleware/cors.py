"""CORS handling with empty-bodied preflight responses."""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

# Body headers from the stock "OK" / "Disallowed CORS ..." responses
_BODY_HEADERS = frozenset(("content-length", "content-type"))


class PreflightCORSMiddleware(CORSMiddleware):
    """Starlette CORS middleware whose preflight answer is always ``200``
    with an empty body.

    The ``Access-Control-Allow-*`` headers are kept as computed by
    Starlette, so the browser still enforces the configured origins, methods
    and headers.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in _BODY_HEADERS
        }
        return Response(status_code=200, headers=headers)
