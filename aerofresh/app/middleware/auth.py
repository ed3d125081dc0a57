import hmac
from typing import Iterable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from aerofresh.app.core.logging import get_log_context, get_logger
from aerofresh.app.exceptions import AuthenticationError
from aerofresh.app.middleware.client_identity import get_api_key

logger = get_logger(__name__)


def verify_api_key(request: Request, expected_key: str) -> None:
    """Validate the shared-secret credential on a request.

    The key may be sent as ``x-api-key`` or ``Authorization: Bearer <key>``.

    Raises:
        AuthenticationError: If the key is missing or does not match
    """
    token = get_api_key(request.headers)

    # Compare even when the token is empty
    matches = hmac.compare_digest(token.encode(), expected_key.encode())
    if not token or not matches:
        raise AuthenticationError()


class APIKeyAuthMiddleware(BaseHTTPMiddleware):
    """Reject requests without the shared API key before they are routed.

    Exempt paths (the health check) pass through. Bare OPTIONS requests are
    answered here with an empty 200 and never reach the router.
    Unknown routes are authenticated too, so an anonymous caller cannot
    discover which paths exist.
    """

    def __init__(self, app, api_key: str, exempt_paths: Iterable[str] = ()):
        super().__init__(app)
        self.api_key = api_key
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        try:
            verify_api_key(request, self.api_key)
        except AuthenticationError as exc:
            logger.info(
                "Rejected unauthenticated request",
                extra=get_log_context(
                    request_id=getattr(request.state, "request_id", None),
                    path=request.url.path,
                    method=request.method,
                    status_code=exc.status_code,
                ),
            )
            return exc.to_response()

        return await call_next(request)
