"""Request ID middleware for request tracing.

Every request gets an ID that is stored on ``request.state`` (where the auth
and rate limit middleware pick it up for their log context) and returned in
the ``X-Request-ID`` response header.
"""

import re
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# Accepted shape for client-supplied IDs
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def is_valid_request_id(value: str) -> bool:
    return bool(_VALID_REQUEST_ID.match(value))


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to each request.

    An incoming ``X-Request-ID`` is reused when it is a well-formed token;
    otherwise a UUID4 is generated.
    """

    def __init__(self, app, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(self.header_name, "")
        if not is_valid_request_id(request_id):
            request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")
