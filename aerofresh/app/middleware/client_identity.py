"""Client identity resolution for rate limiting and usage accounting."""

from typing import Mapping

API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "authorization"
BEARER_PREFIX = "Bearer "

# Checked in order; the first header present wins
CLIENT_IP_HEADERS = ("cf-connecting-ip", "x-forwarded-for", "x-real-ip")

UNKNOWN_ADDRESS = "unknown"


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        # Plain dicts are case-sensitive, Starlette headers are not
        for key, candidate in headers.items():
            if key.lower() == name:
                value = candidate
                break
    return (value or "").strip()


def get_api_key(headers: Mapping[str, str]) -> str:
    """Extract the API key from x-api-key or a Bearer authorization header.

    Returns:
        The key, or "" when none was supplied
    """
    api_key = _header(headers, API_KEY_HEADER)
    if api_key:
        return api_key

    auth = _header(headers, AUTHORIZATION_HEADER)
    if auth.startswith(BEARER_PREFIX):
        return auth[len(BEARER_PREFIX):].strip()
    return auth


def resolve_client_id(headers: Mapping[str, str]) -> str:
    """Derive a stable identifier for the caller.

    Uses the API key if available, otherwise the client address taken
    from proxy headers.

    Returns:
        ``"api:<key>"`` or ``"ip:<address>"``; never empty
    """
    api_key = get_api_key(headers)
    if api_key:
        return f"api:{api_key}"

    address = UNKNOWN_ADDRESS
    for name in CLIENT_IP_HEADERS:
        value = _header(headers, name)
        if value:
            # X-Forwarded-For may carry a proxy chain; the client is first
            address = value.split(",")[0].strip() or UNKNOWN_ADDRESS
            break
    return f"ip:{address}"
