"""Shared-secret check for orchestrator routes."""

import hmac

from fastapi import Request

from web.errors import AuthError

SECRET_HEADER = "x-pg-secret"


def _presented_secret(request: Request) -> str | None:
    header = request.headers.get(SECRET_HEADER)
    if header:
        return header
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def verify_secret(request: Request) -> None:
    """Dependency: 403 unless the request carries the configured shared secret."""
    expected = request.app.state.config.server.shared_secret
    presented = _presented_secret(request)
    if not expected or not presented:
        raise AuthError("Unauthorized")
    if not hmac.compare_digest(presented.encode(), expected.encode()):
        raise AuthError("Unauthorized")
