from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param
from slowapi import Limiter
from slowapi.util import get_remote_address

import auth
from config import settings


def rate_limit_key(request: Request) -> str:
    """Signed-in callers share one bucket per account; everyone else is keyed by address."""
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() == "bearer" and token:
        payload = auth.read_token(token)
        if payload and payload.get("id") is not None:
            return f"user:{payload['id']}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
