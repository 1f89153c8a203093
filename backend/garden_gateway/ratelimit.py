from __future__ import annotations

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address


logger = structlog.get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def build_limiter(max_requests: int = 100, window_seconds: int = 15 * 60) -> Limiter:
    """Fixed-window limiter keyed on the peer address, held in process memory."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{max_requests}/{window_seconds} seconds"],
        strategy="fixed-window",
        headers_enabled=True,
    )


# SlowAPIMiddleware calls this without awaiting it, so it stays synchronous.
def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("rate_limited", client=get_remote_address(request), path=request.url.path, limit=exc.detail)
    response = JSONResponse(status_code=429, content={"msg": RATE_LIMIT_MESSAGE})
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
