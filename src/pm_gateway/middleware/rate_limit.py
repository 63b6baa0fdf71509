"""Fixed-window rate limiting for the admin API.

Redis INCR + EXPIRE per client per minute:
    key = "ratelimit:admin:{client_ip}:{window}"

The client IP honours the first X-Forwarded-For hop (reverse proxy aware).
When Redis is unreachable the request is let through and a warning logged:
an outage of the limiter must not block settlement.
"""

import logging
import time

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from src.pm_common.errors import RateLimitError
from src.pm_common.redis_client import get_redis
from src.pm_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
ADMIN_PATH_PREFIX = "/api/v1/admin"


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or not request.url.path.startswith(ADMIN_PATH_PREFIX):
            return await call_next(request)

        now = int(time.time())
        window = now // _WINDOW_SECONDS
        key = f"ratelimit:admin:{client_ip(request)}:{window}"
        try:
            redis = await get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > settings.ADMIN_RATE_LIMIT_PER_MINUTE:
            exc = RateLimitError()
            retry_after = _WINDOW_SECONDS - (now % _WINDOW_SECONDS)
            return JSONResponse(
                status_code=exc.http_status,
                content=error_response(exc.code, exc.message).model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
