from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


BADGE_PATH_PREFIX = "/badge/"


class BadgeRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window rate limiter for GET /badge/* requests.

    Every badge request triggers an upstream fetch, so only those paths are
    counted. Buckets are keyed by client IP; `X-Forwarded-For` is used only
    when `trust_forwarded_for` is set, i.e. behind a proxy that overwrites it.
    Buckets whose hits have all expired are dropped.
    """

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        trust_forwarded_for: bool = False,
    ) -> None:
        super().__init__(app)
        # Config values below 1 would block everything.
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self.trust_forwarded_for = trust_forwarded_for
        self._buckets: dict[str, deque[float]] = {}
        self._last_sweep = monotonic()
        self._lock = RLock()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or not request.url.path.startswith(
            BADGE_PATH_PREFIX
        ):
            return await call_next(request)

        retry_after = self._consume(self._client_ip(request), monotonic())
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _consume(self, key: str, now: float) -> int | None:
        """Record a hit for key, or return seconds to wait when over limit."""

        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            bucket = self._buckets.setdefault(key, deque())
            self._trim(bucket, cutoff)

            if len(bucket) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - bucket[0])))

            bucket.append(now)
            return None

    def _sweep(self, cutoff: float) -> None:
        """Drop every bucket with no hits inside the window."""

        for key in list(self._buckets):
            bucket = self._buckets[key]
            self._trim(bucket, cutoff)
            if not bucket:
                del self._buckets[key]

    @staticmethod
    def _trim(bucket: deque[float], cutoff: float) -> None:
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

    def _client_ip(self, request: Request) -> str:
        if self.trust_forwarded_for:
            # The proxy puts the original client first.
            forwarded_for = request.headers.get("x-forwarded-for")
            if forwarded_for:
                return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
