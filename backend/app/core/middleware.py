"""
Request middleware — logging, timing, correlation IDs, per-IP rate limiting.

Provides:
    • X-Request-ID header injection (correlation ID)
    • Request/response timing (X-Process-Time header)
    • Structured log entry per request
    • Sliding-window request limit per client IP on /api/ routes
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from backend.app.core.errors import RateLimitError, build_error_response
from backend.app.core.logging_config import set_request_context

logger = logging.getLogger(__name__)


def client_ip_of(request: Request, trust_proxy: bool = False) -> str:
    """
    Client address of the socket peer.

    X-Forwarded-For is client-controlled, so it is only read when the
    service sits behind a proxy that sets it (``trust_proxy``).
    """
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with timing, inject correlation ID.

    Request log entry includes:
        - method, path, status_code
        - duration_ms
        - client IP
        - request_id (also returned in X-Request-ID response header)

    Handlers add domain keys (the alert fingerprint) to the same context
    with ``bind_request_context``.
    """

    def __init__(self, app: ASGIApp, trust_proxy: bool = False):
        super().__init__(app)
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex[:16])
        client_ip = client_ip_of(request, self.trust_proxy)
        path = request.url.path

        set_request_context(
            request_id=request_id,
            client_ip=client_ip,
            endpoint=path,
            method=request.method,
        )

        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                "%s %s → 500 (%.1fms) [%s]",
                request.method, path, duration_ms, client_ip,
                extra={"duration_ms": duration_ms, "status_code": 500},
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.1f}ms"

        if not any(path.startswith(p) for p in ("/docs", "/redoc", "/openapi", "/favicon")):
            log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                log_level,
                "%s %s → %d (%.1fms) [%s]",
                request.method, path, response.status_code,
                duration_ms, client_ip,
                extra={
                    "duration_ms": duration_ms,
                    "status_code": response.status_code,
                    "endpoint": path,
                },
            )

        set_request_context()

        return response


class IpRateLimiter:
    """
    Sliding-window request counter keyed by client IP.

    Every call drops keys whose hits have all left the window, so the map
    only holds clients seen within the last window.

    Parameters
    ----------
    max_requests : int
        Requests allowed per window.
    window_seconds : float
        Window length.
    clock : callable
        Returns the current time in seconds (injectable for tests).
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        """Record a hit for ``key``; False if the window is already full."""
        now = self._clock()
        window_start = now - self.window_seconds
        with self._lock:
            self._sweep_locked(window_start)
            hits = self._hits.setdefault(key, deque())
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def _sweep_locked(self, window_start: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the per-IP limit on paths under ``prefix``."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: IpRateLimiter,
        prefix: str = "/api/",
        trust_proxy: bool = False,
    ):
        super().__init__(app)
        self.limiter = limiter
        self.prefix = prefix
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next) -> Response:
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        client_ip = client_ip_of(request, self.trust_proxy)
        if not self.limiter.allow(client_ip):
            exc = RateLimitError(retry_after=int(self.limiter.window_seconds))
            logger.warning("Rate limit hit for %s on %s", client_ip, request.url.path)
            return build_error_response(
                exc.status_code, exc.error_code, exc.message,
                {"Retry-After": str(exc.details["retry_after_seconds"])},
            )

        return await call_next(request)
