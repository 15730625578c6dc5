"""ASGI middleware: per-client rate limiting and security headers."""

import json
import math
import time
from dataclasses import dataclass
from typing import Callable

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
}


def get_client_ip(scope: Scope) -> str:
    """Get client address from the ASGI scope.

    The first ``X-Forwarded-For`` entry wins over the socket peer.
    """
    forwarded_for = Headers(scope=scope).get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    client = scope.get("client")
    if client:
        return client[0]
    return "unknown"


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowLimiter:
    """Counts hits per key in fixed windows.

    Attributes:
        limit: Maximum hits per window
        window_seconds: Window length
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str) -> tuple[bool, int, int]:
        """Record a hit.

        Args:
            key: Client identifier

        Returns:
            Tuple of (allowed, remaining, retry_after_seconds)
        """
        now = self._clock()
        self._prune(now)

        window = self._windows.get(key)
        if window is None:
            window = self._windows[key] = _Window(started_at=now)

        if window.count >= self.limit:
            retry_after = math.ceil(window.started_at + self.window_seconds - now)
            return False, 0, max(retry_after, 1)

        window.count += 1
        return True, self.limit - window.count, 0

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


class RateLimitMiddleware:
    """Reject clients exceeding ``limit`` requests per minute with 429."""

    def __init__(self, app: ASGIApp, limit: int = 30, window_seconds: float = 60.0) -> None:
        self.app = app
        self.limiter = FixedWindowLimiter(limit, window_seconds)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        allowed, remaining, retry_after = self.limiter.hit(get_client_ip(scope))
        limit_headers = {
            "RateLimit-Limit": str(self.limiter.limit),
            "RateLimit-Remaining": str(remaining),
        }

        if not allowed:
            body = json.dumps({"error": RATE_LIMIT_MESSAGE}).encode("utf-8")
            headers = [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode("latin-1")),
                (b"retry-after", str(retry_after).encode("latin-1")),
            ]
            headers.extend(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in limit_headers.items()
            )
            await send({"type": "http.response.start", "status": 429, "headers": headers})
            await send({"type": "http.response.body", "body": body})
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in limit_headers.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)


class SecurityHeadersMiddleware:
    """Add conservative security headers to every HTTP response."""

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None) -> None:
        self.app = app
        self.headers = headers or SECURITY_HEADERS

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, send_with_headers)
