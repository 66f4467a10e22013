"""Security headers middleware.

Learn: The board is served from a different origin than the API and
talks to it with credentials (cookies), so the API's own responses are
locked down:
- no MIME sniffing, no framing, trimmed referrers on every response
- Cache-Control: no-store on /api/ — responses carry per-caller tasks,
  tokens and Set-Cookie headers that no shared cache may keep
- HSTS once the request arrived over HTTPS. Hosting platforms terminate
  TLS at a proxy, so X-Forwarded-Proto counts as well.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

HSTS = "max-age=31536000; includeSubDomains"


def is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(BASE_HEADERS)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        if is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS
        return response
