"""
Security headers for KnowledgeHub.

Headers implemented:
- Strict-Transport-Security (HSTS)
- Content-Security-Policy (CSP)
- X-Content-Type-Options
- X-Frame-Options
- Referrer-Policy
- Permissions-Policy
- Cross-Origin-Opener-Policy (COOP)
- Cross-Origin-Resource-Policy (CORP) and no-store caching for /api
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardened security headers to all responses."""

    # Deny browser features the site never uses
    PERMISSIONS_POLICY = ", ".join([
        "accelerometer=()",
        "camera=()",
        "display-capture=()",
        "geolocation=()",
        "gyroscope=()",
        "magnetometer=()",
        "microphone=()",
        "payment=()",
        "usb=()",
    ])

    # Cover images may be hotlinked from any https host
    CSP_DIRECTIVES = {
        "default-src": "'self'",
        "script-src": "'self'",
        "style-src": "'self' 'unsafe-inline'",
        "img-src": "'self' data: https:",
        "frame-ancestors": "'none'",
        "base-uri": "'self'",
        "form-action": "'self'",
    }

    def __init__(self, app, csp_overrides: dict | None = None, api_prefix: str = "/api"):
        super().__init__(app)
        self.api_prefix = api_prefix
        self.csp_directives = {**self.CSP_DIRECTIVES}
        if csp_overrides:
            self.csp_directives.update(csp_overrides)

        self.csp = "; ".join(
            f"{key} {value}".strip() if value else key
            for key, value in self.csp_directives.items()
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Content-Security-Policy"] = self.csp
        response.headers["Permissions-Policy"] = self.PERMISSIONS_POLICY

        path = request.url.path
        if path.startswith(self.api_prefix):
            response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
            if "Cache-Control" not in response.headers:
                response.headers["Cache-Control"] = "no-store"
        elif path.startswith("/static/"):
            response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
            response.headers["Cross-Origin-Resource-Policy"] = "same-origin"

        return response
