"""
Baseline HTTP hardening: CORS and security headers.
"""

from typing import Dict
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from charityonme.config import Settings

CSP_DIRECTIVES: Dict[str, list] = {
    "default-src": ["'self'"],
    "style-src": ["'self'", "'unsafe-inline'", "fonts.googleapis.com"],
    "font-src": ["'self'", "fonts.gstatic.com"],
    "img-src": ["'self'", "data:", "https:"],
    "script-src": ["'self'", "'unsafe-inline'", "js.stripe.com", "*.stripe.com"],
    "connect-src": ["'self'", "api.stripe.com", "*.stripe.com"],
    "frame-src": ["'self'", "js.stripe.com", "*.stripe.com"],
}


def build_csp(directives: Dict[str, list]) -> str:
    """Serialize CSP directives into a header value."""
    return "; ".join(f"{name} {' '.join(sources)}" for name, sources in directives.items())


SECURITY_HEADERS = {
    "Content-Security-Policy": build_csp(CSP_DIRECTIVES),
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
}


def error_response_headers(request: Request, settings: Settings) -> Dict[str, str]:
    """
    Headers for responses built outside the middleware stack.

    Uncaught errors are answered by Starlette's outermost error middleware,
    so neither the security headers nor CORS reach those responses.

    Args:
        request: Request that failed
        settings: Settings holding the allowed frontend origin

    Returns:
        Security headers, plus CORS headers for the allowed origin
    """
    headers = dict(SECURITY_HEADERS)
    if request.headers.get("origin") == settings.frontend_url:
        headers["Access-Control-Allow-Origin"] = settings.frontend_url
        headers["Access-Control-Allow-Credentials"] = "true"
        headers["Vary"] = "Origin"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def install_security(app: FastAPI, settings: Settings) -> None:
    """
    Register CORS and security header middleware.

    Args:
        app: Application to harden
        settings: Settings holding the allowed frontend origin
    """
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
