"""
Request-level protections: rate limiting and response security headers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from contest_tracker.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def get_security_headers() -> dict[str, str]:
    """Headers added to every response by the middleware in main.py."""
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }
