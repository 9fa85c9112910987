# hms/limiter.py
# The limiter lives in its own module so routers can decorate endpoints
# without importing main.py. create_app() configures it from settings.

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

_auth_limit = "10/minute"


def configure_limiter(enabled: bool, auth_limit: str):
    global _auth_limit
    limiter.enabled = enabled
    _auth_limit = auth_limit


def auth_rate_limit() -> str:
    """Rate string for the credential endpoints."""
    return _auth_limit
