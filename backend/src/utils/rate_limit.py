"""
Shared slowapi rate limiter.

Routers decorate endpoints with @limiter.limit(...); main.py registers the
limiter on the app together with the 429 handler. Counters live in the
storage configured by RATE_LIMIT_STORAGE_URI.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from backend.src.config.settings import get_settings


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=get_settings().rate_limit_storage_uri,
)
