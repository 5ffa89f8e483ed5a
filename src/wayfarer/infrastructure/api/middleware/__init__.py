"""API middleware and request helpers."""

from wayfarer.infrastructure.api.middleware.client_address import get_client_ip
from wayfarer.infrastructure.api.middleware.rate_limit_storage import (
    RateLimitStorage,
    login_rate_limit_storage,
)

__all__ = ["RateLimitStorage", "get_client_ip", "login_rate_limit_storage"]
