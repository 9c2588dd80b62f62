"""
Shared slowapi limiter.
Lives in core so routers can decorate endpoints without importing main.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(key_func=get_remote_address)

SUBMIT_RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"
