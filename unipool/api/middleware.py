"""Rate limiting shared by all routers."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from unipool.config import settings

limiter = Limiter(key_func=get_remote_address)

RATE_LIMIT = settings.rate_limit
