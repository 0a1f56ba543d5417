from slowapi import Limiter
from slowapi.util import get_remote_address

from . import config

# Rate limiting, shared by the app and its routers
limiter = Limiter(key_func=get_remote_address, enabled=config.RATE_LIMIT_ENABLED)
