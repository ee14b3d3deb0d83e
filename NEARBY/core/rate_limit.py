from slowapi import Limiter
from slowapi.util import get_remote_address

from NEARBY.core.config import DEFAULT_RATE_LIMIT

# ✅ Shared limiter instance (main.py attaches it to app.state)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[DEFAULT_RATE_LIMIT],
    headers_enabled=False,
)
