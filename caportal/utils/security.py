"""
Request-level security helpers
"""
import time
from functools import wraps
from flask import request, current_app
from caportal.extensions import cache
from caportal.exceptions import RateLimited


def client_ip():
    """First hop of X-Forwarded-For, else the socket peer"""
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.headers.get('X-Real-IP') or request.remote_addr or 'unknown'


def rate_limit(scope, max_requests=10, window=60):
    """
    Fixed-window rate limit per client IP, counted in the shared cache

    Args:
        scope: counter name, e.g. 'otp'
        max_requests: requests allowed per window
        window: window length in seconds
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if current_app.config.get('RATELIMIT_ENABLED', True):
                key = f'rl:{scope}:{client_ip()}'
                now = time.time()
                entry = cache.get(key)
                if entry is None or now >= entry[1]:
                    entry = (0, now + window)
                count, reset_at = entry
                if count >= max_requests:
                    current_app.logger.warning(f'Rate limit hit: {key}')
                    raise RateLimited(payload={'retryAfter': int(reset_at - now) + 1})
                cache.set(key, (count + 1, reset_at), timeout=max(int(reset_at - now), 1))
            return func(*args, **kwargs)
        return wrapper
    return decorator
