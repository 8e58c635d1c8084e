import time
from functools import wraps
import logging

import httpx

logger = logging.getLogger(__name__)

TRANSIENT_MARKERS = ("disconnected", "timeout", "timed out", "connection reset")


def is_transient(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def retry_supabase(max_retries=3, backoff=2, sleep=time.sleep):
    """Retry a Supabase read on dropped connections and timeouts only."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            retries = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_transient(e) or retries >= max_retries:
                        raise
                    retries += 1
                    wait = backoff ** retries
                    logger.warning(f"Supabase retry {retries}/{max_retries} after {wait}s: {str(e)}")
                    sleep(wait)
        return wrapper
    return decorator
