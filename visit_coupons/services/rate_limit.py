"""Fixed-window request counters per client IP.

Backed by Redis when it is configured and reachable, otherwise by an
in-process store. The chosen store lives in ``app.extensions``.
"""
import logging
import threading
import time

import redis
from flask import current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'visit_coupons.rate_limit'


class RateLimitExceeded(Exception):
    def __init__(self, scope: str, retry_after: int):
        super().__init__(f"rate exceeded for {scope}")
        self.scope = scope
        self.retry_after = retry_after


class MemStore:
    def __init__(self):
        self._data = {}
        self._exp = {}
        self._lock = threading.Lock()

    def _cleanup(self):
        now = time.time()
        expired = [k for k, ts in self._exp.items() if ts <= now]
        for k in expired:
            self._data.pop(k, None)
            self._exp.pop(k, None)

    def incr(self, key):
        with self._lock:
            self._cleanup()
            v = int(self._data.get(key, '0')) + 1
            self._data[key] = str(v)
            return v

    def expire(self, key, ttl):
        with self._lock:
            self._cleanup()
            self._exp[key] = time.time() + ttl


class _Holder:
    def __init__(self):
        self.store = None
        self.lock = threading.Lock()


def init_app(app):
    app.extensions[EXTENSION_KEY] = _Holder()


def connect(config):
    """Pick Redis when enabled and reachable, else the memory store."""
    url = config.get('REDIS_URL')
    if config.get('USE_REDIS') and url:
        try:
            client = redis.from_url(url, decode_responses=True)
            client.ping()
            return client
        except redis.RedisError:
            logger.warning("redis at %s unreachable, rate limiting in memory", url)
    return MemStore()


def store():
    holder = current_app.extensions[EXTENSION_KEY]
    if holder.store is not None:
        return holder.store
    with holder.lock:
        if holder.store is None:
            holder.store = connect(current_app.config)
        return holder.store


def check_rate_ip(scope: str, ip: str, limit: int | None = None, window: int | None = None):
    limit = limit or current_app.config.get('RATE_LIMIT_VALIDATE', 20)
    window = window or current_app.config.get('RATE_LIMIT_WINDOW', 60)
    slot = int(time.time() // window)
    k = f"rl:{scope}:{ip}:{slot}"
    v = store().incr(k)
    store().expire(k, window)
    if v > limit:
        raise RateLimitExceeded(scope, retry_after=(slot + 1) * window - int(time.time()))
