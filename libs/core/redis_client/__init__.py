"""Cache (Redis/ValKey) client helpers."""

from libs.core.redis_client.client import close_cache_client, init_cache_client

__all__ = [
    "close_cache_client",
    "init_cache_client",
]
