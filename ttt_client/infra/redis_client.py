from __future__ import annotations

import redis

from ttt_client.config import ClientSettings


def create_redis(settings: ClientSettings) -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)
