import json
from typing import Any

import redis.asyncio as redis
from cbdra.core.config import settings

# Connections are opened lazily on first command
redis_client = redis.Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    password=settings.REDIS_PASSWORD,
    decode_responses=True,
    socket_connect_timeout=2,
)

USER_CHANNEL_PREFIX = "user:"


def user_channel(user_id: int) -> str:
    return f"{USER_CHANNEL_PREFIX}{user_id}"


async def publish_message(channel: str, message: Any) -> int:
    """Publish a JSON message to a redis channel; returns the receiver count."""
    serialized_message = json.dumps(message, default=str)
    return await redis_client.publish(channel, serialized_message)
