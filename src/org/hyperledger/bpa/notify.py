"""Partner event notifications.

Events are published to Redis channels named ``{prefix}:{event type}``; the
webhook relay subscribed to those channels owns delivery to registered
webhooks.
"""

import json
import logging
from enum import Enum
from pydantic import BaseModel
import redis.asyncio as redis
from redis.exceptions import RedisError
import sentry_sdk

logger = logging.getLogger(__name__)


class WebhookEventType(str, Enum):
    partner_added = "partner-added"


class RedisNotificationSink:
    """Fire-and-forget publisher for partner events."""

    def __init__(self, redis_client: redis.Redis, channel_prefix: str = "bpa:webhook"):
        self.redis_client = redis_client
        self.channel_prefix = channel_prefix

    def channel(self, event_type: WebhookEventType) -> str:
        return f"{self.channel_prefix}:{event_type.value}"

    async def publish(self, event_type: WebhookEventType, payload: BaseModel) -> None:
        message = json.dumps(
            {"type": event_type.value, "payload": payload.model_dump(mode="json")}
        )
        try:
            await self.redis_client.publish(self.channel(event_type), message)
        except RedisError as e:
            sentry_sdk.capture_exception(e)
            logger.error("Could not publish %s event: %s", event_type.value, e)
