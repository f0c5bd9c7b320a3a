"""Redis pub/sub notification of graduation events.

Consumers (the deployment worker, UI push gateway) subscribe to
GRADUATION_CHANNEL and report back via POST /graduation/complete.
"""

import json
import logging

from config.settings import settings
from src.lp_common.redis_client import get_redis
from src.lp_graduation.domain.models import GraduationEvent

logger = logging.getLogger(__name__)


class RedisGraduationPublisher:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.GRADUATION_CHANNEL

    async def publish(self, event: GraduationEvent) -> None:
        redis = await get_redis()
        receivers = await redis.publish(self._channel, json.dumps(event.to_payload()))
        logger.info(
            "Graduation event published: agent=%s event=%s status=%s receivers=%s",
            event.agent_id, event.id, event.status, receivers,
        )
