from __future__ import annotations

import asyncio
import logging

from redis import asyncio as redis_asyncio

from tabletalk.application.ports.publisher import ORDER_EVENTS_CHANNEL, BroadcastSink

logger = logging.getLogger(__name__)


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


async def relay_redis_events(channel: BroadcastSink, redis_url: str) -> None:
    """Forward every message on the Redis order channel into ``channel``.

    Reconnects with capped exponential backoff. Messages published while
    disconnected are lost, same as for a disconnected websocket.
    """
    backoff_seconds = 1.0
    while True:
        client: redis_asyncio.Redis | None = None
        pubsub: redis_asyncio.client.PubSub | None = None
        try:
            client = redis_asyncio.from_url(redis_url)
            pubsub = client.pubsub()
            await pubsub.subscribe(ORDER_EVENTS_CHANNEL)
            logger.info("redis_relay_subscribed", extra={"channel": ORDER_EVENTS_CHANNEL})
            backoff_seconds = 1.0

            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is None:
                    await asyncio.sleep(0.01)
                    continue

                payload = _decode_value(message.get("data"))
                if not payload:
                    continue
                channel.publish(payload)
        except asyncio.CancelledError:
            logger.info("redis_relay_cancelled")
            raise
        except Exception:
            logger.exception(
                "redis_relay_error",
                extra={"backoff_seconds": backoff_seconds},
            )
            await asyncio.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, 5.0)
        finally:
            if pubsub is not None:
                await pubsub.aclose()
            if client is not None:
                await client.aclose()
