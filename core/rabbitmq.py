"""RabbitMQ side channel (NestJS-style ``{"pattern", "data"}`` envelopes)."""
import asyncio
import json
import logging

import aio_pika

from core.extensions import db
from core.imports import current_app

logger = logging.getLogger(__name__)

RETRY_DELAY = 5


async def _publish(url, queue_name, body):
    connection = await aio_pika.connect_robust(url)
    async with connection:
        channel = await connection.channel()
        await channel.declare_queue(queue_name, durable=True)
        await channel.default_exchange.publish(
            aio_pika.Message(
                body=body,
                content_type="application/json",
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            ),
            routing_key=queue_name,
        )


def publish(pattern, data, queue_name=None):
    """Publish a message; returns False instead of raising when the broker is unavailable."""
    url = current_app.config.get("RABBITMQ_URL")
    if not url:
        logger.warning("RABBITMQ_URL not configured, skipping '%s' message", pattern)
        return False

    queue_name = queue_name or current_app.config.get("RABBITMQ_QUEUE")
    body = json.dumps({"pattern": pattern, "data": data}, default=str).encode()
    try:
        asyncio.run(_publish(url, queue_name, body))
    except (aio_pika.exceptions.AMQPError, OSError, RuntimeError) as e:
        logger.error("Error publishing '%s' to RabbitMQ: %s", pattern, e)
        return False

    logger.info("Published '%s' to queue %s", pattern, queue_name)
    return True


async def _consume(url, queue_name, handlers):
    while True:
        try:
            connection = await aio_pika.connect_robust(url)
            async with connection:
                channel = await connection.channel()
                await channel.set_qos(prefetch_count=1)
                queue = await channel.declare_queue(queue_name, durable=True)
                logger.info("Waiting for messages on %s", queue_name)

                async with queue.iterator() as messages:
                    async for message in messages:
                        async with message.process():
                            dispatch(message.body, handlers)
        except aio_pika.exceptions.AMQPConnectionError:
            logger.warning("RabbitMQ not ready, retrying in %s seconds", RETRY_DELAY)
            await asyncio.sleep(RETRY_DELAY)


def dispatch(body, handlers):
    """Route one raw message body to its pattern handler. Handler errors are logged, not re-raised."""
    try:
        envelope = json.loads(body.decode() if isinstance(body, bytes) else body)
    except (ValueError, UnicodeDecodeError):
        logger.error("Discarding malformed message: %r", body[:200])
        return None

    pattern = envelope.get("pattern")
    handler = handlers.get(pattern)
    if handler is None:
        logger.warning("No handler for pattern '%s'", pattern)
        return None

    try:
        return handler(envelope.get("data") or {})
    except Exception:
        logger.exception("Handler for '%s' failed", pattern)
        return None
    finally:
        # the consumer is long-lived, each message gets a fresh session
        db.session.remove()


def consume(handlers, queue_name=None):
    url = current_app.config.get("RABBITMQ_URL")
    if not url:
        raise RuntimeError("RABBITMQ_URL is not set")
    queue_name = queue_name or current_app.config.get("RABBITMQ_PRESUPUESTO_QUEUE")
    asyncio.run(_consume(url, queue_name, handlers))
