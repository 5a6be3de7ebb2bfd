"""Publishing to and subscribing from the message broker."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

import pika
import pika.exceptions

from peril.gob import GobError, decode_game_log, encode_game_log
from peril.routing import GameLog

logger = logging.getLogger(__name__)

DEAD_LETTER_EXCHANGE = "peril_dlx"
_PREFETCH_COUNT = 10


class PubSubError(Exception):
    """A broker operation failed."""


class SimpleQueueType(Enum):
    DURABLE = 0
    TRANSIENT = 1


class AckType(Enum):
    ACK = 0
    NACK_REQUEUE = 1
    NACK_DISCARD = 2


def declare_and_bind(connection, exchange, queue_name, key, queue_type):
    """Open a channel, declare a queue and bind it; return (channel, queue name)."""
    try:
        channel = connection.channel()
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't open new channel: {exc}") from exc

    durable = queue_type == SimpleQueueType.DURABLE
    try:
        result = channel.queue_declare(
            queue=queue_name,
            durable=durable,
            auto_delete=not durable,
            exclusive=not durable,
            arguments={"x-dead-letter-exchange": DEAD_LETTER_EXCHANGE},
        )
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't declare new queue: {exc}") from exc

    declared = result.method.queue
    try:
        channel.queue_bind(queue=declared, exchange=exchange, routing_key=key)
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't bind new queue to exchange: {exc}") from exc
    return channel, declared


def _publish(channel, exchange, key, body: bytes, content_type: str) -> None:
    try:
        channel.basic_publish(
            exchange=exchange,
            routing_key=key,
            body=body,
            properties=pika.BasicProperties(content_type=content_type),
        )
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't publish message: {exc}") from exc


def publish_json(channel, exchange, key, value) -> None:
    """Publish a value (or an object with ``to_dict``) as JSON."""
    payload = value.to_dict() if hasattr(value, "to_dict") else value
    try:
        body = json.dumps(payload).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PubSubError(f"couldn't encode message: {exc}") from exc
    _publish(channel, exchange, key, body, "application/json")


def publish_gob(channel, exchange, key, game_log: GameLog) -> None:
    """Publish a game log in the gob encoding."""
    _publish(channel, exchange, key, encode_game_log(game_log), "application/gob")


def _settle(channel, delivery_tag, ack: AckType) -> None:
    if ack == AckType.ACK:
        channel.basic_ack(delivery_tag=delivery_tag, multiple=True)
    elif ack == AckType.NACK_REQUEUE:
        channel.basic_nack(delivery_tag=delivery_tag, multiple=False, requeue=True)
    elif ack == AckType.NACK_DISCARD:
        channel.basic_nack(delivery_tag=delivery_tag, multiple=False, requeue=False)


def subscribe_json(
    connection,
    exchange,
    queue_name,
    key,
    queue_type,
    handler: Callable[[Any], AckType],
    parse: Optional[Callable[[Any], Any]],
):
    """Consume JSON messages, passing ``parse(data)`` to ``handler``.

    Returns the consuming channel; the caller drives it with start_consuming().
    """
    channel, _ = declare_and_bind(connection, exchange, queue_name, key, queue_type)
    try:
        channel.basic_qos(prefetch_count=_PREFETCH_COUNT, global_qos=True)
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't set prefetch: {exc}") from exc

    def on_message(ch, method, properties, body):
        try:
            data = json.loads(body)
            value = parse(data) if parse is not None else data
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("couldn't unmarshal data: %s", exc)
            return
        _settle(ch, method.delivery_tag, handler(value))

    try:
        channel.basic_consume(
            queue=queue_name, on_message_callback=on_message, auto_ack=False
        )
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't start consuming: {exc}") from exc
    return channel


def subscribe_gob(connection, exchange, queue_name, key, queue_type, handler):
    """Consume gob-encoded game logs; returns the consuming channel."""
    channel, _ = declare_and_bind(connection, exchange, queue_name, key, queue_type)

    def on_message(ch, method, properties, body):
        try:
            value = decode_game_log(body)
        except GobError as exc:
            logger.warning("couldn't decode data: %s", exc)
            value = decode_game_log(encode_game_log(_empty_log()))
        _settle(ch, method.delivery_tag, handler(value))

    try:
        channel.basic_consume(
            queue=queue_name, on_message_callback=on_message, auto_ack=False
        )
    except pika.exceptions.AMQPError as exc:
        raise PubSubError(f"couldn't start consuming: {exc}") from exc
    return channel


def _empty_log() -> GameLog:
    from datetime import datetime, timezone

    return GameLog(datetime(1, 1, 1, tzinfo=timezone.utc), "", "")