import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pika.exceptions
import pytest

from peril.gob import decode_game_log, encode_game_log
from peril.pubsub import (
    AckType,
    PubSubError,
    SimpleQueueType,
    declare_and_bind,
    publish_gob,
    publish_json,
    subscribe_gob,
    subscribe_json,
)
from peril.routing import GameLog, PlayingState


class FakeChannel:
    def __init__(self, fail_publish=False, fail_bind=False):
        self.fail_publish = fail_publish
        self.fail_bind = fail_bind
        self.declared = []
        self.bound = []
        self.published = []
        self.acks = []
        self.nacks = []
        self.callback = None
        self.qos = None

    def queue_declare(self, **kwargs):
        self.declared.append(kwargs)
        return SimpleNamespace(method=SimpleNamespace(queue=kwargs["queue"]))

    def queue_bind(self, **kwargs):
        if self.fail_bind:
            raise pika.exceptions.AMQPChannelError("boom")
        self.bound.append(kwargs)

    def basic_publish(self, **kwargs):
        if self.fail_publish:
            raise pika.exceptions.AMQPChannelError("boom")
        self.published.append(kwargs)

    def basic_qos(self, **kwargs):
        self.qos = kwargs

    def basic_consume(self, queue, on_message_callback, auto_ack):
        self.callback = on_message_callback

    def basic_ack(self, delivery_tag, multiple):
        self.acks.append((delivery_tag, multiple))

    def basic_nack(self, delivery_tag, multiple, requeue):
        self.nacks.append((delivery_tag, requeue))

    def deliver(self, body, tag=1):
        self.callback(self, SimpleNamespace(delivery_tag=tag), None, body)


class FakeConnection:
    def __init__(self, channel):
        self._channel = channel

    def channel(self):
        return self._channel


def test_declare_durable_queue():
    ch = FakeChannel()
    channel, name = declare_and_bind(FakeConnection(ch), "ex", "q", "k", SimpleQueueType.DURABLE)
    assert channel is ch and name == "q"
    decl = ch.declared[0]
    assert decl["durable"] is True and decl["auto_delete"] is False and decl["exclusive"] is False
    assert decl["arguments"] == {"x-dead-letter-exchange": "peril_dlx"}
    assert ch.bound == [{"queue": "q", "exchange": "ex", "routing_key": "k"}]


def test_declare_transient_queue():
    ch = FakeChannel()
    declare_and_bind(FakeConnection(ch), "ex", "q", "k", SimpleQueueType.TRANSIENT)
    decl = ch.declared[0]
    assert decl["durable"] is False and decl["auto_delete"] is True and decl["exclusive"] is True


def test_bind_failure_raises():
    with pytest.raises(PubSubError):
        declare_and_bind(FakeConnection(FakeChannel(fail_bind=True)), "e", "q", "k", SimpleQueueType.DURABLE)


def test_publish_json_body():
    ch = FakeChannel()
    publish_json(ch, "ex", "pause", PlayingState(True))
    sent = ch.published[0]
    assert json.loads(sent["body"]) == {"IsPaused": True}
    assert sent["properties"].content_type == "application/json"


def test_publish_error_raises():
    with pytest.raises(PubSubError):
        publish_json(FakeChannel(fail_publish=True), "ex", "k", {"a": 1})


def test_publish_gob_round_trip():
    ch = FakeChannel()
    log = GameLog(datetime(2024, 1, 1, tzinfo=timezone.utc), "msg", "alice")
    publish_gob(ch, "ex", "game_logs.alice", log)
    assert decode_game_log(ch.published[0]["body"]) == log
    assert ch.published[0]["properties"].content_type == "application/gob"


@pytest.mark.parametrize(
    "ack,expected_acks,expected_nacks",
    [
        (AckType.ACK, [(7, True)], []),
        (AckType.NACK_REQUEUE, [], [(7, True)]),
        (AckType.NACK_DISCARD, [], [(7, False)]),
    ],
)
def test_subscribe_json_settles(ack, expected_acks, expected_nacks):
    ch = FakeChannel()
    received = []

    def handler(state):
        received.append(state)
        return ack

    subscribe_json(FakeConnection(ch), "ex", "q", "k", SimpleQueueType.DURABLE, handler, PlayingState.from_dict)
    ch.deliver(json.dumps({"IsPaused": True}).encode(), tag=7)
    assert received == [PlayingState(True)]
    assert ch.acks == expected_acks and ch.nacks == expected_nacks
    assert ch.qos["global_qos"] is True


def test_subscribe_json_skips_bad_body():
    ch = FakeChannel()
    received = []
    subscribe_json(FakeConnection(ch), "ex", "q", "k", SimpleQueueType.DURABLE,
                   lambda v: received.append(v) or AckType.ACK, None)
    ch.deliver(b"not json")
    assert received == [] and ch.acks == [] and ch.nacks == []


def test_subscribe_gob_delivers_log():
    ch = FakeChannel()
    received = []
    subscribe_gob(FakeConnection(ch), "ex", "q", "k", SimpleQueueType.DURABLE,
                  lambda v: received.append(v) or AckType.NACK_DISCARD)
    log = GameLog(datetime(2022, 6, 1, tzinfo=timezone.utc), "m", "bob")
    ch.deliver(encode_game_log(log), tag=3)
    assert received == [log]
    assert ch.nacks == [(3, False)]