"""
Tests for the state publish/subscribe channel.
"""
from smartcare.core.notifications import StateChannel


def test_subscribe_delivers_current_value():
    channel = StateChannel("a")
    seen = []

    channel.subscribe(seen.append)

    assert seen == ["a"]


def test_publish_notifies_on_change_only():
    channel = StateChannel("a")
    seen = []
    channel.subscribe(seen.append)

    assert channel.publish("b") is True
    assert channel.publish("b") is False

    assert seen == ["a", "b"]
    assert channel.current == "b"


def test_unsubscribe_is_idempotent():
    channel = StateChannel(0)
    seen = []
    unsubscribe = channel.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    channel.publish(1)

    assert seen == [0]
    assert channel.subscriber_count == 0


def test_failing_subscriber_does_not_block_others():
    channel = StateChannel(0)
    seen = []

    def bad(_value):
        raise RuntimeError("boom")

    channel.subscribe(bad)
    channel.subscribe(seen.append)
    channel.publish(1)

    assert seen == [0, 1]


def test_publish_from_subscriber_is_delivered_in_order():
    channel = StateChannel(0)
    first_seen = []
    second_seen = []

    def first(value):
        first_seen.append(value)
        if value == 1:
            channel.publish(2)

    channel.subscribe(first)
    channel.subscribe(second_seen.append)
    channel.publish(1)

    assert first_seen == [0, 1, 2]
    assert second_seen == [0, 1, 2]
    assert channel.current == 2


def test_close_drops_subscribers():
    channel = StateChannel(0)
    seen = []
    channel.subscribe(seen.append)

    channel.close()
    channel.publish(1)

    assert seen == [0]


def test_subscribe_from_subscriber_gets_each_value_once():
    channel = StateChannel(0)
    late_seen = []

    def first(value):
        if value == 1:
            channel.publish(2)
            channel.subscribe(late_seen.append)

    channel.subscribe(first)
    channel.publish(1)
    channel.publish(3)

    assert late_seen == [2, 3]
    assert channel.subscriber_count == 2
