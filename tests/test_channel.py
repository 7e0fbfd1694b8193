# tests/test_channel.py
"""Tests for the drop-oldest frame channel and its delivery worker."""

from __future__ import annotations

import threading
import time

import pytest
from conftest import make_event

from depthrec.session.channel import DeliveryWorker, FrameChannel
from depthrec.utils.error_tracker import ErrorTracker


def test_channel_rejects_zero_size() -> None:
    with pytest.raises(ValueError):
        FrameChannel(0)


def test_full_channel_drops_oldest() -> None:
    channel = FrameChannel(maxsize=3)

    for index in range(5):
        assert channel.put(make_event(index))

    assert channel.accepted == 5
    assert channel.dropped == 2
    assert channel.pending() == 3
    assert [channel.get(timeout=0.1).index for _ in range(3)] == [2, 3, 4]
    assert channel.get(timeout=0.01) is None


def test_close_discards_and_rejects() -> None:
    channel = FrameChannel(maxsize=4)
    channel.put(make_event(0))
    channel.put(make_event(1))

    assert channel.close() == 2
    assert channel.closed
    assert channel.put(make_event(2)) is False
    assert channel.get(timeout=0.01) is None
    # marker stays for later readers
    assert channel.get(timeout=0.01) is None
    assert channel.close() == 0


def test_worker_serializes_handler_calls() -> None:
    channel = FrameChannel(maxsize=64)
    tracker = ErrorTracker(context="test")
    active = [0]
    overlap = [False]
    seen: list[int] = []
    done = threading.Event()

    def _handler(event) -> None:
        active[0] += 1
        if active[0] > 1:
            overlap[0] = True
        time.sleep(0.001)
        seen.append(event.index)
        active[0] -= 1
        if len(seen) == 20:
            done.set()

    worker = DeliveryWorker(channel, _handler, tracker, poll_s=0.01)
    worker.start()
    producers = [
        threading.Thread(target=lambda base=base: [channel.put(make_event(base + i)) for i in range(10)])
        for base in (0, 100)
    ]
    for thread in producers:
        thread.start()
    for thread in producers:
        thread.join()

    assert done.wait(5.0)
    channel.close()
    assert worker.join(timeout=2.0)
    assert not overlap[0]
    assert worker.delivered == 20
    assert sorted(seen) == list(range(10)) + list(range(100, 110))


def test_handler_errors_are_recorded_and_delivery_continues() -> None:
    channel = FrameChannel(maxsize=8)
    tracker = ErrorTracker(context="test")
    seen: list[int] = []

    def _handler(event) -> None:
        if event.index == 1:
            raise ValueError("bad frame")
        seen.append(event.index)

    worker = DeliveryWorker(channel, _handler, tracker, poll_s=0.01)
    worker.start()
    for index in range(3):
        channel.put(make_event(index))

    deadline = time.monotonic() + 5.0
    while len(seen) < 2 and time.monotonic() < deadline:
        time.sleep(0.005)
    channel.close()
    worker.join(timeout=2.0)

    assert seen == [0, 2]
    assert tracker.count("handler") == 1
    assert "ValueError: bad frame" in tracker.errors["handler"][0]


def test_join_before_start_returns_true() -> None:
    worker = DeliveryWorker(FrameChannel(), lambda event: None, ErrorTracker())

    assert worker.join(timeout=0.01)
    assert not worker.is_alive()


def test_blocking_channel_waits_for_room() -> None:
    channel = FrameChannel(maxsize=2, block=True)
    channel.put(make_event(0))
    channel.put(make_event(1))
    done = threading.Event()

    def _produce() -> None:
        channel.put(make_event(2))
        done.set()

    threading.Thread(target=_produce, daemon=True).start()

    assert not done.wait(0.1)
    assert channel.get(timeout=0.1).index == 0
    assert done.wait(2.0)
    assert channel.dropped == 0
    assert [channel.get(timeout=0.1).index for _ in range(2)] == [1, 2]


def test_close_releases_blocked_producer() -> None:
    channel = FrameChannel(maxsize=1, block=True)
    channel.put(make_event(0))
    result: list[bool] = []
    producer = threading.Thread(target=lambda: result.append(channel.put(make_event(1))), daemon=True)
    producer.start()
    time.sleep(0.05)

    channel.close()
    producer.join(timeout=2.0)

    assert result == [False]
    assert channel.accepted == 1
