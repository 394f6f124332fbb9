"""Unit tests for the retry queue."""

from hypothesis import given, settings, strategies as st

from auth_dispatch.core.retry_queue import RetryQueue
from auth_dispatch.models import PendingRequest

from ..helpers import make_request


def pending(path: str) -> PendingRequest:
    return PendingRequest(make_request(path), lambda result: None)


class TestRetryQueue:
    """Tests for RetryQueue."""

    def test_new_queue_is_empty(self) -> None:
        queue = RetryQueue()

        assert len(queue) == 0
        assert not queue
        assert queue.drain_all() == []

    def test_drain_returns_fifo_order(self) -> None:
        queue = RetryQueue()
        items = [pending(f"/r{i}") for i in range(3)]
        for item in items:
            queue.enqueue(item)

        assert queue.drain_all() == items

    def test_drain_leaves_queue_empty(self) -> None:
        queue = RetryQueue()
        queue.enqueue(pending("/a"))

        queue.drain_all()

        assert len(queue) == 0
        assert queue.drain_all() == []

    def test_enqueue_after_drain_starts_fresh_queue(self) -> None:
        queue = RetryQueue()
        first = pending("/a")
        queue.enqueue(first)

        drained = queue.drain_all()
        late = pending("/b")
        queue.enqueue(late)

        assert drained == [first]
        assert queue.drain_all() == [late]

    @given(batches=st.lists(st.integers(min_value=0, max_value=10), max_size=10))
    @settings(max_examples=100)
    def test_every_item_drained_exactly_once_in_order(self, batches: list[int]) -> None:
        """Property: drains partition the enqueued sequence in order."""
        queue = RetryQueue()
        enqueued: list[PendingRequest] = []
        drained: list[PendingRequest] = []

        for batch, size in enumerate(batches):
            for i in range(size):
                item = pending(f"/b{batch}/{i}")
                enqueued.append(item)
                queue.enqueue(item)
            drained.extend(queue.drain_all())

        assert drained == enqueued
        assert len(queue) == 0
