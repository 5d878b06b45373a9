"""Tests for the single-use cancellation token."""

from __future__ import annotations

import threading

from enginelines.engine.cancellation import CancelToken


class TestCancelToken:
    def test_first_cancel_notifies(self) -> None:
        calls: list[int] = []
        token = CancelToken(lambda: calls.append(1))
        assert token.cancel() is True
        assert token.cancelled is True
        assert calls == [1]

    def test_second_cancel_is_noop(self) -> None:
        calls: list[int] = []
        token = CancelToken(lambda: calls.append(1))
        token.cancel()
        assert token.cancel() is False
        assert calls == [1]

    def test_cancel_after_release_is_noop(self) -> None:
        calls: list[int] = []
        token = CancelToken(lambda: calls.append(1))
        token.release()
        assert token.cancel() is False
        assert token.released is True
        assert calls == []

    def test_concurrent_cancels_notify_once(self) -> None:
        calls: list[int] = []
        token = CancelToken(lambda: calls.append(1))
        barrier = threading.Barrier(8)

        def _fire() -> None:
            barrier.wait()
            token.cancel()

        threads = [threading.Thread(target=_fire) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls == [1]
