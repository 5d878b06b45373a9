"""Batching of multi-PV search reports into coherent snapshots."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from enginelines.engine.models import BestMovePayload, SearchInfo
from enginelines.engine.search import BestMovesSink, Clock, SessionConfig

_LOGGER = logging.getLogger(__name__)

PayloadConverter = Callable[[SearchInfo], BestMovePayload | None]


class LineAggregator:
    """Collects one record per multipv index and emits complete batches.

    A batch is emitted only when every requested line is present, all of
    them report the same depth, that depth reaches ``config.min_depth``, and
    more than ``config.debounce_ms`` passed since the previous emission
    (a zero interval disables the throttle).
    A full batch is cleared whether or not it was emitted.
    """

    __slots__ = (
        "_lines",
        "_convert",
        "_sink",
        "_min_depth",
        "_debounce_s",
        "_clock",
        "_batch",
        "_last_emit",
    )

    def __init__(
        self,
        lines: int,
        *,
        convert: PayloadConverter,
        sink: BestMovesSink,
        config: SessionConfig | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        cfg = config or SessionConfig()
        self._lines = lines
        self._convert = convert
        self._sink = sink
        self._min_depth = cfg.min_depth
        self._debounce_s = cfg.debounce_ms / 1000.0
        self._clock = clock
        self._batch: dict[int, SearchInfo] = {}
        self._last_emit: float | None = None

    @property
    def pending(self) -> int:
        """Number of records in the current, incomplete batch."""
        return len(self._batch)

    def push(self, info: SearchInfo) -> bool:
        """Add *info* to the batch; return ``True`` if a batch was emitted."""
        if info.multipv > self._lines:
            return False
        self._batch[info.multipv] = info
        if len(self._batch) < self._lines:
            return False

        batch = [self._batch[index] for index in sorted(self._batch)]
        self._batch.clear()

        now = self._clock()
        if not self._should_emit(batch, now):
            return False

        payloads: list[BestMovePayload] = []
        for info_line in batch:
            payload = self._convert(info_line)
            if payload is None:
                _LOGGER.debug(
                    "Dropping depth %d batch: multipv %d has an illegal pv",
                    info_line.depth,
                    info_line.multipv,
                )
                return False
            payloads.append(payload)

        self._sink(payloads)
        self._last_emit = now
        return True

    def _should_emit(self, batch: list[SearchInfo], now: float) -> bool:
        depth = batch[0].depth
        if any(info.depth != depth for info in batch):
            return False
        if depth < self._min_depth:
            return False
        if self._last_emit is None or not self._debounce_s:
            return True
        return now - self._last_emit > self._debounce_s
