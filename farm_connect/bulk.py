"""
Bulk document generation.

`schedule_bulk` spaces one render call per record on the running asyncio loop:
call `i` fires `i * delay` seconds after the first. The caller gets a `BulkJob`
back immediately and may await its completion or cancel whatever is still
pending. A failing record is logged and recorded in the job results; the
remaining calls keep firing.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from farm_connect.config import get_settings
from farm_connect.domain.models import LedgerRecord
from farm_connect.errors import NothingToGenerateError
from farm_connect.utils.logging import get_logger

log = get_logger(__name__)

RenderFn = Callable[[LedgerRecord], Any]


class ItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BulkItemResult:
    index: int
    record: LedgerRecord
    status: ItemStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ItemStatus.SUCCEEDED


class BulkJob:
    """
    Handle over a scheduled bulk run.

    Attributes
    ----------
    handles : tuple[asyncio.TimerHandle, ...]
        One timer per record, in input order.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        records: Sequence[LedgerRecord],
        render_fn: RenderFn,
        delay: float,
    ) -> None:
        self._records = tuple(records)
        self._render_fn = render_fn
        self._results: List[Optional[BulkItemResult]] = [None] * len(self._records)
        self._pending: Set[int] = set(range(len(self._records)))
        self._done: asyncio.Future = loop.create_future()
        self.delay = delay
        self.handles: Tuple[asyncio.TimerHandle, ...] = tuple(
            loop.call_later(index * delay, self._fire, index)
            for index in range(len(self._records))
        )

    @property
    def total(self) -> int:
        return len(self._records)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def done(self) -> bool:
        return self._done.done()

    def _fire(self, index: int) -> None:
        record = self._records[index]
        self._pending.discard(index)
        try:
            value = self._render_fn(record)
        except Exception as exc:  # noqa: BLE001 - one bad record must not stop the run
            log.exception(
                "[BULK ITEM FAILED] %d/%d",
                index + 1,
                self.total,
                extra={"index": index, "record_id": record.id, "kind": record.kind.value},
            )
            self._results[index] = BulkItemResult(
                index=index, record=record, status=ItemStatus.FAILED, error=str(exc)
            )
        else:
            log.info(
                "[BULK ITEM] %d/%d",
                index + 1,
                self.total,
                extra={"index": index, "record_id": record.id, "kind": record.kind.value},
            )
            self._results[index] = BulkItemResult(
                index=index, record=record, status=ItemStatus.SUCCEEDED, value=value
            )
        self._maybe_finish()

    def _maybe_finish(self) -> None:
        if self._pending or self._done.done():
            return
        self._done.set_result(self.results())
        failed = sum(1 for r in self.results() if r.status is ItemStatus.FAILED)
        log.info(
            "[BULK COMPLETE] %d record(s)",
            self.total,
            extra={"total": self.total, "failed": failed},
        )

    def cancel(self) -> int:
        """Cancel every call that has not fired yet; return how many were cancelled."""
        cancelled = sorted(self._pending)
        for index in cancelled:
            self.handles[index].cancel()
            self._results[index] = BulkItemResult(
                index=index, record=self._records[index], status=ItemStatus.CANCELLED
            )
        self._pending.clear()
        if cancelled:
            log.warning("[BULK CANCELLED] %d pending call(s)", len(cancelled))
        self._maybe_finish()
        return len(cancelled)

    def results(self) -> List[BulkItemResult]:
        """Results recorded so far, in input order."""
        return [r for r in self._results if r is not None]

    async def wait(self) -> List[BulkItemResult]:
        """Resolve once every call has fired or been cancelled."""
        return await asyncio.shield(self._done)


def schedule_bulk(
    records: Sequence[LedgerRecord],
    render_fn: RenderFn,
    delay: Optional[float] = None,
) -> BulkJob:
    """
    Schedule `render_fn` once per record on the running loop.

    Parameters
    ----------
    records : Sequence[LedgerRecord]
        Records to render, in the order they should fire.
    render_fn : Callable
        Called with one record; its return value is kept in the item result.
    delay : float | None
        Seconds between consecutive calls. Defaults to settings.bulk_delay_ms.

    Raises
    ------
    NothingToGenerateError
        When `records` is empty. Nothing is scheduled.
    """
    if not records:
        raise NothingToGenerateError("No items to generate slips for")
    if delay is None:
        delay = get_settings().bulk_delay_ms / 1000
    if delay < 0:
        raise ValueError("Bulk delay cannot be negative.")

    loop = asyncio.get_running_loop()
    log.info(
        "[BULK START] %d record(s)",
        len(records),
        extra={"total": len(records), "delay_seconds": delay},
    )
    return BulkJob(loop, records, render_fn, delay)


def run_bulk(
    records: Sequence[LedgerRecord],
    render_fn: RenderFn,
    delay: Optional[float] = None,
) -> List[BulkItemResult]:
    """Blocking entry point: schedule, wait for completion, return item results."""

    async def _run() -> List[BulkItemResult]:
        job = schedule_bulk(records, render_fn, delay)
        try:
            return await job.wait()
        except asyncio.CancelledError:
            job.cancel()
            raise

    return asyncio.run(_run())


__all__ = [
    "BulkItemResult",
    "BulkJob",
    "ItemStatus",
    "run_bulk",
    "schedule_bulk",
]
