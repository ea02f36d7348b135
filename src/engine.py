"""
Streaming analysis driver.

Entries are processed strictly in arrival order: decode + normalize
(256x256 by default) -> pHash + Laplacian variance -> accumulate. Every
`regroup_every` processed items the full accumulated state is re-classified
and a snapshot is emitted; closing emits one final snapshot when the last
batch boundary was not hit exactly. Undecodable entries are skipped.

Two entry points:
- analyze_streaming(entries): lazy, single-use iterator of snapshots.
- StreamingSession: incremental add()/close(), backed by a single worker
  thread that drains a FIFO queue.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, List, Optional

from aggregate import classify
from config import AnalysisConfig
from errors import InvalidArgumentError
from image_phash import check_hash_params, phash64
from imaging import decode_and_resize
from logs import get_logger
from models import AnalyzedItem, ClassificationSnapshot, MediaEntry
from sharpness import is_blurry, laplacian_variance

log = get_logger("pclean.engine")

SnapshotListener = Callable[[ClassificationSnapshot], None]


class _Accumulator:
    """Session-owned state; not shared, not thread-safe on its own."""

    def __init__(self, cfg: AnalysisConfig) -> None:
        check_hash_params(cfg.hash_size, cfg.dct_size)
        self.cfg = cfg
        self.items: List[AnalyzedItem] = []
        self._emitted_at = 0

    @property
    def processed(self) -> int:
        return len(self.items)

    def _analyze(self, entry: MediaEntry) -> Optional[AnalyzedItem]:
        if entry.data is None:
            log.debug(f"skip (payload released): {entry.name}")
            return None
        side = self.cfg.normalize_size
        image = decode_and_resize(entry.data, width=side, height=side)
        if image is None:
            log.debug(f"skip (cannot decode): {entry.name}")
            return None

        phash = phash64(image, size=self.cfg.hash_size, dct_size=self.cfg.dct_size)
        variance = laplacian_variance(image)
        return AnalyzedItem(
            name=entry.name,
            phash=phash,
            variance=variance,
            is_blurry=is_blurry(variance, self.cfg.blur_threshold),
            index=len(self.items),
            tag=entry.tag,
            size=entry.size,
        )

    def _emit(self) -> ClassificationSnapshot:
        snap = classify(self.items, phash_threshold=self.cfg.phash_threshold)
        self._emitted_at = len(self.items)
        log.info(
            f"snapshot: {snap.all.count} processed, "
            f"{snap.duplicate.count} duplicate, {snap.similar.count} similar, "
            f"{snap.blur.count} blurry"
        )
        return snap

    def process(self, entry: MediaEntry) -> Optional[ClassificationSnapshot]:
        """Analyze one entry; return a snapshot when a batch boundary is reached."""
        item = self._analyze(entry)
        if item is None:
            return None
        self.items.append(item)
        if self.cfg.discard_bytes_after_processing:
            entry.release()
        if len(self.items) % self.cfg.regroup_every == 0:
            return self._emit()
        return None

    def finish(self) -> Optional[ClassificationSnapshot]:
        """Final snapshot, only if something was processed since the last one."""
        if not self.items or self._emitted_at == len(self.items):
            return None
        return self._emit()


def analyze_streaming(
    entries: Iterable[MediaEntry], config: Optional[AnalysisConfig] = None
) -> Iterator[ClassificationSnapshot]:
    """
    Classify `entries` in order, yielding a snapshot per completed batch.

    Hash parameters are validated immediately; the returned iterator is lazy
    and cannot be restarted. Yields nothing when no entry decodes.

    Raises:
        InvalidArgumentError: for invalid hash_size / dct_size.
    """
    acc = _Accumulator(config or AnalysisConfig())
    return _drive(acc, entries)


def _drive(
    acc: _Accumulator, entries: Iterable[MediaEntry]
) -> Iterator[ClassificationSnapshot]:
    for entry in entries:
        snap = acc.process(entry)
        if snap is not None:
            yield snap
    final = acc.finish()
    if final is not None:
        yield final


def analyze_summary(
    entries: Iterable[MediaEntry], config: Optional[AnalysisConfig] = None
) -> ClassificationSnapshot:
    """One-shot classification of all entries (empty snapshot if none decode)."""
    last = ClassificationSnapshot.empty()
    for snap in analyze_streaming(entries, config):
        last = snap
    return last


def _done(value: Optional[ClassificationSnapshot]) -> "Future[Optional[ClassificationSnapshot]]":
    fut: "Future[Optional[ClassificationSnapshot]]" = Future()
    fut.set_result(value)
    return fut


class StreamingSession:
    """
    Incremental classifier: Open -> Closed.

    All work runs on one worker thread, so entries are processed in the
    order they were submitted and listeners observe snapshots in production
    order. Independent sessions share no state.

    Usage:
        with StreamingSession(cfg, on_snapshot=print) as session:
            for entry in entries:
                session.add(entry)
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        *,
        on_snapshot: Optional[SnapshotListener] = None,
    ) -> None:
        self._acc = _Accumulator(config or AnalysisConfig())
        self._listener = on_snapshot
        self._snapshots: List[ClassificationSnapshot] = []
        self._lock = threading.Lock()
        self._closed = False
        self._final: Optional["Future[Optional[ClassificationSnapshot]]"] = None
        self._worker: Optional[threading.Thread] = None
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="pclean-session",
            initializer=self._bind_worker,
        )

    # --- state ----------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def processed(self) -> int:
        return self._acc.processed

    @property
    def snapshots(self) -> List[ClassificationSnapshot]:
        """Copy of every snapshot emitted so far, oldest first."""
        with self._lock:
            return list(self._snapshots)

    # --- worker side ----------------------------------------------------------

    def _bind_worker(self) -> None:
        self._worker = threading.current_thread()

    def _on_worker(self) -> bool:
        return threading.current_thread() is self._worker

    def _publish(
        self, snap: Optional[ClassificationSnapshot]
    ) -> Optional[ClassificationSnapshot]:
        if snap is None:
            return None
        with self._lock:
            self._snapshots.append(snap)
        if self._listener is not None:
            self._listener(snap)
        return snap

    def _process(self, entry: MediaEntry) -> Optional[ClassificationSnapshot]:
        return self._publish(self._acc.process(entry))

    def _finish(self) -> Optional[ClassificationSnapshot]:
        return self._publish(self._acc.finish())

    # --- caller side ----------------------------------------------------------

    def submit(self, entry: MediaEntry) -> "Future[Optional[ClassificationSnapshot]]":
        """
        Queue `entry` without waiting. The future resolves to the snapshot
        emitted after this entry, if any. No-op once the session is closed.
        """
        with self._lock:
            if self._closed:
                log.debug(f"session closed, ignoring: {entry.name}")
                return _done(None)
            return self._executor.submit(self._process, entry)

    def add(self, entry: MediaEntry) -> Optional[ClassificationSnapshot]:
        """
        Process `entry` (after everything queued before it) and wait for it.

        Raises:
            InvalidArgumentError: when called from a snapshot listener of this
                session; listeners must use submit() instead.
        """
        if self._on_worker() and not self._closed:
            raise InvalidArgumentError(
                "add() cannot wait on its own worker; use submit() from listeners"
            )
        return self.submit(entry).result()

    def close(self) -> Optional[ClassificationSnapshot]:
        """
        Drain queued entries, emit the final snapshot if one is due and stop
        the worker. Calling it again does nothing.

        From a listener the final snapshot is only queued behind the pending
        entries: it reaches listeners and `snapshots` once the worker gets to
        it, and None is returned.
        """
        with self._lock:
            first = not self._closed
            if first:
                self._closed = True
                self._final = self._executor.submit(self._finish)
            final = self._final
        if self._on_worker():
            # joining here would wait on this very thread
            self._executor.shutdown(wait=False)
            return None
        try:
            snap = final.result() if final is not None else None
        finally:
            self._executor.shutdown(wait=True)
        return snap if first else None

    def __enter__(self) -> "StreamingSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
