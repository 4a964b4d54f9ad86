"""Keyed background task runners for git retrieval.

Work runs off the caller's thread, but results are only handed back through
``drain_results`` so all state mutation stays on the caller's thread. A key
stays in flight until its result has been drained, which is what keeps two
detail loads for the same file from running at once.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from queue import Empty, Queue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskResult:
    """Completed task payload; ``error`` is set when the callable raised."""

    key: Hashable
    value: object = None
    error: BaseException | None = None


class BackgroundTasks:
    """Run each submitted callable on its own daemon worker thread."""

    def __init__(self, thread_name: str = "diffreview-task") -> None:
        self._thread_name = thread_name
        self._lock = threading.Lock()
        self._in_flight: set[Hashable] = set()
        self._results: Queue[TaskResult] = Queue()

    def _worker(self, key: Hashable, fn: Callable[[], object]) -> None:
        try:
            value = fn()
        except Exception as exc:
            logger.exception("background task %r failed", key)
            self._results.put(TaskResult(key=key, error=exc))
            return
        self._results.put(TaskResult(key=key, value=value))

    def submit(self, key: Hashable, fn: Callable[[], object]) -> bool:
        """Start ``fn`` unless ``key`` is already running; return whether started."""
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)

        worker = threading.Thread(
            target=self._worker,
            args=(key, fn),
            name=self._thread_name,
            daemon=True,
        )
        worker.start()
        return True

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._in_flight

    def drain_results(self) -> list[TaskResult]:
        """Return all completed results and release their keys."""
        drained: list[TaskResult] = []
        while True:
            try:
                drained.append(self._results.get_nowait())
            except Empty:
                break
        if drained:
            with self._lock:
                for result in drained:
                    self._in_flight.discard(result.key)
        return drained

    def wait_for_results(self, timeout_seconds: float) -> list[TaskResult]:
        """Block up to ``timeout_seconds`` for at least one result, then drain."""
        try:
            first = self._results.get(timeout=timeout_seconds)
        except Empty:
            return []
        self._results.put(first)
        return self.drain_results()


class SynchronousTasks:
    """Inline runner with the ``BackgroundTasks`` contract, for headless use."""

    def __init__(self) -> None:
        self._in_flight: set[Hashable] = set()
        self._results: list[TaskResult] = []

    def submit(self, key: Hashable, fn: Callable[[], object]) -> bool:
        if key in self._in_flight:
            return False
        self._in_flight.add(key)
        try:
            self._results.append(TaskResult(key=key, value=fn()))
        except Exception as exc:
            logger.exception("task %r failed", key)
            self._results.append(TaskResult(key=key, error=exc))
        return True

    def in_flight(self, key: Hashable) -> bool:
        return key in self._in_flight

    def drain_results(self) -> list[TaskResult]:
        drained = self._results
        self._results = []
        for result in drained:
            self._in_flight.discard(result.key)
        return drained
