"""
Background itinerary generation.

Trip creation and user-requested regeneration hand their work to a
``GenerationWorker`` instead of firing an untracked call. Each submission
returns a ``GenerationTask`` the caller can inspect, wait on, or cancel
while it is still queued. Jobs for the same trip wait in a per-trip queue
and reach the thread pool one at a time, so a regeneration never
interleaves its delete/insert steps with another job on that trip and a
waiting job never holds a pool thread.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Optional

from agents.itinerary_agent import ItineraryGenerator

logger = logging.getLogger(__name__)


class GenerationTask:
    def __init__(self, task_id: str, trip_id: str, kind: str, future: Future):
        self.id = task_id
        self.trip_id = trip_id
        self.kind = kind  # generate | regenerate
        self.future = future

    @property
    def status(self) -> str:
        if self.future.cancelled():
            return "cancelled"
        if self.future.running():
            return "running"
        if not self.future.done():
            return "queued"
        return "failed" if self.future.exception() is not None else "succeeded"

    @property
    def error(self) -> Optional[BaseException]:
        if self.future.done() and not self.future.cancelled():
            return self.future.exception()
        return None

    def to_dict(self) -> dict:
        error = self.error
        return {
            "task_id": self.id,
            "trip_id": self.trip_id,
            "kind": self.kind,
            "status": self.status,
            "error": type(error).__name__ if error else None,
            "days_saved": len(self.future.result()) if self.status == "succeeded" else 0,
        }


class GenerationWorker:
    def __init__(self, generator: ItineraryGenerator, max_workers: int = 4, max_finished_tasks: int = 1000):
        self.generator = generator
        self.max_finished_tasks = max_finished_tasks
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="itinerary")
        self._tasks: dict[str, GenerationTask] = {}
        # trip_id -> its unfinished tasks; the head is the one handed to the pool
        self._queues: dict[str, deque[GenerationTask]] = {}
        self._finished: deque[str] = deque()
        self._lock = threading.Lock()

    def submit_generation(self, trip_id: str) -> GenerationTask:
        return self._submit(trip_id, "generate")

    def submit_regeneration(self, trip_id: str) -> GenerationTask:
        return self._submit(trip_id, "regenerate")

    def get(self, task_id: str) -> Optional[GenerationTask]:
        with self._lock:
            return self._tasks.get(task_id)

    def wait(self, task_id: str, timeout: Optional[float] = None) -> Optional[GenerationTask]:
        """Block until the task finishes (or ``timeout`` passes) and return it."""
        task = self.get(task_id)
        if task is not None:
            wait_futures([task.future], timeout=timeout)
        return task

    def cancel(self, task_id: str) -> bool:
        """Cancel a queued task. Running tasks cannot be interrupted."""
        task = self.get(task_id)
        if task is None or not task.future.cancel():
            return False
        logger.info("Cancelled %s task %s for trip %s", task.kind, task.id, task.trip_id)
        self._finish(task)
        return True

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker.

        With ``wait`` every submitted task, queued ones included, runs to
        completion first. Without it queued tasks are cancelled and only
        running ones are left to finish.
        """
        with self._lock:
            pending = [t for t in self._tasks.values() if not t.future.done()]
        if wait:
            wait_futures([t.future for t in pending])
            self._executor.shutdown(wait=True)
            return
        self._executor.shutdown(wait=False, cancel_futures=True)
        for task in pending:
            if task.future.cancel():
                self._finish(task)

    # -----------------------------------------------------------------------

    def _submit(self, trip_id: str, kind: str) -> GenerationTask:
        task = GenerationTask(uuid.uuid4().hex[:12], trip_id, kind, Future())
        with self._lock:
            self._tasks[task.id] = task
            queue = self._queues.setdefault(trip_id, deque())
            queue.append(task)
            is_head = len(queue) == 1
        logger.info("Queued %s task %s for trip %s", kind, task.id, trip_id)
        if is_head:
            self._dispatch(task)
        return task

    def _dispatch(self, task: GenerationTask) -> None:
        try:
            self._executor.submit(self._run, task)
        except RuntimeError:
            # executor already shut down
            if task.future.cancel():
                self._finish(task)

    def _run(self, task: GenerationTask) -> None:
        if not task.future.set_running_or_notify_cancel():
            return
        job = getattr(self.generator, task.kind)
        try:
            result = job(task.trip_id)
        except Exception as exc:
            logger.warning("%s task %s for trip %s failed: %s: %s",
                           task.kind, task.id, task.trip_id, type(exc).__name__, exc)
            self._finish(task)
            task.future.set_exception(exc)
        else:
            self._finish(task)
            task.future.set_result(result)

    def _finish(self, task: GenerationTask) -> None:
        """Release the trip's queue slot, start its next task, and retire old tasks."""
        next_task = None
        with self._lock:
            queue = self._queues.get(task.trip_id)
            if queue is None or task not in queue:
                return
            was_head = queue[0] is task
            queue.remove(task)
            if not queue:
                del self._queues[task.trip_id]
            elif was_head:
                next_task = queue[0]

            self._finished.append(task.id)
            while len(self._finished) > self.max_finished_tasks:
                self._tasks.pop(self._finished.popleft(), None)
        if next_task is not None:
            self._dispatch(next_task)
