"""
Unit tests for worker.py
"""
import threading

import pytest
from unittest.mock import MagicMock

from agents.itinerary_agent import ItineraryGenerator
from errors import EmptyResponse
from worker import GenerationWorker


@pytest.fixture
def generator(store, llm, make_itinerary):
    llm.complete.return_value = make_itinerary(3)
    return ItineraryGenerator(store, llm)


@pytest.fixture
def worker(generator):
    w = GenerationWorker(generator, max_workers=4)
    yield w
    w.shutdown(wait=True)


class TestGenerationWorker:
    def test_generation_succeeds(self, worker, store, trip_id):
        task = worker.submit_generation(trip_id)
        worker.wait(task.id, timeout=5)

        assert task.status == "succeeded"
        assert task.error is None
        assert task.to_dict() == {
            "task_id": task.id,
            "trip_id": trip_id,
            "kind": "generate",
            "status": "succeeded",
            "error": None,
            "days_saved": 3,
        }
        assert [d.day for d in store.query_itinerary_days_by_trip(trip_id)] == [1, 2, 3]

    def test_failure_is_reported_on_the_task(self, worker, llm, trip_id):
        llm.complete.return_value = ""

        task = worker.submit_generation(trip_id)
        worker.wait(task.id, timeout=5)

        assert task.status == "failed"
        assert isinstance(task.error, EmptyResponse)
        assert task.to_dict()["error"] == "EmptyResponse"
        assert task.to_dict()["days_saved"] == 0

    def test_concurrent_regenerations_leave_one_itinerary(self, worker, store, trip_id):
        tasks = [worker.submit_regeneration(trip_id) for _ in range(4)]
        for task in tasks:
            worker.wait(task.id, timeout=10)

        assert all(t.status == "succeeded" for t in tasks)
        assert [d.day for d in store.query_itinerary_days_by_trip(trip_id)] == [1, 2, 3]

    def test_get_unknown_task(self, worker):
        assert worker.get("missing") is None
        assert worker.wait("missing", timeout=0) is None
        assert worker.cancel("missing") is False

    def test_tasks_are_registered(self, worker, trip_id):
        task = worker.submit_generation(trip_id)
        assert worker.get(task.id) is task
        assert task.kind == "generate"


class TestCancellation:
    def test_queued_task_can_be_cancelled(self):
        release = threading.Event()
        generator = MagicMock()

        def blocking_generate(trip_id):
            release.wait(5)
            return []

        generator.generate.side_effect = blocking_generate
        worker = GenerationWorker(generator, max_workers=1)
        try:
            first = worker.submit_generation("trip-a")
            second = worker.submit_generation("trip-b")

            assert worker.cancel(second.id) is True
            assert second.status == "cancelled"
            assert second.error is None

            release.set()
            worker.wait(first.id, timeout=5)
            assert first.status == "succeeded"
            assert worker.cancel(first.id) is False
        finally:
            release.set()
            worker.shutdown(wait=True)

        generator.generate.assert_called_once_with("trip-a")


class TestPerTripQueue:
    @pytest.fixture
    def blocking(self):
        """Generator whose regenerate blocks until released; generate returns at once."""
        release = threading.Event()
        started = threading.Event()
        calls = []
        generator = MagicMock()

        def regenerate(trip_id):
            calls.append(("regenerate", trip_id))
            started.set()
            release.wait(5)
            return []

        def generate(trip_id):
            calls.append(("generate", trip_id))
            return []

        generator.regenerate.side_effect = regenerate
        generator.generate.side_effect = generate
        yield generator, release, started, calls
        release.set()

    def test_waiting_job_stays_queued_and_other_trips_run(self, blocking):
        generator, release, started, calls = blocking
        worker = GenerationWorker(generator, max_workers=2)
        try:
            first = worker.submit_regeneration("trip-a")
            second = worker.submit_regeneration("trip-a")
            other = worker.submit_generation("trip-b")
            assert started.wait(5)
            assert first.status == "running"

            worker.wait(other.id, timeout=5)
            assert other.status == "succeeded"
            assert second.status == "queued"

            assert worker.cancel(second.id) is True
            assert second.status == "cancelled"

            release.set()
            worker.wait(first.id, timeout=5)
            assert first.status == "succeeded"
        finally:
            release.set()
            worker.shutdown(wait=True)

        assert calls.count(("regenerate", "trip-a")) == 1
        assert ("generate", "trip-b") in calls

    def test_same_trip_jobs_run_in_submission_order(self, blocking):
        generator, release, started, calls = blocking
        worker = GenerationWorker(generator, max_workers=2)
        try:
            first = worker.submit_regeneration("trip-a")
            second = worker.submit_generation("trip-a")
            assert second.status == "queued"

            release.set()
            worker.wait(first.id, timeout=5)
            worker.wait(second.id, timeout=5)
        finally:
            worker.shutdown(wait=True)

        assert calls == [("regenerate", "trip-a"), ("generate", "trip-a")]
        assert second.status == "succeeded"

    def test_shutdown_without_wait_cancels_queued_jobs(self, blocking):
        generator, release, started, calls = blocking
        worker = GenerationWorker(generator, max_workers=1)
        first = worker.submit_regeneration("trip-a")
        second = worker.submit_regeneration("trip-a")
        assert started.wait(5)

        worker.shutdown(wait=False)
        release.set()
        worker.wait(first.id, timeout=5)

        assert second.status == "cancelled"
        assert calls == [("regenerate", "trip-a")]


class TestBookkeeping:
    def test_finished_trips_leave_no_queue_behind(self, worker, trip_id):
        tasks = [worker.submit_regeneration(trip_id) for _ in range(3)]
        for task in tasks:
            worker.wait(task.id, timeout=10)

        assert worker._queues == {}

    def test_cancelled_task_leaves_no_queue_behind(self):
        generator = MagicMock()
        release = threading.Event()
        generator.generate.side_effect = lambda trip_id: release.wait(5) and []
        worker = GenerationWorker(generator, max_workers=1)
        try:
            blocker = worker.submit_generation("trip-a")
            queued = worker.submit_generation("trip-b")
            worker.cancel(queued.id)
            assert "trip-b" not in worker._queues
            release.set()
            worker.wait(blocker.id, timeout=5)
        finally:
            release.set()
            worker.shutdown(wait=True)

        assert worker._queues == {}

    def test_oldest_finished_tasks_are_retired(self):
        generator = MagicMock()
        generator.generate.return_value = []
        worker = GenerationWorker(generator, max_finished_tasks=2)
        try:
            ids = []
            for trip in ("trip-a", "trip-b", "trip-c"):
                task = worker.submit_generation(trip)
                ids.append(task.id)
                worker.wait(task.id, timeout=5)
        finally:
            worker.shutdown(wait=True)

        assert worker.get(ids[0]) is None
        assert worker.get(ids[1]) is not None
        assert worker.get(ids[2]) is not None
