import unittest
from datetime import date

from schedflow.domain.task import Task
from schedflow.domain.deliverable import Deliverable
from schedflow.domain.errors import (
    CyclicDependencyError,
    MissingEntityError,
    ScheduleWarning,
)
from schedflow.services.cascade import (
    CascadePropagator,
    update_task_dates_and_cascade,
)
from schedflow.services.repository import InMemoryRepository
from schedflow.services.task_dates import TaskSchedule


class FailingRepository(InMemoryRepository):
    """Repository whose writes fail for one task."""

    def __init__(self, failing_task_id):
        super().__init__()
        self.failing_task_id = failing_task_id

    def save_task_schedule(self, task_id, duration_days, planned_start, planned_end):
        if task_id == self.failing_task_id:
            raise RuntimeError(f"write rejected for task {task_id}")
        super().save_task_schedule(task_id, duration_days, planned_start, planned_end)


class FailingDeliverableRepository(InMemoryRepository):
    """Repository whose writes fail for one deliverable."""

    def __init__(self, failing_deliverable_id):
        super().__init__()
        self.failing_deliverable_id = failing_deliverable_id

    def save_deliverable_schedule(self, deliverable_id, planned_start, planned_end):
        if deliverable_id == self.failing_deliverable_id:
            raise RuntimeError(f"write rejected for deliverable {deliverable_id}")
        super().save_deliverable_schedule(deliverable_id, planned_start, planned_end)


def build_diamond(repository):
    """A feeds B and C, which both feed D."""
    repository.add_task(
        Task("A", "Start", duration_days=2, explicit_start=date(2025, 1, 1))
    )
    repository.add_task(Task("B", "Short branch", duration_days=3, dependencies=["A"]))
    repository.add_task(Task("C", "Long branch", duration_days=5, dependencies=["A"]))
    repository.add_task(
        Task("D", "Merge", duration_days=1, offset_days=1, dependencies=["B", "C"])
    )
    return repository


def snapshot(repository):
    tasks = {
        task.id: (task.duration_days, task.planned_start, task.planned_end)
        for task in repository.tasks.values()
    }
    deliverables = {
        d.id: (d.planned_start, d.planned_end) for d in repository.deliverables.values()
    }
    return tasks, deliverables


class CascadeTestCase(unittest.TestCase):
    """Test cases for downstream recomputation."""

    def setUp(self):
        self.today = date(2025, 3, 1)
        self.repository = build_diamond(InMemoryRepository())
        self.scheduler = CascadePropagator(self.repository, default_start=self.today)

    def test_diamond_convergence(self):
        """D is recomputed once, after both branches settled."""
        # Stale dates that would leak into D if it were computed too early
        self.repository.tasks["C"].planned_end = date(2024, 1, 1)
        self.repository.tasks["B"].planned_end = date(2024, 1, 1)

        report = self.scheduler.run("A")

        self.assertTrue(report.ok)
        self.assertEqual(report.visited, ["A", "B", "C", "D"])
        self.assertEqual(report.persisted, ["A", "B", "C", "D"])
        self.assertEqual(self.repository.saved_tasks.count("D"), 1)

        tasks = self.repository.tasks
        self.assertEqual(tasks["A"].planned_end, date(2025, 1, 3))
        self.assertEqual(tasks["B"].planned_end, date(2025, 1, 6))
        self.assertEqual(tasks["C"].planned_end, date(2025, 1, 8))
        self.assertEqual(tasks["D"].planned_start, date(2025, 1, 9))
        self.assertEqual(tasks["D"].planned_end, date(2025, 1, 10))

    def test_ordering_with_uneven_branches(self):
        """A successor reachable by a short and a long path waits for the long one."""
        self.repository.add_task(Task("E", duration_days=1, dependencies=["A", "D"]))

        report = self.scheduler.run("A")

        self.assertEqual(report.visited[-1], "E")
        self.assertEqual(self.repository.saved_tasks.count("E"), 1)
        self.assertEqual(self.repository.tasks["E"].planned_start, date(2025, 1, 10))

    def test_durations_from_deliverables(self):
        self.repository.add_deliverable(Deliverable("b1", "B", duration_days=3))
        self.repository.add_deliverable(
            Deliverable("b2", "B", duration_days=5, depends_on_deliverable_id="b1")
        )
        self.repository.add_deliverable(Deliverable("b3", "B", duration_days=2))

        self.scheduler.run("A")
        report = self.scheduler.run("B")

        self.assertEqual(report.persisted, ["B", "D"])
        task_b = self.repository.tasks["B"]
        self.assertEqual(task_b.duration_days, 8)
        self.assertEqual(task_b.planned_start, date(2025, 1, 3))
        self.assertEqual(task_b.planned_end, date(2025, 1, 11))

        deliverables = self.repository.deliverables
        self.assertEqual(deliverables["b1"].planned_start, date(2025, 1, 3))
        self.assertEqual(deliverables["b1"].planned_end, date(2025, 1, 6))
        self.assertEqual(deliverables["b2"].planned_start, date(2025, 1, 7))
        self.assertEqual(deliverables["b2"].planned_end, date(2025, 1, 12))
        self.assertEqual(deliverables["b3"].planned_end, date(2025, 1, 5))

    def test_idempotence(self):
        self.repository.add_deliverable(Deliverable("c1", "C", duration_days=4))
        self.repository.add_deliverable(
            Deliverable("c2", "C", duration_days=1, depends_on_deliverable_id="c1")
        )

        self.scheduler.run("A")
        first = snapshot(self.repository)

        self.scheduler.run("A")
        second = snapshot(self.repository)

        self.assertEqual(first, second)

    def test_only_downstream_tasks_recomputed(self):
        self.scheduler.run("A")
        self.repository.saved_tasks.clear()

        report = self.scheduler.run("C")

        self.assertEqual(report.visited, ["C", "D"])
        self.assertNotIn("A", self.repository.saved_tasks)
        self.assertNotIn("B", self.repository.saved_tasks)

    def test_task_cycle_detected(self):
        repository = InMemoryRepository()
        repository.add_task(Task("A", duration_days=1, dependencies=["B"]))
        repository.add_task(Task("B", duration_days=1, dependencies=["A"]))

        report = CascadePropagator(repository, self.today).run("A")

        self.assertFalse(report.ok)
        self.assertIsInstance(report.error, CyclicDependencyError)
        self.assertEqual(set(report.error.cycle), {"A", "B"})
        self.assertEqual(report.persisted, [])
        with self.assertRaises(CyclicDependencyError):
            report.raise_for_error()

    def test_downstream_cycle_detected(self):
        self.repository.add_dependency("B", "D", check_cycles=False)

        report = self.scheduler.run("A")

        self.assertIsInstance(report.error, CyclicDependencyError)
        self.assertEqual(report.failed_task_id, "A")
        self.assertEqual(self.repository.saved_tasks, [])

    def test_missing_task(self):
        report = self.scheduler.run("missing")

        self.assertIsInstance(report.error, MissingEntityError)
        self.assertEqual(report.visited, [])

    def test_failure_keeps_completed_work(self):
        repository = build_diamond(FailingRepository("C"))

        report = CascadePropagator(repository, self.today).run("A")

        self.assertFalse(report.ok)
        self.assertIsInstance(report.error, RuntimeError)
        self.assertEqual(report.failed_task_id, "C")
        self.assertEqual(report.visited, ["A", "B", "C"])
        self.assertEqual(report.persisted, ["A", "B"])
        self.assertEqual(report.pending, ["D"])
        self.assertEqual(repository.tasks["B"].planned_end, date(2025, 1, 6))
        self.assertIsNone(repository.tasks["D"].planned_end)

    def test_deliverable_cycle_stops_cascade(self):
        self.repository.add_deliverable(
            Deliverable("c1", "C", duration_days=1, depends_on_deliverable_id="c2")
        )
        self.repository.add_deliverable(
            Deliverable("c2", "C", duration_days=1, depends_on_deliverable_id="c1")
        )

        report = self.scheduler.run("A")

        self.assertIsInstance(report.error, CyclicDependencyError)
        self.assertEqual(report.failed_task_id, "C")
        self.assertEqual(report.persisted, ["A", "B"])

    def test_cancellation(self):
        report = self.scheduler.run(
            "A", should_abort=lambda: len(self.repository.saved_tasks) >= 2
        )

        self.assertTrue(report.cancelled)
        self.assertFalse(report.ok)
        self.assertIsNone(report.error)
        self.assertEqual(report.persisted, ["A", "B"])
        self.assertEqual(report.pending, ["C", "D"])

    def test_dangling_successor_is_skipped(self):
        self.repository.remove_task("B", remove_edges=False)

        report = self.scheduler.run("A")

        self.assertTrue(report.ok)
        self.assertEqual(report.persisted, ["A", "C", "D"])
        kinds = [(w.kind, w.reference_id) for w in report.warnings]
        self.assertIn((ScheduleWarning.DANGLING_DEPENDENCY, "B"), kinds)
        self.assertEqual(self.repository.tasks["D"].planned_start, date(2025, 1, 9))

    def test_unresolvable_start_reported(self):
        repository = InMemoryRepository()
        repository.add_task(Task("P", duration_days=2))
        repository.add_task(Task("S", duration_days=4, dependencies=["P"]))

        report = CascadePropagator(repository, self.today).run("S")

        self.assertTrue(report.ok)
        self.assertEqual(repository.tasks["S"].planned_start, self.today)
        self.assertEqual(
            [w.kind for w in report.warnings], [ScheduleWarning.NO_RESOLVABLE_START]
        )
        self.assertTrue(report.outcomes["S"].schedule.low_confidence)

    def test_stored_start_is_not_reused_as_explicit(self):
        """A start computed by an earlier run does not anchor later runs."""
        repository = InMemoryRepository()
        repository.add_task(
            Task("P", duration_days=2, explicit_start=date(2025, 1, 1))
        )
        repository.add_task(Task("S", duration_days=4, dependencies=["P"]))
        scheduler = CascadePropagator(repository, self.today)

        first = scheduler.run("P")
        self.assertEqual(first.warnings, [])
        self.assertEqual(repository.tasks["S"].planned_start, date(2025, 1, 3))

        repository.tasks["P"].planned_end = None
        second = scheduler.run("S")

        schedule = second.outcomes["S"].schedule
        self.assertEqual(schedule.planned_start, self.today)
        self.assertEqual(schedule.source, TaskSchedule.DEFAULT)
        self.assertEqual(
            [w.kind for w in second.warnings], [ScheduleWarning.NO_RESOLVABLE_START]
        )
        self.assertEqual(repository.tasks["S"].planned_start, self.today)
        self.assertIsNone(repository.tasks["S"].explicit_start)

    def test_root_without_explicit_start_uses_default(self):
        repository = InMemoryRepository()
        repository.add_task(Task("R", duration_days=3))
        CascadePropagator(repository, date(2025, 1, 1)).run("R")

        report = CascadePropagator(repository, self.today).run("R")

        self.assertEqual(report.warnings, [])
        self.assertEqual(repository.tasks["R"].planned_start, self.today)
        self.assertEqual(repository.tasks["R"].planned_end, date(2025, 3, 4))

    def test_deliverable_write_failure_marks_partial_task(self):
        repository = build_diamond(FailingDeliverableRepository("c2"))
        repository.add_deliverable(Deliverable("c1", "C", duration_days=2))
        repository.add_deliverable(Deliverable("c2", "C", duration_days=3))

        report = CascadePropagator(repository, self.today).run("A")

        self.assertEqual(report.failed_task_id, "C")
        self.assertEqual(report.partial_task_id, "C")
        self.assertEqual(report.persisted, ["A", "B"])
        self.assertIn("C", repository.saved_tasks)
        self.assertEqual(report.to_dict()["partial_task_id"], "C")

    def test_task_write_failure_is_not_partial(self):
        repository = build_diamond(FailingRepository("C"))

        report = CascadePropagator(repository, self.today).run("A")

        self.assertEqual(report.failed_task_id, "C")
        self.assertIsNone(report.partial_task_id)

    def test_recompute_single_task(self):
        self.scheduler.run("A")
        self.repository.saved_tasks.clear()
        self.repository.tasks["B"].offset_days = 2

        outcome = self.scheduler.recompute_task("B")

        self.assertEqual(outcome.schedule.planned_start, date(2025, 1, 5))
        self.assertEqual(self.repository.saved_tasks, ["B"])
        self.assertEqual(self.repository.tasks["B"].planned_end, date(2025, 1, 8))

    def test_report_dict(self):
        report = update_task_dates_and_cascade(self.repository, "C", self.today)
        data = report.to_dict()

        self.assertTrue(data["success"])
        self.assertEqual(data["visited"], ["C", "D"])
        self.assertIsNone(data["error"])


if __name__ == "__main__":
    unittest.main()
