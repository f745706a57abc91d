"""
Collaborator interfaces of the scheduling engine.

The engine reads tasks, deliverables and dependency edges through a
``ScheduleRepository`` and writes computed durations and dates back through
the same object. ``InMemoryRepository`` keeps everything in dictionaries and
is what the examples and tests run against.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, List, Optional

from schedflow.domain.deliverable import Deliverable
from schedflow.domain.errors import CyclicDependencyError, MissingEntityError
from schedflow.domain.task import Task
from schedflow.utils.graph import would_create_cycle

logger = logging.getLogger(__name__)


class ScheduleRepository(ABC):
    """Read and persistence interface supplied by the calling system."""

    @abstractmethod
    def get_task(self, task_id: Any) -> Optional[Task]:
        """Return the task, or None if it does not exist."""

    @abstractmethod
    def get_predecessor_ids(self, task_id: Any) -> List[Any]:
        """IDs of the tasks the given task depends on."""

    @abstractmethod
    def get_successor_ids(self, task_id: Any) -> List[Any]:
        """IDs of the tasks that depend on the given task."""

    @abstractmethod
    def get_deliverables(self, task_id: Any) -> List[Deliverable]:
        """Deliverables belonging to the task."""

    @abstractmethod
    def save_task_schedule(
        self, task_id: Any, duration_days: int, planned_start: date, planned_end: date
    ) -> None:
        """Persist a task's computed duration and planned dates."""

    @abstractmethod
    def save_deliverable_schedule(
        self, deliverable_id: Any, planned_start: date, planned_end: date
    ) -> None:
        """Persist a deliverable's planned dates."""


class InMemoryRepository(ScheduleRepository):
    """Dictionary-backed repository."""

    def __init__(self):
        self.tasks = {}  # Dictionary of Task objects
        self.deliverables = {}  # Dictionary of Deliverable objects
        self.edges = []  # (task_id, depends_on_task_id) pairs, in insertion order

        # Task IDs in the order their schedules were saved
        self.saved_tasks = []

    def add_task(self, task: Task) -> "InMemoryRepository":
        """Add a task, registering its declared dependencies as edges."""
        self.tasks[task.id] = task
        for dep_id in task.dependencies:
            if (task.id, dep_id) not in self.edges:
                self.edges.append((task.id, dep_id))
        return self

    def add_deliverable(self, deliverable: Deliverable) -> "InMemoryRepository":
        if deliverable.task_id not in self.tasks:
            raise MissingEntityError("Task", deliverable.task_id)
        self.deliverables[deliverable.id] = deliverable
        return self

    def add_dependency(
        self, task_id: Any, depends_on_task_id: Any, check_cycles: bool = True
    ) -> "InMemoryRepository":
        """
        Add a finish-to-start edge.

        Raises:
            MissingEntityError: If either task does not exist
            CyclicDependencyError: If check_cycles is set and the edge closes a loop
        """
        for ref in (task_id, depends_on_task_id):
            if ref not in self.tasks:
                raise MissingEntityError("Task", ref)

        if check_cycles and would_create_cycle(self.edges, task_id, depends_on_task_id):
            raise CyclicDependencyError([task_id, depends_on_task_id])

        if (task_id, depends_on_task_id) not in self.edges:
            self.edges.append((task_id, depends_on_task_id))
            self.tasks[task_id].dependencies.append(depends_on_task_id)
        return self

    def remove_task(self, task_id: Any, remove_edges: bool = True) -> None:
        """
        Delete a task and its deliverables.

        With remove_edges off the edges referencing the task are left behind,
        as happens when a deletion races with a recompute.
        """
        self.tasks.pop(task_id, None)
        for deliverable_id in [
            d.id for d in self.deliverables.values() if d.task_id == task_id
        ]:
            del self.deliverables[deliverable_id]

        if remove_edges:
            self.edges = [
                (succ_id, pred_id)
                for succ_id, pred_id in self.edges
                if task_id not in (succ_id, pred_id)
            ]
            for task in self.tasks.values():
                if task_id in task.dependencies:
                    task.dependencies.remove(task_id)

    def get_task(self, task_id):
        return self.tasks.get(task_id)

    def get_predecessor_ids(self, task_id):
        return [pred_id for succ_id, pred_id in self.edges if succ_id == task_id]

    def get_successor_ids(self, task_id):
        return [succ_id for succ_id, pred_id in self.edges if pred_id == task_id]

    def get_deliverables(self, task_id):
        return [d for d in self.deliverables.values() if d.task_id == task_id]

    def save_task_schedule(self, task_id, duration_days, planned_start, planned_end):
        task = self.tasks.get(task_id)
        if task is None:
            raise MissingEntityError("Task", task_id)
        task.set_schedule(planned_start, planned_end, duration_days)
        self.saved_tasks.append(task_id)

    def save_deliverable_schedule(self, deliverable_id, planned_start, planned_end):
        deliverable = self.deliverables.get(deliverable_id)
        if deliverable is None:
            raise MissingEntityError("Deliverable", deliverable_id)
        deliverable.set_schedule(planned_start, planned_end)
