"""
Schedflow
=========

Dependency-aware duration and date propagation for tasks and their
deliverables.

Available modules:
- services.duration: Critical path duration of a task over its deliverables
- services.task_dates: Planned dates of a task from its predecessors
- services.deliverable_dates: Planned dates of the deliverables of a task
- services.cascade: Downstream recomputation after a change
- services.early_start: Started tasks with unfinished predecessors
- services.project_cpm: Project-wide early/late dates and float
"""

from schedflow.domain.errors import (
    SchedulingError,
    MissingEntityError,
    CyclicDependencyError,
    ScheduleWarning,
)
from schedflow.services.duration import calculate_task_duration
from schedflow.services.task_dates import calculate_task_dates
from schedflow.services.deliverable_dates import propagate_deliverable_dates
from schedflow.services.cascade import (
    CascadePropagator,
    CascadeReport,
    update_task_dates_and_cascade,
)
from schedflow.services.early_start import check_early_start
from schedflow.services.project_cpm import compute_project_cpm

__all__ = [
    "SchedulingError",
    "MissingEntityError",
    "CyclicDependencyError",
    "ScheduleWarning",
    "calculate_task_duration",
    "calculate_task_dates",
    "propagate_deliverable_dates",
    "CascadePropagator",
    "CascadeReport",
    "update_task_dates_and_cascade",
    "check_early_start",
    "compute_project_cpm",
]
