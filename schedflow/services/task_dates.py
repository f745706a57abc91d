import logging
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple

from schedflow.domain.errors import ScheduleWarning
from schedflow.utils.dates import add_days, to_date

logger = logging.getLogger(__name__)


class TaskSchedule:
    """Planned dates computed for one task."""

    # How the planned start was obtained
    EXPLICIT = "explicit"
    DEFAULT = "default"
    PREDECESSORS = "predecessors"

    def __init__(
        self,
        task_id: Any,
        planned_start: date,
        planned_end: date,
        duration_days: int,
        source: str,
        warnings: Optional[List[ScheduleWarning]] = None,
    ):
        self.task_id = task_id
        self.planned_start = planned_start
        self.planned_end = planned_end
        self.duration_days = duration_days
        self.source = source
        self.warnings = warnings or []

    @property
    def low_confidence(self) -> bool:
        """True when predecessors exist but none could anchor the start."""
        return any(
            w.kind == ScheduleWarning.NO_RESOLVABLE_START for w in self.warnings
        )

    def __repr__(self):
        return (
            f"TaskSchedule(task_id={self.task_id!r}, "
            f"planned_start={self.planned_start}, planned_end={self.planned_end}, "
            f"source={self.source})"
        )


def calculate_task_dates(
    task_id: Any,
    duration_days: int,
    offset_days: int,
    default_start,
    explicit_start=None,
    predecessor_ends: Optional[Iterable[Tuple[Any, Optional[date]]]] = None,
) -> TaskSchedule:
    """
    Calculate a task's planned start and end.

    With no predecessors the task starts on its explicit start, or on the
    caller-supplied default date. With predecessors it starts on the latest
    known predecessor planned end shifted by the task's own offset (negative
    offsets pull the start earlier). The predecessor end is used as is; its
    duration is already contained in it.

    Args:
        task_id: Task being scheduled
        duration_days: Resolved duration of the task
        offset_days: Lead/lag applied relative to the predecessors
        default_start: Date used when nothing else anchors the start ("today")
        explicit_start: Start date set on the task, if any
        predecessor_ends: (predecessor_id, planned_end or None) pairs

    Returns:
        TaskSchedule: planned dates and how they were derived
    """
    default_start = to_date(default_start)
    explicit_start = to_date(explicit_start)
    predecessor_ends = list(predecessor_ends or [])
    warnings = []

    known_ends = [end for _, end in predecessor_ends if end is not None]

    if known_ends:
        reference = max(known_ends)
        planned_start = add_days(reference, offset_days)
        source = TaskSchedule.PREDECESSORS
    else:
        if explicit_start is not None:
            planned_start = explicit_start
            source = TaskSchedule.EXPLICIT
        else:
            if default_start is None:
                raise ValueError("A default start date is required")
            planned_start = default_start
            source = TaskSchedule.DEFAULT

            if predecessor_ends:
                pred_ids = ", ".join(str(pred_id) for pred_id, _ in predecessor_ends)
                message = (
                    f"No planned end known for predecessors {pred_ids}; "
                    f"starting on default date {planned_start.isoformat()}"
                )
                logger.warning("Task %s: %s", task_id, message)
                warnings.append(
                    ScheduleWarning(
                        ScheduleWarning.NO_RESOLVABLE_START, task_id, message
                    )
                )

    planned_end = add_days(planned_start, duration_days)
    return TaskSchedule(
        task_id, planned_start, planned_end, duration_days, source, warnings
    )
