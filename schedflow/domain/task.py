from datetime import date
from typing import List, Dict, Optional, Any

from schedflow.utils.dates import DateLike, to_date, days_between


class TaskError(Exception):
    """Exception raised for errors in the Task class."""

    pass


class Task:
    """
    Represents a task in a milestone of a work-tracking project.

    A task owns a set of deliverables, may depend on other tasks through
    finish-to-start edges and carries a signed lead/lag offset applied
    relative to its predecessors. Its duration and planned dates are derived
    values, written by the scheduling engine.
    """

    def __init__(
        self,
        id: Any,
        name: str = "",
        duration_days: int = 0,
        offset_days: int = 0,
        planned_start: Optional[DateLike] = None,
        planned_end: Optional[DateLike] = None,
        explicit_start: Optional[DateLike] = None,
        dependencies: Optional[List] = None,
        milestone_id: Optional[Any] = None,
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique identifier for the task
            name: Display name of the task
            duration_days: Seeded or computed duration in whole days (>= 0)
            offset_days: Lead (negative) or lag (positive) relative to predecessors
            planned_start: Previously computed planned start
            planned_end: Previously computed planned end
            explicit_start: Start date authored by the user, never overwritten
                by the engine
            dependencies: IDs of the tasks this task depends on
            milestone_id: Owning milestone, opaque to the scheduler

        Raises:
            TaskError: If any input validation fails
        """
        if id is None:
            raise TaskError("Task ID cannot be None")
        self.id = id

        if not isinstance(name, str):
            raise TaskError("Task name must be a string")
        self.name = name

        self._duration_days = 0
        self.duration_days = duration_days

        if isinstance(offset_days, bool) or not isinstance(offset_days, int):
            raise TaskError("Offset days must be an integer")
        self.offset_days = offset_days

        self.dependencies = []
        if dependencies:
            if not isinstance(dependencies, list):
                raise TaskError("Dependencies must be a list")
            self.dependencies = list(dependencies)

        self.milestone_id = milestone_id

        # Planned schedule
        self._planned_start = None
        self._planned_end = None
        self.planned_start = planned_start
        self.planned_end = planned_end
        self._explicit_start = None
        self.explicit_start = explicit_start

        # Execution markers
        self.actual_start = None
        self.actual_end = None

    @property
    def duration_days(self) -> int:
        """Get the task duration in days."""
        return self._duration_days

    @duration_days.setter
    def duration_days(self, value: int):
        """Set the task duration in days."""
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise TaskError("Duration days must be a non-negative integer")
        self._duration_days = value

    @property
    def planned_start(self) -> Optional[date]:
        return self._planned_start

    @planned_start.setter
    def planned_start(self, value: Optional[DateLike]):
        try:
            self._planned_start = to_date(value)
        except ValueError as e:
            raise TaskError(f"Invalid planned start: {e}")

    @property
    def explicit_start(self) -> Optional[date]:
        return self._explicit_start

    @explicit_start.setter
    def explicit_start(self, value: Optional[DateLike]):
        try:
            self._explicit_start = to_date(value)
        except ValueError as e:
            raise TaskError(f"Invalid explicit start: {e}")

    @property
    def planned_end(self) -> Optional[date]:
        return self._planned_end

    @planned_end.setter
    def planned_end(self, value: Optional[DateLike]):
        try:
            self._planned_end = to_date(value)
        except ValueError as e:
            raise TaskError(f"Invalid planned end: {e}")

    @property
    def is_started(self) -> bool:
        return self.actual_start is not None

    @property
    def is_finished(self) -> bool:
        return self.actual_end is not None

    def set_schedule(
        self, planned_start: DateLike, planned_end: DateLike, duration_days: int
    ) -> "Task":
        """
        Set the computed schedule for the task.

        The explicit start is left untouched.

        Args:
            planned_start: Planned start date
            planned_end: Planned end date
            duration_days: Duration matching the span between the dates

        Returns:
            self: For method chaining

        Raises:
            TaskError: If the dates do not span exactly duration_days
        """
        start = to_date(planned_start)
        end = to_date(planned_end)
        if start is None or end is None:
            raise TaskError("Planned start and end are required")
        if days_between(start, end) != duration_days:
            raise TaskError(
                f"Task {self.id} schedule spans {days_between(start, end)} days "
                f"but duration is {duration_days}"
            )

        self.duration_days = duration_days
        self._planned_start = start
        self._planned_end = end
        return self

    def start_task(self, start_date: DateLike) -> "Task":
        """
        Record the actual start of the task.

        Raises:
            TaskError: If the task has already started
        """
        if self.actual_start is not None:
            raise TaskError(f"Task {self.id} has already started")
        self.actual_start = to_date(start_date)
        return self

    def complete_task(self, completion_date: DateLike) -> "Task":
        """
        Record the actual finish of the task.

        Raises:
            TaskError: If the task has not started or finishes before it starts
        """
        if self.actual_start is None:
            raise TaskError(f"Cannot complete task {self.id} before it starts")
        end = to_date(completion_date)
        if end < self.actual_start:
            raise TaskError("Completion date cannot be before the actual start")
        self.actual_end = end
        return self

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert task to a dictionary representation.

        Returns:
            dict: Dictionary representation of the task
        """
        result = {
            "id": self.id,
            "name": self.name,
            "duration_days": self.duration_days,
            "offset_days": self.offset_days,
            "dependencies": self.dependencies.copy(),
            "milestone_id": self.milestone_id,
        }

        for attr in [
            "explicit_start",
            "planned_start",
            "planned_end",
            "actual_start",
            "actual_end",
        ]:
            value = getattr(self, attr)
            if value is not None:
                result[attr] = value.isoformat()

        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Create a task from a dictionary representation.

        Args:
            data: Dictionary representation of the task

        Returns:
            Task: New task instance
        """
        task = cls(
            id=data["id"],
            name=data.get("name", ""),
            duration_days=data.get("duration_days", 0),
            offset_days=data.get("offset_days", 0),
            planned_start=data.get("planned_start"),
            planned_end=data.get("planned_end"),
            explicit_start=data.get("explicit_start"),
            dependencies=data.get("dependencies", []),
            milestone_id=data.get("milestone_id"),
        )
        task.actual_start = to_date(data.get("actual_start"))
        task.actual_end = to_date(data.get("actual_end"))
        return task

    def copy(self) -> "Task":
        return self.from_dict(self.to_dict())

    def __repr__(self) -> str:
        dates_str = ""
        if self.planned_start is not None:
            dates_str = f", planned={self.planned_start}..{self.planned_end}"
        return (
            f"Task(id={self.id}, name={self.name}, "
            f"duration={self.duration_days}, offset={self.offset_days}{dates_str})"
        )
