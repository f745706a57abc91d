from datetime import date
from typing import Dict, Optional, Any

from schedflow.utils.dates import DateLike, to_date


class DeliverableError(Exception):
    """Exception raised for errors in the Deliverable class."""

    pass


class Deliverable:
    """
    A unit of work inside a task.

    A deliverable either runs in parallel with its task (no predecessor) or
    sequentially after exactly one other deliverable of the same task.
    """

    def __init__(
        self,
        id: Any,
        task_id: Any,
        duration_days: int = 0,
        depends_on_deliverable_id: Optional[Any] = None,
        name: str = "",
        planned_start: Optional[DateLike] = None,
        planned_end: Optional[DateLike] = None,
    ):
        """
        Initialize a new Deliverable.

        Args:
            id: Unique identifier for the deliverable
            task_id: ID of the owning task
            duration_days: Duration in whole days (>= 0)
            depends_on_deliverable_id: Optional predecessor in the same task
            name: Display name
            planned_start: Previously computed planned start
            planned_end: Previously computed planned end

        Raises:
            DeliverableError: If any input validation fails
        """
        if id is None:
            raise DeliverableError("Deliverable ID cannot be None")
        self.id = id

        if task_id is None:
            raise DeliverableError("Deliverable must belong to a task")
        self.task_id = task_id

        if (
            isinstance(duration_days, bool)
            or not isinstance(duration_days, int)
            or duration_days < 0
        ):
            raise DeliverableError("Duration days must be a non-negative integer")
        self.duration_days = duration_days

        if depends_on_deliverable_id is not None and depends_on_deliverable_id == id:
            raise DeliverableError(f"Deliverable {id} cannot depend on itself")
        self.depends_on_deliverable_id = depends_on_deliverable_id

        self.name = name

        try:
            self.planned_start = to_date(planned_start)
            self.planned_end = to_date(planned_end)
        except ValueError as e:
            raise DeliverableError(f"Invalid planned date: {e}")

    @property
    def is_sequential(self) -> bool:
        """True when this deliverable waits for a predecessor deliverable."""
        return self.depends_on_deliverable_id is not None

    def set_schedule(self, planned_start: date, planned_end: date) -> "Deliverable":
        if planned_end < planned_start:
            raise DeliverableError("Planned end cannot be before planned start")
        self.planned_start = planned_start
        self.planned_end = planned_end
        return self

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "task_id": self.task_id,
            "name": self.name,
            "duration_days": self.duration_days,
            "depends_on_deliverable_id": self.depends_on_deliverable_id,
        }
        if self.planned_start is not None:
            result["planned_start"] = self.planned_start.isoformat()
        if self.planned_end is not None:
            result["planned_end"] = self.planned_end.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Deliverable":
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            duration_days=data.get("duration_days", 0),
            depends_on_deliverable_id=data.get("depends_on_deliverable_id"),
            name=data.get("name", ""),
            planned_start=data.get("planned_start"),
            planned_end=data.get("planned_end"),
        )

    def __repr__(self) -> str:
        after = (
            f", after={self.depends_on_deliverable_id}" if self.is_sequential else ""
        )
        return (
            f"Deliverable(id={self.id}, task={self.task_id}, "
            f"duration={self.duration_days}{after})"
        )
