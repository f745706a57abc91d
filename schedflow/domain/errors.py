from typing import Any, List, Optional


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling engine."""

    pass


class MissingEntityError(SchedulingError):
    """Raised when a referenced task or deliverable cannot be found."""

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class CyclicDependencyError(SchedulingError):
    """Raised when a dependency chain loops back on itself."""

    def __init__(self, cycle: List[Any], scope: str = "task"):
        self.cycle = list(cycle)
        self.scope = scope
        members = " -> ".join(str(member) for member in self.cycle)
        super().__init__(f"Cyclic {scope} dependency detected: {members}")


class ScheduleWarning:
    """
    A recovered condition reported alongside a computed result.

    Warnings are never raised. They record where the engine applied a
    documented fallback so that callers can surface it.
    """

    DANGLING_DEPENDENCY = "DanglingDependency"
    NO_RESOLVABLE_START = "NoResolvableStart"

    def __init__(
        self,
        kind: str,
        task_id: Any,
        message: str,
        reference_id: Optional[Any] = None,
    ):
        if kind not in (self.DANGLING_DEPENDENCY, self.NO_RESOLVABLE_START):
            raise ValueError(f"Unknown warning kind: {kind}")
        self.kind = kind
        self.task_id = task_id
        self.reference_id = reference_id
        self.message = message

    def __eq__(self, other):
        if not isinstance(other, ScheduleWarning):
            return NotImplemented
        return (self.kind, self.task_id, self.reference_id) == (
            other.kind,
            other.task_id,
            other.reference_id,
        )

    def __repr__(self):
        return (
            f"ScheduleWarning(kind={self.kind!r}, task_id={self.task_id!r}, "
            f"reference_id={self.reference_id!r})"
        )

    def __str__(self):
        return f"[{self.kind}] task {self.task_id}: {self.message}"
