import logging

from schedflow.domain.errors import MissingEntityError, ScheduleWarning

logger = logging.getLogger(__name__)


class EarlyStartCheck:
    """Predecessors still open while their successor has already started."""

    def __init__(self, task_id, incomplete_predecessors, warnings=None):
        self.task_id = task_id
        self.incomplete_predecessors = incomplete_predecessors
        self.warnings = warnings if warnings is not None else []

    @property
    def is_early_start(self) -> bool:
        return bool(self.incomplete_predecessors)

    def __repr__(self):
        return (
            f"EarlyStartCheck(task_id={self.task_id!r}, "
            f"incomplete_predecessors={self.incomplete_predecessors})"
        )


def check_early_start(repository, task_id):
    """
    Report the direct predecessors of a started task that have not finished.

    Read-only. A task without an actual start never produces an entry. A
    predecessor that no longer exists is skipped and reported as a
    DanglingDependency warning.

    Raises:
        MissingEntityError: If the task does not exist
    """
    task = repository.get_task(task_id)
    if task is None:
        raise MissingEntityError("Task", task_id)

    if task.actual_start is None:
        return EarlyStartCheck(task_id, [])

    incomplete = []
    warnings = []
    for pred_id in repository.get_predecessor_ids(task_id):
        predecessor = repository.get_task(pred_id)
        if predecessor is None:
            message = f"Predecessor {pred_id} no longer exists; edge ignored"
            logger.warning("Task %s: %s", task_id, message)
            warnings.append(
                ScheduleWarning(
                    ScheduleWarning.DANGLING_DEPENDENCY, task_id, message, pred_id
                )
            )
            continue
        if predecessor.actual_end is None:
            incomplete.append(pred_id)

    if incomplete:
        logger.info(
            "Task %s started before predecessors %s finished", task_id, incomplete
        )
    return EarlyStartCheck(task_id, incomplete, warnings)
