import logging

import networkx as nx

from schedflow.config import DEFAULT_SEQUENTIAL_GAP_DAYS
from schedflow.utils.dates import add_days, to_date
from schedflow.utils.graph import build_deliverable_graph

logger = logging.getLogger(__name__)


def propagate_deliverable_dates(
    task_start, deliverables, task_id=None, gap_days=DEFAULT_SEQUENTIAL_GAP_DAYS
):
    """
    Assign planned dates to every deliverable of a task.

    Parallel deliverables start with the task. A sequential deliverable
    starts ``gap_days`` after its predecessor's planned end. Each deliverable
    runs for its own duration.

    Args:
        task_start: The task's resolved planned start
        deliverables: Deliverable objects belonging to the task
        task_id: Owning task, used for reporting
        gap_days: Days between a predecessor's end and its successor's start

    Returns:
        tuple: (dict of deliverable_id -> (planned_start, planned_end), warnings)

    Raises:
        CyclicDependencyError: If the depends-on chain loops
    """
    task_start = to_date(task_start)
    if task_start is None:
        raise ValueError(f"Task {task_id} has no planned start to propagate")

    deliverables = list(deliverables)
    if not deliverables:
        return {}, []

    graph, warnings = build_deliverable_graph(task_id, deliverables)

    dates = {}
    for deliverable_id in nx.topological_sort(graph):
        deliverable = graph.nodes[deliverable_id]["deliverable"]
        start = task_start
        for pred_id in graph.predecessors(deliverable_id):
            start = add_days(dates[pred_id][1], gap_days)
        dates[deliverable_id] = (start, add_days(start, deliverable.duration_days))

    logger.debug("Task %s: dated %s deliverables", task_id, len(dates))
    return dates, warnings
