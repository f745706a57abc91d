import logging

import networkx as nx

from schedflow.domain.errors import CyclicDependencyError, ScheduleWarning
from schedflow.utils.dates import add_days, days_between

logger = logging.getLogger(__name__)


def find_cycle_members(graph, source=None):
    """
    Return the node ids forming one cycle in the graph, or None if acyclic.

    The list starts at the first node of the cycle found and does not repeat
    it at the end.
    """
    try:
        cycle_edges = nx.find_cycle(graph, source=source)
    except nx.NetworkXNoCycle:
        return None
    return [u for u, _ in cycle_edges]


def build_dependency_graph(tasks, check_acyclic=True):
    """
    Build a directed graph representing task dependencies.

    Edges run from predecessor to successor. Dependencies on tasks that are
    not part of ``tasks`` are left out of the graph.

    Args:
        tasks: Dictionary of Task objects keyed by ID
        check_acyclic: Raise if the dependencies contain a cycle

    Raises:
        CyclicDependencyError: If check_acyclic is set and a cycle exists
    """
    G = nx.DiGraph()

    for task_id, task in tasks.items():
        G.add_node(task_id, task=task)

    for task_id, task in tasks.items():
        for dep_id in task.dependencies:
            if dep_id in tasks:
                G.add_edge(dep_id, task_id)

    if check_acyclic:
        cycle = find_cycle_members(G)
        if cycle:
            raise CyclicDependencyError(cycle)

    return G


def build_edge_graph(task_ids, edges):
    """
    Build a dependency graph from plain (task_id, depends_on_task_id) pairs.

    Edges referencing ids outside ``task_ids`` are ignored.
    """
    known = set(task_ids)
    G = nx.DiGraph()
    G.add_nodes_from(task_ids)
    for task_id, depends_on_task_id in edges:
        if task_id in known and depends_on_task_id in known:
            G.add_edge(depends_on_task_id, task_id)
    return G


def detect_dependency_cycle(task_ids, edges):
    """Return the members of a dependency cycle among the tasks, or None."""
    return find_cycle_members(build_edge_graph(task_ids, edges))


def would_create_cycle(edges, task_id, depends_on_task_id):
    """
    Check whether adding ``task_id`` depends-on ``depends_on_task_id`` closes a loop.

    Args:
        edges: Existing (task_id, depends_on_task_id) pairs
        task_id: The successor of the proposed edge
        depends_on_task_id: The predecessor of the proposed edge

    Returns:
        bool: True if the new edge would make the graph cyclic
    """
    if task_id == depends_on_task_id:
        return True

    G = nx.DiGraph()
    for succ_id, pred_id in edges:
        G.add_edge(pred_id, succ_id)

    # A path from the successor back to the predecessor plus the new edge is a loop
    if task_id not in G or depends_on_task_id not in G:
        return False
    return nx.has_path(G, task_id, depends_on_task_id)


def build_deliverable_graph(task_id, deliverables):
    """
    Build the sequential/parallel structure of the deliverables of one task.

    Each deliverable is a node; an edge runs from a deliverable to the one
    that depends on it. A reference to a deliverable outside the set (deleted
    or belonging to another task) is dropped and reported as dangling, which
    leaves the deliverable running in parallel with the task.

    Returns:
        tuple: (graph, warnings)

    Raises:
        CyclicDependencyError: If the depends-on chain loops
    """
    G = nx.DiGraph()
    warnings = []

    for deliverable in deliverables:
        G.add_node(deliverable.id, deliverable=deliverable)

    for deliverable in deliverables:
        pred_id = deliverable.depends_on_deliverable_id
        if pred_id is None:
            continue
        if pred_id not in G:
            message = (
                f"Deliverable {deliverable.id} depends on missing deliverable "
                f"{pred_id}; scheduled in parallel"
            )
            logger.warning(message)
            warnings.append(
                ScheduleWarning(
                    ScheduleWarning.DANGLING_DEPENDENCY, task_id, message, pred_id
                )
            )
            continue
        G.add_edge(pred_id, deliverable.id)

    cycle = find_cycle_members(G)
    if cycle:
        raise CyclicDependencyError(cycle, scope="deliverable")

    return G, warnings


def forward_pass(graph, tasks, project_start):
    """
    Calculate early start and early finish dates.

    Roots start at the project start; other tasks start at the latest early
    finish of their predecessors shifted by their own offset. Negative
    offsets and durations are clamped to zero.

    Returns:
        dict: task_id -> (early_start, early_finish)
    """
    early = {}

    for task_id in nx.topological_sort(graph):
        task = tasks[task_id]
        duration = max(task.duration_days, 0)
        predecessors = list(graph.predecessors(task_id))

        if not predecessors:
            early_start = project_start
        else:
            max_finish = max(early[pred_id][1] for pred_id in predecessors)
            early_start = add_days(max_finish, max(task.offset_days, 0))

        early[task_id] = (early_start, add_days(early_start, duration))

    return early


def backward_pass(graph, tasks, early):
    """
    Calculate late start and late finish dates and total float.

    Returns:
        dict: task_id -> (late_start, late_finish, total_float_days)
    """
    project_finish = max(finish for _, finish in early.values())
    late = {}

    for task_id in reversed(list(nx.topological_sort(graph))):
        task = tasks[task_id]
        duration = max(task.duration_days, 0)
        successors = list(graph.successors(task_id))

        if not successors:
            late_finish = project_finish
        else:
            late_finish = min(
                add_days(late[succ_id][0], -max(tasks[succ_id].offset_days, 0))
                for succ_id in successors
            )

        late_start = add_days(late_finish, -duration)
        total_float = days_between(early[task_id][0], late_start)
        late[task_id] = (late_start, late_finish, total_float)

    return late


def find_critical_path(graph, late):
    """Find the zero-float tasks in topological order."""
    return [
        task_id
        for task_id in nx.topological_sort(graph)
        if task_id in late and late[task_id][2] == 0
    ]
