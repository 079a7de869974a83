"""Task dependency graph - cycle detection and readiness.

Pure logic. Prerequisite edges come from a caller-supplied lookup so the
graph can be built from any task store.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from dayplanner.errors import CircularDependencyError

from .tasks import Task

logger = logging.getLogger(__name__)

INCOMPLETE_DEPENDENCY = "incomplete_dependency"
ORPHANED_DEPENDENCY = "orphaned_dependency"
CIRCULAR_DEPENDENCY = "circular_dependency"

DependencyLookup = Callable[[str], list[dict]]

_WHITE, _GREY, _BLACK = 0, 1, 2


@dataclass
class DependencyGraph:
    """Adjacency structure for one planning call.

    edges maps a prerequisite id to the ids of tasks waiting on it.
    prerequisites keeps every id a task asked for, resolvable or not.
    """

    nodes: dict[str, Task] = field(default_factory=dict)
    edges: dict[str, set[str]] = field(default_factory=dict)
    prerequisites: dict[str, list[str]] = field(default_factory=dict)
    in_degree: dict[str, int] = field(default_factory=dict)


@dataclass
class BlockingReason:
    type: str
    message: str
    dependency_task_id: str | None = None

    def to_dict(self) -> dict:
        data = {"type": self.type, "message": self.message}
        if self.dependency_task_id is not None:
            data["dependencyTaskId"] = self.dependency_task_id
        return data


@dataclass
class BlockedTask:
    task: Task
    reasons: list[BlockingReason]


@dataclass
class DependencyResolution:
    """Ready vs blocked split, with per-task reasons for the blocked ones."""

    ready_tasks: list[Task]
    blocked_tasks: list[BlockedTask]

    @property
    def total_tasks(self) -> int:
        return len(self.ready_tasks) + len(self.blocked_tasks)

    @property
    def ready_count(self) -> int:
        return len(self.ready_tasks)

    @property
    def blocked_count(self) -> int:
        return len(self.blocked_tasks)

    def to_dict(self) -> dict:
        return {
            "readyTasks": [t.to_dict() for t in self.ready_tasks],
            "blockedTasks": [
                {"task": b.task.to_dict(), "reasons": [r.to_dict() for r in b.reasons]}
                for b in self.blocked_tasks
            ],
            "totalTasks": self.total_tasks,
            "readyCount": self.ready_count,
            "blockedCount": self.blocked_count,
        }


def build_graph(tasks: list[Task], fetch_dependencies: DependencyLookup) -> DependencyGraph:
    """
    Build the dependency graph for a batch of tasks.

    Args:
        tasks: Tasks to plan
        fetch_dependencies: Returns [{"dependsOn": id}, ...] for a task id

    Returns:
        DependencyGraph. Edges only join tasks present in the batch.
    """
    graph = DependencyGraph()
    for task in tasks:
        graph.nodes[task.id] = task
        graph.edges[task.id] = set()
        graph.prerequisites[task.id] = []
        graph.in_degree[task.id] = 0

    for task in tasks:
        for dep in fetch_dependencies(task.id):
            prereq_id = dep["dependsOn"]
            if prereq_id == task.id:
                logger.warning(f"Ignoring self-dependency on task {task.id}")
                continue
            graph.prerequisites[task.id].append(prereq_id)
            if prereq_id in graph.nodes and task.id not in graph.edges[prereq_id]:
                graph.edges[prereq_id].add(task.id)
                graph.in_degree[task.id] += 1

    return graph


def detect_cycle(graph: DependencyGraph) -> None:
    """
    Raise CircularDependencyError if the graph has a cycle.

    Iterative white/grey/black DFS. The task named in the error is the one
    reached by the back edge, so it always lies on the cycle.
    """
    color = {node_id: _WHITE for node_id in graph.nodes}

    for root in graph.nodes:
        if color[root] != _WHITE:
            continue

        color[root] = _GREY
        stack = [(root, iter(sorted(graph.edges.get(root, ()))))]
        while stack:
            node_id, neighbors = stack[-1]
            advanced = False
            for neighbor in neighbors:
                state = color.get(neighbor, _BLACK)
                if state == _GREY:
                    raise CircularDependencyError(neighbor)
                if state == _WHITE:
                    color[neighbor] = _GREY
                    stack.append((neighbor, iter(sorted(graph.edges.get(neighbor, ())))))
                    advanced = True
                    break
            if not advanced:
                color[node_id] = _BLACK
                stack.pop()


def is_ready(task: Task, graph: DependencyGraph) -> bool:
    """Every prerequisite resolves to a known task that is DONE."""
    for prereq_id in graph.prerequisites.get(task.id, []):
        prereq = graph.nodes.get(prereq_id)
        if prereq is None or not prereq.is_done():
            return False
    return True


def filter_ready(tasks: list[Task], graph: DependencyGraph) -> list[Task]:
    """Keep tasks with no incomplete or orphaned prerequisites, in order."""
    ready = [t for t in tasks if is_ready(t, graph)]
    logger.info(f"Filtered {len(ready)} ready tasks from {len(tasks)} total")
    return ready


def blocking_reasons(task: Task, graph: DependencyGraph) -> list[BlockingReason]:
    reasons = []
    for prereq_id in graph.prerequisites.get(task.id, []):
        prereq = graph.nodes.get(prereq_id)
        if prereq is None:
            reasons.append(
                BlockingReason(
                    type=ORPHANED_DEPENDENCY,
                    message=f"Task depends on non-existent task {prereq_id}",
                    dependency_task_id=prereq_id,
                )
            )
        elif not prereq.is_done():
            reasons.append(
                BlockingReason(
                    type=INCOMPLETE_DEPENDENCY,
                    message=f'Task depends on incomplete task "{prereq.title}" ({prereq.status.value})',
                    dependency_task_id=prereq_id,
                )
            )
    return reasons


def resolve_dependencies(
    tasks: list[Task],
    fetch_dependencies: DependencyLookup,
) -> DependencyResolution:
    """
    Split tasks into ready and blocked, with reasons.

    A cycle anywhere marks every task in the batch as blocked: readiness
    computed over a cyclic graph is not meaningful.
    """
    graph = build_graph(tasks, fetch_dependencies)

    try:
        detect_cycle(graph)
    except CircularDependencyError as e:
        logger.warning(f"Marking all {len(tasks)} tasks blocked: {e}")
        return DependencyResolution(
            ready_tasks=[],
            blocked_tasks=[
                BlockedTask(task=t, reasons=[BlockingReason(type=CIRCULAR_DEPENDENCY, message=str(e))])
                for t in tasks
            ],
        )

    ready: list[Task] = []
    blocked: list[BlockedTask] = []
    for task in tasks:
        reasons = blocking_reasons(task, graph)
        if reasons:
            blocked.append(BlockedTask(task=task, reasons=reasons))
        else:
            ready.append(task)

    logger.info(f"Dependency resolution complete: {len(ready)} ready, {len(blocked)} blocked")
    return DependencyResolution(ready_tasks=ready, blocked_tasks=blocked)
