"""Tests for the task dependency graph."""

import pytest

from dayplanner.core.dependencies import (
    CIRCULAR_DEPENDENCY,
    INCOMPLETE_DEPENDENCY,
    ORPHANED_DEPENDENCY,
    build_graph,
    detect_cycle,
    filter_ready,
    resolve_dependencies,
)
from dayplanner.core.tasks import Task, TaskStatus
from dayplanner.errors import CircularDependencyError


@pytest.fixture
def make_task():
    def _make(task_id, status=TaskStatus.TODO, depends_on=None):
        return Task(id=task_id, title=f"Task {task_id}", status=status, depends_on=depends_on or [])

    return _make


def lookup(tasks):
    """Dependency lookup backed by each task's depends_on list."""
    by_id = {t.id: t for t in tasks}

    def _fetch(task_id):
        task = by_id.get(task_id)
        return [{"taskId": task_id, "dependsOn": d} for d in (task.depends_on if task else [])]

    return _fetch


class TestBuildGraph:
    def test_edges_point_from_prerequisite_to_dependent(self, make_task):
        tasks = [make_task("A", depends_on=["B"]), make_task("B")]
        graph = build_graph(tasks, lookup(tasks))

        assert graph.edges["B"] == {"A"}
        assert graph.edges["A"] == set()
        assert graph.in_degree == {"A": 1, "B": 0}
        assert graph.prerequisites["A"] == ["B"]

    def test_unknown_prerequisite_recorded_without_edge(self, make_task):
        tasks = [make_task("A", depends_on=["ghost"])]
        graph = build_graph(tasks, lookup(tasks))

        assert graph.prerequisites["A"] == ["ghost"]
        assert "ghost" not in graph.edges
        assert graph.in_degree["A"] == 0

    def test_self_dependency_ignored(self, make_task):
        tasks = [make_task("A", depends_on=["A"])]
        graph = build_graph(tasks, lookup(tasks))

        assert graph.prerequisites["A"] == []
        detect_cycle(graph)


class TestDetectCycle:
    def test_acyclic_chain_passes(self, make_task):
        tasks = [make_task("A", depends_on=["B"]), make_task("B", depends_on=["C"]), make_task("C")]
        detect_cycle(build_graph(tasks, lookup(tasks)))

    def test_diamond_passes(self, make_task):
        tasks = [
            make_task("A", depends_on=["B", "C"]),
            make_task("B", depends_on=["D"]),
            make_task("C", depends_on=["D"]),
            make_task("D"),
        ]
        detect_cycle(build_graph(tasks, lookup(tasks)))

    def test_mutual_dependency_raises(self, make_task):
        tasks = [make_task("A", depends_on=["B"]), make_task("B", depends_on=["A"])]

        with pytest.raises(CircularDependencyError) as exc_info:
            detect_cycle(build_graph(tasks, lookup(tasks)))

        assert exc_info.value.task_id in {"A", "B"}
        assert "Circular dependency detected involving task" in str(exc_info.value)

    def test_reported_task_lies_on_cycle(self, make_task):
        # X hangs off the cycle; it must never be the one named
        tasks = [
            make_task("X", depends_on=["A"]),
            make_task("A", depends_on=["C"]),
            make_task("B", depends_on=["A"]),
            make_task("C", depends_on=["B"]),
        ]

        with pytest.raises(CircularDependencyError) as exc_info:
            detect_cycle(build_graph(tasks, lookup(tasks)))

        assert exc_info.value.task_id in {"A", "B", "C"}


class TestFilterReady:
    def test_incomplete_prerequisite_blocks(self, make_task):
        a = make_task("A", depends_on=["B"])
        b = make_task("B")
        tasks = [a, b]

        ready = filter_ready(tasks, build_graph(tasks, lookup(tasks)))

        assert ready == [b]

    def test_done_prerequisite_unblocks(self, make_task):
        a = make_task("A", depends_on=["B"])
        b = make_task("B", status=TaskStatus.DONE)
        tasks = [a, b]

        ready = filter_ready([a], build_graph(tasks, lookup(tasks)))

        assert ready == [a]

    def test_orphaned_prerequisite_blocks(self, make_task):
        a = make_task("A", depends_on=["ghost"])
        assert filter_ready([a], build_graph([a], lookup([a]))) == []

    def test_preserves_input_order(self, make_task):
        tasks = [make_task("C"), make_task("A"), make_task("B")]
        ready = filter_ready(tasks, build_graph(tasks, lookup(tasks)))
        assert [t.id for t in ready] == ["C", "A", "B"]

    def test_completing_a_prerequisite_never_blocks(self, make_task):
        before = [make_task("A", depends_on=["B", "C"]), make_task("B"), make_task("C", status=TaskStatus.DONE)]
        after = [make_task("A", depends_on=["B", "C"]), make_task("B", status=TaskStatus.DONE), make_task("C", status=TaskStatus.DONE)]

        ready_before = {t.id for t in filter_ready(before, build_graph(before, lookup(before)))}
        ready_after = {t.id for t in filter_ready(after, build_graph(after, lookup(after)))}

        assert "A" not in ready_before
        assert "A" in ready_after


class TestResolveDependencies:
    def test_reasons_for_blocked_tasks(self, make_task):
        tasks = [
            make_task("A", depends_on=["B", "ghost"]),
            make_task("B", status=TaskStatus.IN_PROGRESS),
        ]

        result = resolve_dependencies(tasks, lookup(tasks))

        assert [t.id for t in result.ready_tasks] == ["B"]
        assert result.blocked_count == 1
        reasons = result.blocked_tasks[0].reasons
        assert [r.type for r in reasons] == [INCOMPLETE_DEPENDENCY, ORPHANED_DEPENDENCY]
        assert reasons[0].dependency_task_id == "B"
        assert "IN_PROGRESS" in reasons[0].message
        assert reasons[1].message == "Task depends on non-existent task ghost"

    def test_cycle_blocks_every_task(self, make_task):
        tasks = [
            make_task("A", depends_on=["B"]),
            make_task("B", depends_on=["A"]),
            make_task("C"),
        ]

        result = resolve_dependencies(tasks, lookup(tasks)).to_dict()

        assert result["readyCount"] == 0
        assert result["blockedCount"] == 3
        assert result["totalTasks"] == 3
        for blocked in result["blockedTasks"]:
            assert blocked["reasons"][0]["type"] == CIRCULAR_DEPENDENCY
            assert "dependencyTaskId" not in blocked["reasons"][0]

    def test_to_dict_shape(self, make_task):
        tasks = [make_task("A")]
        result = resolve_dependencies(tasks, lookup(tasks)).to_dict()

        assert set(result) == {"readyTasks", "blockedTasks", "totalTasks", "readyCount", "blockedCount"}
        assert result["readyTasks"][0]["id"] == "A"
