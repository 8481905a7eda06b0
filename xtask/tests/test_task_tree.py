"""Test pure task hierarchy helpers."""

from __future__ import annotations

import uuid
from types import SimpleNamespace

import pytest

from xtask.services.task_tree import (
    TaskNode,
    all_descendants_completed,
    ancestor_chain,
    breadcrumb_from_chain,
    build_forest,
)


def _task(parent=None, status="not started", title="t"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        parent_task_id=parent.id if parent else None,
        status=status,
        title=title,
    )


def test_build_forest_nests_children_in_input_order():
    root = _task(title="root")
    a = _task(root, title="a")
    b = _task(root, title="b")
    a1 = _task(a, title="a1")

    forest = build_forest([root, a, b, a1])
    assert len(forest) == 1
    assert [n.task.title for n in forest[0].subtasks] == ["a", "b"]
    assert [n.task.title for n in forest[0].subtasks[0].subtasks] == ["a1"]


def test_build_forest_orphans_become_roots():
    parent = _task(title="missing")
    child = _task(parent, title="orphan")
    other = _task(title="root")

    forest = build_forest([child, other])
    assert [n.task.title for n in forest] == ["orphan", "root"]


def test_build_forest_self_parent_is_root():
    task = _task()
    task.parent_task_id = task.id
    forest = build_forest([task])
    assert len(forest) == 1
    assert forest[0].subtasks == []


def test_all_descendants_completed_leaf_is_vacuously_true():
    assert all_descendants_completed(TaskNode(_task())) is True


def test_all_descendants_completed_ignores_own_status():
    root = _task(status="not started")
    kids = [_task(root, status="completed"), _task(root, status="completed")]
    node = build_forest([root, *kids])[0]
    assert all_descendants_completed(node) is True


def test_all_descendants_completed_checks_deep_levels():
    root = _task()
    mid = _task(root, status="completed")
    leaf = _task(mid, status="in progress")
    node = build_forest([root, mid, leaf])[0]
    assert all_descendants_completed(node) is False

    leaf.status = "completed"
    assert all_descendants_completed(node) is True


def test_all_descendants_completed_terminates_on_cycle():
    a = TaskNode(_task(status="completed"))
    b = TaskNode(_task(status="completed"))
    a.subtasks.append(b)
    b.subtasks.append(a)
    assert all_descendants_completed(a) is True


@pytest.mark.asyncio
async def test_ancestor_chain_nearest_first():
    root = _task(title="root")
    mid = _task(root, title="mid")
    leaf = _task(mid, title="leaf")
    index = {t.id: t for t in (root, mid, leaf)}

    async def lookup(task_id):
        return index.get(task_id)

    chain = await ancestor_chain(leaf.parent_task_id, lookup)
    assert [t.title for t in chain] == ["mid", "root"]
    assert breadcrumb_from_chain(chain) == [
        {"id": str(root.id), "title": "root"},
        {"id": str(mid.id), "title": "mid"},
    ]


@pytest.mark.asyncio
async def test_ancestor_chain_stops_on_cycle():
    a = _task(title="a")
    b = _task(a, title="b")
    a.parent_task_id = b.id
    index = {a.id: a, b.id: b}
    calls = []

    async def lookup(task_id):
        calls.append(task_id)
        return index.get(task_id)

    chain = await ancestor_chain(a.id, lookup)
    assert [t.title for t in chain] == ["a", "b"]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_ancestor_chain_respects_max_depth():
    tasks = [_task(title="0")]
    for i in range(1, 10):
        tasks.append(_task(tasks[-1], title=str(i)))
    index = {t.id: t for t in tasks}

    async def lookup(task_id):
        return index.get(task_id)

    chain = await ancestor_chain(tasks[-1].id, lookup, max_depth=3)
    assert [t.title for t in chain] == ["9", "8", "7"]


@pytest.mark.asyncio
async def test_ancestor_chain_root_is_empty():
    async def lookup(task_id):  # pragma: no cover
        raise AssertionError("should not be called")

    assert await ancestor_chain(None, lookup) == []
