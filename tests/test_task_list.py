from __future__ import annotations

import asyncio

import pytest

from checkup.core.errors import CheckupError, ErrorKind
from checkup.core.task_list import MetaTaskList, TaskList
from tests.conftest import FakeTask


def test_register_and_find_task() -> None:
    tasks = TaskList()
    task = FakeTask("a", "b")
    tasks.register_task(task)

    assert tasks.find_task("a/b") is task
    assert tasks.find_task("a") is None
    assert "a/b" in tasks
    assert len(tasks) == 1


def test_duplicate_registration_is_rejected() -> None:
    tasks = TaskList([FakeTask("a", "b")])

    with pytest.raises(CheckupError) as excinfo:
        tasks.register_task(FakeTask("a", "b"))
    assert excinfo.value.kind == ErrorKind.DUPLICATE_TASK
    assert len(tasks) == 1


def test_find_tasks_partitions_names_in_input_order() -> None:
    first = FakeTask("a", "b")
    second = FakeTask("c", "d")
    tasks = TaskList([first, second])

    lookup = tasks.find_tasks("c/d", "x/y", "a/b", "z/w")

    assert lookup.tasks_found == [second, first]
    assert lookup.tasks_not_found == ["x/y", "z/w"]


def test_find_tasks_reports_unknown_names() -> None:
    task = FakeTask("a", "b")
    lookup = TaskList([task]).find_tasks("a/b", "x/y")

    assert lookup.tasks_found == [task]
    assert lookup.tasks_not_found == ["x/y"]


def test_fully_qualified_task_names_keep_registration_order() -> None:
    tasks = TaskList([FakeTask("z", "last"), FakeTask("a", "first")])

    assert tasks.fully_qualified_task_names == ["z/last", "a/first"]
    assert tasks.fully_qualified_task_names == ["z/last", "a/first"]


def test_run_tasks_runs_everything_or_the_given_subset() -> None:
    one, two = FakeTask("a", "one"), FakeTask("a", "two")
    tasks = TaskList([one, two])

    results, errors = asyncio.run(tasks.run_tasks([two]))
    assert [r.task_name for r in results] == ["a/two"]
    assert (one.calls, two.calls) == (0, 1)

    results, errors = asyncio.run(tasks.run_tasks())
    assert {r.task_name for r in results} == {"a/one", "a/two"}
    assert errors == []


def test_meta_task_list_is_independent() -> None:
    meta = MetaTaskList([FakeTask("meta", "project")])
    plugin_tasks = TaskList([FakeTask("meta", "project")])

    assert meta.fully_qualified_task_names == ["meta/project"]
    assert plugin_tasks.find_task("meta/project") is not meta.find_task("meta/project")
