from __future__ import annotations

import asyncio
import inspect
import traceback
from pathlib import Path
from typing import Any, Callable, Iterable

from jsonschema import ValidationError, validate

from .types import Task, TaskError, TaskResult
from .utils import env_flag, read_json


_RESULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "task_result.schema.json"
_result_schema: dict[str, Any] | None = None


def task_result_schema() -> dict[str, Any]:
    global _result_schema
    if _result_schema is None:
        _result_schema = read_json(_RESULT_SCHEMA_PATH)
    return _result_schema


def validate_task_result(result: Any) -> None:
    if not isinstance(result, TaskResult):
        raise TypeError(f"Task returned {type(result).__name__}, expected TaskResult")
    validate(instance=result.to_dict(), schema=task_result_schema())


async def _run_one(task: Task, validate_results: bool) -> TaskResult:
    outcome = task.run()
    if inspect.isawaitable(outcome):
        outcome = await outcome
    if validate_results:
        validate_task_result(outcome)
    return outcome


async def run_tasks(
    tasks: Iterable[Task],
    *,
    logger: Callable[[str], None] | None = None,
    validate_results: bool = True,
) -> tuple[list[TaskResult], list[TaskError]]:
    """Run every task concurrently; failures are captured per task, never raised."""

    log = logger or (lambda msg: None)
    selected = list(tasks)
    progress = env_flag("CHECKUP_PROGRESS")

    async def guarded(task: Task) -> TaskResult | TaskError:
        log(f"[RUN] {task.full_name}")
        if progress:
            print(f"[RUN] {task.full_name}", flush=True)
        try:
            return await _run_one(task, validate_results)
        except ValidationError as exc:
            log(f"[ERROR] {task.full_name}: invalid result: {exc.message}")
            return TaskError(task.full_name, exc, traceback.format_exc())
        except Exception as exc:
            log(f"[ERROR] {task.full_name}: {type(exc).__name__}: {exc}")
            return TaskError(task.full_name, exc, traceback.format_exc())
        except (SystemExit, asyncio.CancelledError) as exc:
            # Exits and cancellations raised by a task stay with that task;
            # KeyboardInterrupt still stops the run.
            log(f"[ERROR] {task.full_name}: {type(exc).__name__}: {exc}")
            return TaskError(task.full_name, exc, traceback.format_exc())

    outcomes = await asyncio.gather(*(guarded(task) for task in selected))

    results: list[TaskResult] = []
    errors: list[TaskError] = []
    for outcome in outcomes:
        if isinstance(outcome, TaskError):
            errors.append(outcome)
        else:
            results.append(outcome)
    log(f"[DONE] {len(results)} results, {len(errors)} errors")
    return results, errors


def run_tasks_sync(
    tasks: Iterable[Task],
    *,
    logger: Callable[[str], None] | None = None,
    validate_results: bool = True,
) -> tuple[list[TaskResult], list[TaskError]]:
    return asyncio.run(run_tasks(tasks, logger=logger, validate_results=validate_results))
