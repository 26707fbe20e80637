"""Task tree and runner — ordered, reportable, skippable units of work.

A :class:`Task` with an action and no children is a leaf; one with children
is a group.  :class:`TaskRunner` executes a tree exactly once:

* a disabled task is reported as skipped and its children are not visited;
* a failing action is reported and its error re-raised to the caller;
* a group runs its children in declared order, isolating each child's
  failure, and is itself reported as failed if any child failed.

Usage::

    build = Task("Building Alexa project files")
    build.add(Task("Project Files", write_files), Task("Interaction Model"))
    runner = TaskRunner()
    await runner.run(build)
    if not runner.succeeded:
        ...
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from enum import Enum
from typing import Protocol, runtime_checkable

from uim.utils.telemetry import ATTR_TASK_STATUS, ATTR_TASK_TITLE, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

TaskAction = Callable[[], "Awaitable[None] | None"]


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class Task:
    """A unit of work with an optional deferred action and ordered children."""

    def __init__(
        self,
        title: str,
        action: TaskAction | None = None,
        children: list[Task] | None = None,
    ) -> None:
        self.title = title
        self.action = action
        self.children: list[Task] = list(children or [])
        self.enabled = True
        self.status = TaskStatus.PENDING
        self.error: Exception | None = None

    def add(self, *tasks: Task) -> Task:
        """Append child tasks and return *self* for chaining."""
        self.children.extend(tasks)
        return self

    def disable(self) -> None:
        """Disable this task and its entire subtree."""
        for task in self.walk():
            task.enabled = False

    def walk(self) -> Iterator[Task]:
        """Yield this task and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        return f"Task({self.title!r}, status={self.status.value})"


@runtime_checkable
class TaskReporter(Protocol):
    """Receives task status transitions from a :class:`TaskRunner`."""

    def task_started(self, task: Task, depth: int) -> None: ...

    def task_succeeded(self, task: Task, depth: int) -> None: ...

    def task_failed(self, task: Task, depth: int, error: Exception | None) -> None: ...

    def task_skipped(self, task: Task, depth: int) -> None: ...


class LoggingTaskReporter:
    """Reports task transitions through :mod:`logging`."""

    def task_started(self, task: Task, depth: int) -> None:
        logger.debug("%sstarted: %s", "  " * depth, task.title)

    def task_succeeded(self, task: Task, depth: int) -> None:
        logger.info("%s✔ %s", "  " * depth, task.title)

    def task_failed(self, task: Task, depth: int, error: Exception | None) -> None:
        logger.error("%s✖ %s%s", "  " * depth, task.title, f": {error}" if error else "")

    def task_skipped(self, task: Task, depth: int) -> None:
        logger.info("%s– %s (skipped)", "  " * depth, task.title)


class TaskRunner:
    """Executes task trees and collects leaf failures.

    Args:
        reporter: Receives status transitions; defaults to logging.
        max_concurrency: Upper bound of sibling tasks running at once.
            ``1`` (default) runs siblings sequentially in declared order.
    """

    def __init__(
        self,
        reporter: TaskReporter | None = None,
        *,
        max_concurrency: int = 1,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.reporter: TaskReporter = reporter or LoggingTaskReporter()
        self.max_concurrency = max_concurrency
        self.failures: list[Task] = []
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 1 else None

    @property
    def succeeded(self) -> bool:
        """``True`` while no task run by this runner has failed."""
        return not self.failures

    async def run(self, task: Task, *, depth: int = 0) -> TaskStatus:
        """Run *task* and its subtree.

        Returns the task's final status.  An exception raised by the task's
        own action is re-raised after being reported.

        Raises:
            RuntimeError: If the task has already been run.
        """
        if task.status is not TaskStatus.PENDING:
            raise RuntimeError(f"Task already run: {task.title}")

        if not task.enabled:
            task.status = TaskStatus.SKIPPED
            self.reporter.task_skipped(task, depth)
            return task.status

        with _tracer.start_as_current_span("uim.task") as span:
            span.set_attribute(ATTR_TASK_TITLE, task.title)
            self.reporter.task_started(task, depth)

            if task.action is not None:
                try:
                    result = task.action()
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    task.status = TaskStatus.FAILED
                    task.error = exc
                    self.failures.append(task)
                    span.set_attribute(ATTR_TASK_STATUS, task.status.value)
                    self.reporter.task_failed(task, depth, exc)
                    raise

            statuses = await self._run_children(task.children, depth + 1)
            failed = TaskStatus.FAILED in statuses

            task.status = TaskStatus.FAILED if failed else TaskStatus.SUCCEEDED
            span.set_attribute(ATTR_TASK_STATUS, task.status.value)
            if failed:
                self.reporter.task_failed(task, depth, None)
            else:
                self.reporter.task_succeeded(task, depth)
            return task.status

    async def _run_children(self, children: list[Task], depth: int) -> list[TaskStatus]:
        if self._semaphore is None:
            return [await self._run_isolated(child, depth) for child in children]
        return list(
            await asyncio.gather(*[self._run_isolated(child, depth) for child in children])
        )

    async def _run_isolated(self, task: Task, depth: int) -> TaskStatus:
        """Run a child task, converting its failure into a status."""
        try:
            # Only leaves hold a slot, or nested groups could deadlock
            if self._semaphore is None or task.children:
                return await self.run(task, depth=depth)
            async with self._semaphore:
                return await self.run(task, depth=depth)
        except Exception:
            logger.debug("Subtask failed: %s", task.title, exc_info=True)
            return TaskStatus.FAILED
