"""Running tasks on a fixed number of worker threads with live progress output."""

from __future__ import annotations

import functools
import itertools
import queue
import sys
import threading
from collections.abc import Callable
from typing import Optional, TextIO

__all__ = ["Pool", "Task", "make_progress_bar"]

Send = Callable[[str], None]
Abort = Callable[[], None]

_PROGRESS_BAR_LENGTH = 30


def _is_terminal(stream: TextIO) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


class Task:
    """A unit of work for a Pool.

    Subclass and override ``run``, or pass a callable taking ``(send, abort)``.
    ``send`` replaces the task's line of output; ``abort`` stops the pool from
    starting further tasks.
    """

    def __init__(self, action: Optional[Callable[[Send, Abort], None]] = None):
        self._action = action

    def run(self, send: Send, abort: Abort) -> None:
        """Do the work of the task."""
        if self._action is None:
            raise TypeError("task has no action; override run or pass a callable")
        self._action(send, abort)


class _LiveWriter:
    """Rewrites the block of lines it last wrote on a terminal."""

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._lines = 0

    def update(self, text: str) -> None:
        prefix = f"\r\x1b[{self._lines}A\x1b[J" if self._lines else ""
        self._stream.write(f"{prefix}{text}\n")
        self._stream.flush()
        self._lines = text.count("\n") + 1

    def stop(self) -> None:
        self._stream.flush()


class Pool:
    """Runs added tasks on ``num_workers`` threads.

    On a terminal each task owns a line of output plus a progress bar at the
    bottom; otherwise every message is printed on its own line. Exceptions
    raised by tasks are collected in ``errors`` and abort the pool.
    """

    def __init__(
        self,
        num_workers: int,
        num_tasks: int,
        force_not_terminal: bool = False,
        stream: Optional[TextIO] = None,
    ):
        if num_workers < 1:
            raise ValueError("a pool needs at least one worker")
        if num_tasks < 0:
            raise ValueError("number of tasks cannot be negative")
        self.num_workers = num_workers
        self.num_tasks = num_tasks
        self.force_not_terminal = force_not_terminal
        self.is_aborted = False
        self.errors: list[Exception] = []
        self._stream = stream
        self._out: TextIO = stream if stream is not None else sys.stdout
        self._tasks: queue.Queue = queue.Queue()
        self._counter = itertools.count()
        self._added = 0
        self._lock = threading.Lock()
        self._messages = [""] * (num_tasks + 1)
        self._finished = 0
        self._terminal = False
        self._writer: Optional[_LiveWriter] = None
        self._started = False
        self._done = threading.Event()

    def add(self, task: Task) -> None:
        """Queue a task; at most ``num_tasks`` tasks can be added."""
        with self._lock:
            if self._added >= self.num_tasks:
                raise ValueError(f"pool accepts at most {self.num_tasks} tasks")
            self._added += 1
            index = next(self._counter)
        self._tasks.put((index, task))

    def start(self) -> None:
        """Start the workers; returns at once."""
        if self._started:
            raise RuntimeError("pool already started")
        self._started = True
        self._out = self._stream if self._stream is not None else sys.stdout
        self._terminal = not self.force_not_terminal and _is_terminal(self._out)
        if self._terminal:
            self._writer = _LiveWriter(self._out)
            self._show(self.num_tasks, make_progress_bar(0, self.num_tasks))
        for _ in range(self.num_workers):
            threading.Thread(target=self._work, daemon=True).start()
        threading.Thread(target=self._finish, daemon=True).start()

    def wait(self) -> None:
        """Block until every added task has been handled."""
        if not self._started:
            raise RuntimeError("pool was not started")
        self._done.wait()

    def _abort(self) -> None:
        self.is_aborted = True

    def _work(self) -> None:
        while True:
            item = self._tasks.get()
            try:
                if item is None:
                    return
                index, task = item
                if not self.is_aborted:
                    try:
                        task.run(functools.partial(self._show, index), self._abort)
                    except Exception as exc:
                        with self._lock:
                            self.errors.append(exc)
                        self._abort()
                if self._terminal:
                    with self._lock:
                        self._finished += 1
                        self._render(
                            self.num_tasks,
                            make_progress_bar(self._finished, self.num_tasks),
                        )
            finally:
                self._tasks.task_done()

    def _finish(self) -> None:
        self._tasks.join()
        with self._lock:
            if self._writer is not None:
                self._writer.stop()
        for _ in range(self.num_workers):
            self._tasks.put(None)
        self._done.set()

    def _show(self, index: int, body: str) -> None:
        with self._lock:
            self._render(index, body)

    def _render(self, index: int, body: str) -> None:
        if self._terminal and self._writer is not None:
            self._messages[index] = body
            self._writer.update("\n".join(line for line in self._messages if line))
        else:
            self._out.write(f"{body}\n")
            self._out.flush()


def make_progress_bar(low: int, high: int) -> str:
    """Return a 30-character bar showing ``low`` out of ``high`` done."""
    dots = _PROGRESS_BAR_LENGTH * low // high
    return f"[{'#' * dots}{'-' * (_PROGRESS_BAR_LENGTH - dots)}] ({low} / {high})"