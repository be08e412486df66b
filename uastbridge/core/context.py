"""Deadlines and cancellation for outgoing calls.

A Context is passed explicitly to every ``*_context`` execution method.
Derived contexts (``with_timeout``, ``with_cancel``) are canceled together
with their parent and hold a registration on it until they are canceled
themselves, so use them as context managers:

    with ctx.with_timeout(5.0) as call_ctx:
        resp = await call_ctx.run(session.v2.parse(req))
"""

from __future__ import annotations

import asyncio
import inspect
import threading
import time
from collections.abc import Awaitable
from typing import TypeVar

from uastbridge.core.exceptions import CanceledError, ContextError, DeadlineExceededError

T = TypeVar("T")


class Context:
    """Carries an optional deadline and a cancellation signal."""

    def __init__(self, deadline: float | None = None, parent: Context | None = None) -> None:
        # Deadlines are absolute time.monotonic() values.
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline
        self._parent = parent
        self._lock = threading.Lock()
        self._err: ContextError | None = None
        self._children: set[Context] = set()
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = []

        if parent is not None:
            parent._attach(self)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> ContextError | None:
        """Why the context is done, or None while it is still live."""
        if self._err is None and self._deadline is not None and time.monotonic() >= self._deadline:
            self._finish(DeadlineExceededError())
        return self._err

    def cancel(self) -> None:
        """Cancel this context and all contexts derived from it. Thread-safe."""
        self._finish(CanceledError())

    def with_timeout(self, timeout: float) -> Context:
        """Derive a context that expires after ``timeout`` seconds."""
        return Context(deadline=time.monotonic() + timeout, parent=self)

    def with_cancel(self) -> Context:
        """Derive a context that can be canceled on its own."""
        return Context(parent=self)

    def __enter__(self) -> Context:
        return self

    def __exit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        self.cancel()

    async def run(self, aw: Awaitable[T]) -> T:
        """Await ``aw`` unless the context is canceled or expires first.

        The in-flight call is canceled as soon as the context is done, and the
        ContextError is raised in its place.
        """
        err = self.error()
        if err is not None:
            if inspect.iscoroutine(aw):
                aw.close()
            raise err

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(aw)
        waiter: asyncio.Future[None] = loop.create_future()
        with self._lock:
            if self._err is None:
                self._waiters.append((loop, waiter))
            else:
                waiter.set_result(None)

        try:
            done, _ = await asyncio.wait(
                {task, waiter}, timeout=self.remaining(), return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            with self._lock:
                if (loop, waiter) in self._waiters:
                    self._waiters.remove((loop, waiter))
            if not waiter.done():
                waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        if not task.cancelled():
            task.exception()
        if not done:
            # asyncio.wait may wake up within clock resolution of the deadline
            self._finish(DeadlineExceededError())
        raise self._err or DeadlineExceededError()

    def _attach(self, child: Context) -> None:
        with self._lock:
            err = self._err
            if err is None:
                self._children.add(child)
        if err is not None:
            child._finish(err)

    def _detach(self, child: Context) -> None:
        with self._lock:
            self._children.discard(child)

    def _finish(self, err: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            children = list(self._children)
            waiters = self._waiters
            self._children = set()
            self._waiters = []

        for child in children:
            child._finish(err)
        for loop, waiter in waiters:
            loop.call_soon_threadsafe(_wake, waiter)
        if self._parent is not None:
            self._parent._detach(self)


def _wake(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)


def background() -> Context:
    """A context that is never canceled and has no deadline."""
    return Context()
