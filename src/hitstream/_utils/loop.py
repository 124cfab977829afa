"""Background event loop for running async I/O behind a blocking API."""

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Coroutine, Optional, TypeVar

T = TypeVar("T")


class EventLoopThread:
    """
    Runs an asyncio event loop in a daemon thread.

    Coroutines submitted from any other thread run on that loop and report
    back through concurrent.futures.Future, so a caller can keep a request
    in flight while it does other work and block on it later.

    The loop starts on first submission and stops on stop(); a later
    submission starts a fresh one.

    Example:
        runner = EventLoopThread()
        future = runner.submit(fetch_page())
        ...
        page = future.result()
        runner.stop()
    """

    def __init__(self, name: str = "hitstream-io"):
        self._name = name
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._loop is not None

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._run, args=(loop,), name=self._name, daemon=True
                )
                thread.start()
                self._loop = loop
                self._thread = thread
            return self._loop

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            try:
                _cancel_all_tasks(loop)
            finally:
                loop.close()

    def submit(self, coro: Coroutine[Any, Any, T]) -> "Future[T]":
        """Schedule a coroutine on the loop and return its future."""
        return asyncio.run_coroutine_threadsafe(coro, self._ensure_started())

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the loop and block until it finishes."""
        return self.submit(coro).result()

    def stop(self) -> None:
        """
        Stop the loop and wait for its thread to exit.

        Coroutines still running are cancelled before the loop closes, so
        every future handed out by submit() is resolved and nothing
        waits on it forever.
        """
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None and thread is not threading.current_thread():
            thread.join()


def _cancel_all_tasks(loop: asyncio.AbstractEventLoop) -> None:
    tasks = asyncio.all_tasks(loop)
    if not tasks:
        return
    for task in tasks:
        task.cancel()
    loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
