"""Time-boxed lookups: run calls on worker threads and treat failures as absent.

A lookup that raises or overruns its timeout yields its default value and a
warning; it never propagates to the caller or to sibling lookups. Worker
threads that overrun are abandoned rather than joined.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceTask:
    """One named lookup: a zero-argument call, its timeout and its absent value."""

    call: Callable[[], Any]
    timeout: float
    default: Any = None


def _await_or_absent(name: str, future: Future, timeout: float, default: Any) -> Any:
    try:
        return future.result(timeout=max(timeout, 0.0))
    except FutureTimeoutError:
        future.cancel()
        LOGGER.warning("Source %s timed out after %.1fs", name, timeout)
    except Exception as exc:  # any failure means "source absent"
        LOGGER.warning("Source %s failed: %s", name, exc)
    return default


def fetch_or_absent(call: Callable[[], T], timeout: float, default: T | None = None, name: str = "lookup") -> T | None:
    """Run ``call`` with a timeout, returning ``default`` on timeout or error."""
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"fetch-{name}")
    try:
        future = executor.submit(call)
        return _await_or_absent(name, future, timeout, default)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def gather_sources(tasks: Mapping[str, SourceTask]) -> dict[str, Any]:
    """Run all tasks concurrently; return each result (or default) keyed by name.

    Every task's deadline is measured from the moment the batch is launched.
    """
    if not tasks:
        return {}

    executor = ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="source")
    try:
        started = time.monotonic()
        futures = {name: executor.submit(task.call) for name, task in tasks.items()}

        results: dict[str, Any] = {}
        for name, task in tasks.items():
            remaining = task.timeout - (time.monotonic() - started)
            results[name] = _await_or_absent(name, futures[name], remaining, task.default)
        return results
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
