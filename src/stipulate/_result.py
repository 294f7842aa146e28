"""Classification of operation results into immediate and pending values."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic

from stipulate._types import T


@dataclass(frozen=True)
class Immediate(Generic[T]):
    """A result that is already available."""

    value: T


@dataclass(frozen=True)
class Pending(Generic[T]):
    """A result that becomes available once ``awaitable`` settles."""

    awaitable: Awaitable[T]


async def _settled(value: T) -> T:
    return value


def is_pending(result: Any) -> bool:
    """Duck-typed check: anything awaitable is a pending result."""
    return inspect.isawaitable(result)


def classify_result(
    result: Any, is_async: bool | None = None
) -> Immediate[Any] | Pending[Any]:
    """
    Tag an operation result as Immediate or Pending.

    Args:
        result: Whatever the wrapped operation returned
        is_async: Explicit override. True routes a plain value through the
            pending path (wrapped in an already-settled coroutine); False
            treats even an awaitable as a plain value. None detects it.

    Example:
        classify_result(5)                    # Immediate(value=5)
        classify_result(fetch())              # Pending(awaitable=<coroutine>)
        classify_result(5, is_async=True)     # Pending(awaitable=<coroutine>)
    """
    if is_async is None:
        is_async = is_pending(result)

    if not is_async:
        return Immediate(result)
    if not is_pending(result):
        return Pending(_settled(result))
    return Pending(result)
