"""Failure hooks: where contract violations get reported."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

# Optional OpenTelemetry imports - only needed if using OpenTelemetryHook
try:
    from opentelemetry.trace import (
        Status as _Status,
    )
    from opentelemetry.trace import (
        StatusCode as _StatusCode,
    )
    from opentelemetry.trace import (
        get_current_span as _get_current_span,
    )

    _HAS_OPENTELEMETRY = True
except ImportError:
    _HAS_OPENTELEMETRY = False
    _Status = None
    _StatusCode = None
    _get_current_span = None


@dataclass(frozen=True)
class FailureRecord:
    """
    Structured description of a single contract failure.

    Attributes:
        kind: "precondition" or "postcondition"
        message: The reason reported to the caller
        args: Positional values the predicate was evaluated with
        kwargs: Keyword arguments of the call
        operation: Qualified name of the wrapped operation (if known)
        predicate: Textual form of the predicate
    """

    kind: str
    message: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    operation: str | None = None
    predicate: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "args": self.args,
            "kwargs": self.kwargs,
            "operation": self.operation,
            "predicate": self.predicate,
        }


@runtime_checkable
class FailureHook(Protocol):
    """
    Protocol for failure hooks.

    Implement this to send contract failures to logging, metrics, tracing or
    anything else. Hooks are called before the failure is raised.

    Example:
        class CollectingHook:
            def __init__(self):
                self.records = []

            def on_failure(self, record):
                self.records.append(record)
    """

    def on_failure(self, record: FailureRecord) -> None:
        """
        Called once for every precondition or postcondition failure.

        Args:
            record: Structured description of the failure
        """
        ...


# =============================================================================
# Built-in Hooks
# =============================================================================


class PrintHook:
    """
    Simple failure hook that prints to stdout.

    Example:
        with use_contracts(hooks=(PrintHook(),)):
            account.withdraw(500)

        # Output:
        # ✗ precondition Account.withdraw: lambda self, amount: amount <= self.balance | args=(500,)
    """

    def __init__(self, show_args: bool = True):
        self.show_args = show_args

    def on_failure(self, record: FailureRecord) -> None:
        where = f" {record.operation}" if record.operation else ""
        line = f"✗ {record.kind}{where}: {record.message}"
        if self.show_args:
            line += f" | args={record.args!r}"
            if record.kwargs:
                line += f" kwargs={record.kwargs!r}"
        print(line)


class LoggingHook:
    """
    Failure hook that logs to a Python logger.

    The whole record is attached to the log entry as the ``stipulate`` extra
    attribute so structured handlers can pick it up.

    Example:
        import logging
        logger = logging.getLogger("myapp.contracts")

        with use_contracts(hooks=(LoggingHook(logger, stack_info=True),)):
            account.withdraw(500)
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.ERROR,
        stack_info: bool = False,
    ):
        self.logger = logger or logging.getLogger("stipulate")
        self.level = level
        self.stack_info = stack_info

    def on_failure(self, record: FailureRecord) -> None:
        where = f" {record.operation}" if record.operation else ""
        self.logger.log(
            self.level,
            f"[{record.kind.upper()}]{where} failed: {record.message} (args={record.args!r})",
            extra={"stipulate": record.as_dict()},
            stack_info=self.stack_info,
        )


class OpenTelemetryHook:
    """
    Records contract failures on the active OpenTelemetry span.

    Each failure becomes a ``contract.failure`` event on the current span,
    and the span status is set to ERROR unless ``set_status`` is False.

    Requires: pip install opentelemetry-api
    """

    def __init__(
        self,
        *,
        set_status: bool = True,
        include_args: bool = True,
        span_getter: Callable[[], Any] | None = None,
    ):
        if not _HAS_OPENTELEMETRY:
            raise ImportError(
                "OpenTelemetry is not installed. "
                "Install it with: pip install opentelemetry-api"
            )
        self.set_status = set_status
        self.include_args = include_args
        self.span_getter = span_getter or _get_current_span

    def on_failure(self, record: FailureRecord) -> None:
        # Guaranteed non-None because __init__ checks _HAS_OPENTELEMETRY
        assert _Status is not None
        assert _StatusCode is not None

        span = self.span_getter()
        if span is None or not span.is_recording():
            return

        attributes: dict[str, Any] = {
            "stipulate.kind": record.kind,
            "stipulate.message": record.message,
        }
        if record.operation:
            attributes["stipulate.operation"] = record.operation
        if record.predicate:
            attributes["stipulate.predicate"] = record.predicate
        if self.include_args:
            attributes["stipulate.args"] = repr(record.args)

        span.add_event("contract.failure", attributes)
        if self.set_status:
            span.set_status(_Status(_StatusCode.ERROR, record.message))
