"""Building and reporting contract failures."""

from __future__ import annotations

from typing import Any

from stipulate._config import get_config
from stipulate._errors import (
    ContractViolation,
    PostconditionFailure,
    PreconditionFailure,
)
from stipulate._hooks import FailureRecord
from stipulate._resolve import describe_predicate
from stipulate._types import POSTCONDITION, PRECONDITION, ContractOptions

_FAILURE_TYPES: dict[str, type[ContractViolation]] = {
    PRECONDITION: PreconditionFailure,
    POSTCONDITION: PostconditionFailure,
}


def get_reason(ref: Any, options: ContractOptions | None = None) -> str:
    """Message for a failed predicate: the explicit reason or the predicate's text."""
    if options is not None and options.reason is not None:
        return options.reason
    return describe_predicate(ref)


def construct_failure(
    message: str,
    args: tuple[Any, ...],
    *,
    kind: str = PRECONDITION,
    kwargs: dict[str, Any] | None = None,
    operation: str | None = None,
    predicate: str | None = None,
) -> ContractViolation:
    """
    Report a failure to the active hooks and return the exception to raise.

    The caller decides how the failure surfaces: raised directly for
    synchronous checks, raised from the returned coroutine for pending ones.
    """
    record = FailureRecord(
        kind=kind,
        message=message,
        args=tuple(args),
        kwargs=dict(kwargs or {}),
        operation=operation,
        predicate=predicate,
    )

    for hook in get_config().hooks:
        hook.on_failure(record)

    error_cls = _FAILURE_TYPES[kind]
    return error_cls(
        message,
        arguments=record.args,
        kwargs=record.kwargs,
        operation=operation,
        record=record,
    )
