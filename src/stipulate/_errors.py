"""Exception hierarchy for contract failures."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stipulate._hooks import FailureRecord


class StipulateError(Exception):
    """Base class for everything raised by stipulate itself."""


class ContractConfigurationError(StipulateError):
    """
    A contract was attached in a way that can never be checked.

    Raised when a named predicate cannot be found, when the resolved value is
    not callable, or when a synchronous check receives an awaitable from its
    predicate. These are programming errors and are never reported to hooks.
    """


class ContractViolation(StipulateError):
    """
    A predicate returned a falsy value.

    Attributes:
        message: Human readable reason (explicit reason or predicate source)
        arguments: Positional values the predicate was evaluated with
        kwargs: Keyword arguments of the call
        operation: Qualified name of the wrapped operation
        record: The FailureRecord that was reported to the hooks
    """

    kind = "contract"

    def __init__(
        self,
        message: str,
        arguments: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        operation: str | None = None,
        record: FailureRecord | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.arguments = tuple(arguments)
        self.kwargs = dict(kwargs or {})
        self.operation = operation
        self.record = record

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, arguments={self.arguments!r})"


class PreconditionFailure(ContractViolation):
    """The precondition did not hold; the operation was never run."""

    kind = "precondition"


class PostconditionFailure(ContractViolation):
    """The postcondition did not hold for the operation's result."""

    kind = "postcondition"
