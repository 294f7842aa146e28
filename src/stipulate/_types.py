"""Shared type aliases and the options record."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from stipulate._errors import ContractConfigurationError

T = TypeVar("T")

PredicateRef = str | Callable[..., Any]
"""A predicate given either by name or as a callable."""

Resolver = Callable[[Any, str], Any] | Mapping[str, Callable[..., Any]]
"""Looks up a named predicate: a mapping of names or a (ctx, name) callable."""

PRECONDITION = "precondition"
POSTCONDITION = "postcondition"


@dataclass(frozen=True)
class ContractOptions:
    """
    Options attached to a single contract.

    Attributes:
        reason: Message used when the predicate fails. Defaults to the
            predicate's textual form.
        is_async: Force the result to be treated as pending (True) or
            immediate (False). None means detect it from the result.
    """

    reason: str | None = None
    is_async: bool | None = None


def normalize_options(
    reason: str | ContractOptions | Mapping[str, Any] | None = None,
    is_async: bool | None = None,
) -> ContractOptions:
    """
    Fold every accepted form of reason/options into a ContractOptions.

    Accepts None, a literal message, a ContractOptions, or a mapping with
    "reason" and "async" keys. An explicit is_async keyword wins over the
    value carried by the record.
    """
    if reason is None or isinstance(reason, str):
        options = ContractOptions(reason=reason)
    elif isinstance(reason, ContractOptions):
        options = reason
    elif isinstance(reason, Mapping):
        unknown = set(reason) - {"reason", "async"}
        if unknown:
            raise ContractConfigurationError(
                f"Unknown contract option(s): {', '.join(sorted(unknown))}"
            )
        options = ContractOptions(
            reason=reason.get("reason"), is_async=reason.get("async")
        )
    else:
        raise ContractConfigurationError(
            f"reason must be a string, ContractOptions or mapping, got {type(reason).__name__}"
        )

    if options.reason is not None and not isinstance(options.reason, str):
        raise ContractConfigurationError(
            f"reason must be a string, got {type(options.reason).__name__}"
        )

    if is_async is not None:
        options = ContractOptions(reason=options.reason, is_async=is_async)
    return options
