"""Precondition and postcondition wrappers."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from stipulate._config import ContractConfig, get_config
from stipulate._errors import ContractConfigurationError, ContractViolation
from stipulate._failure import construct_failure, get_reason
from stipulate._resolve import (
    bind_operation,
    call_predicate,
    describe_predicate,
    resolve_predicate,
)
from stipulate._result import Pending, classify_result
from stipulate._types import (
    POSTCONDITION,
    PRECONDITION,
    ContractOptions,
    PredicateRef,
    Resolver,
    normalize_options,
)


@dataclass(frozen=True)
class Contract:
    """
    A single condition attached to an operation.

    Attributes:
        kind: PRECONDITION or POSTCONDITION
        predicate: Predicate name or callable
        options: Reason and async override
        resolver: Optional lookup used for named predicates
    """

    kind: str
    predicate: PredicateRef
    options: ContractOptions = field(default_factory=ContractOptions)
    resolver: Resolver | None = None

    @property
    def reason(self) -> str:
        return get_reason(self.predicate, self.options)

    def __repr__(self) -> str:
        return f"Contract({self.kind}, {self.reason!r})"


def _is_checked(kind: str, config: ContractConfig) -> bool:
    if not config.enabled:
        return False
    if kind == PRECONDITION:
        return config.check_preconditions
    return config.check_postconditions


def _evaluate(
    predicate: Callable[..., Any],
    values: tuple[Any, ...],
    kwargs: dict[str, Any],
    contract: Contract,
) -> bool:
    """Run a predicate that must answer synchronously."""
    check = call_predicate(predicate, values, kwargs)
    if inspect.isawaitable(check):
        if inspect.iscoroutine(check):
            check.close()
        raise ContractConfigurationError(
            f"{contract.kind.capitalize()} {describe_predicate(contract.predicate)!r} "
            "returned an awaitable but is checked synchronously"
        )
    return bool(check)


class ContractedOperation:
    """
    An operation guarded by a precondition or a postcondition.

    Behaves like the wrapped callable: calling it directly runs without an
    owning context, and as a class attribute it binds to the instance like a
    method, so named predicates are looked up on that instance.

    Example:
        class Account:
            def __init__(self, balance):
                self.balance = balance

            def has_funds(self, amount):
                return amount <= self.balance

            @before("has_funds", "insufficient funds")
            def withdraw(self, amount):
                self.balance -= amount
                return self.balance
    """

    def __init__(self, operation: Any, contract: Contract):
        target = getattr(operation, "__func__", operation)
        if not callable(target):
            raise ContractConfigurationError(
                f"Cannot attach a {contract.kind} to non-callable {operation!r}"
            )
        functools.update_wrapper(self, target, updated=())
        self.operation = operation
        self.contract = contract
        self.is_coroutine_function = inspect.iscoroutinefunction(target)
        if self.is_coroutine_function:
            inspect.markcoroutinefunction(self)

    @property
    def name(self) -> str:
        return getattr(self, "__qualname__", None) or repr(self.operation)

    def _innermost(self) -> Any:
        current: Any = self
        while isinstance(current, ContractedOperation):
            current = current.operation
        return current

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            if owner is None or not isinstance(self._innermost(), classmethod):
                return self
            instance = owner

        def bound(*args: Any, **kwargs: Any) -> Any:
            return self.invoke(instance, *args, **kwargs)

        functools.update_wrapper(bound, self, updated=())
        if self.is_coroutine_function:
            inspect.markcoroutinefunction(bound)
        return bound

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.invoke(None, *args, **kwargs)

    def invoke(self, ctx: Any, /, *args: Any, **kwargs: Any) -> Any:
        """Run the operation against owning context ``ctx`` (None for none)."""
        if not _is_checked(self.contract.kind, get_config()):
            return bind_operation(self.operation, ctx)(*args, **kwargs)
        if self.contract.kind == PRECONDITION:
            return self._invoke_before(ctx, args, kwargs)
        return self._invoke_after(ctx, args, kwargs)

    def _failure(
        self, values: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> ContractViolation:
        contract = self.contract
        return construct_failure(
            contract.reason,
            values,
            kind=contract.kind,
            kwargs=kwargs,
            operation=self.name,
            predicate=describe_predicate(contract.predicate),
        )

    def _invoke_before(
        self, ctx: Any, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> Any:
        contract = self.contract
        predicate = resolve_predicate(contract.predicate, ctx, contract.resolver)

        if not _evaluate(predicate, args, kwargs, contract):
            raise self._failure(args, kwargs)

        return bind_operation(self.operation, ctx)(*args, **kwargs)

    def _invoke_after(
        self, ctx: Any, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> Any:
        contract = self.contract
        predicate = resolve_predicate(contract.predicate, ctx, contract.resolver)
        result = bind_operation(self.operation, ctx)(*args, **kwargs)

        classified = classify_result(result, contract.options.is_async)
        if isinstance(classified, Pending):
            return self._settle(predicate, classified.awaitable, args, kwargs)

        values = (result, *args)
        if not _evaluate(predicate, values, kwargs, contract):
            raise self._failure(values, kwargs)
        return result

    async def _settle(
        self,
        predicate: Callable[..., Any],
        awaitable: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        # Upstream exceptions propagate from here untouched
        value = await awaitable

        check = call_predicate(predicate, (value, *args), kwargs)
        if inspect.isawaitable(check):
            check = await check

        if not check:
            raise self._failure((value, *args), kwargs)
        return value

    def __repr__(self) -> str:
        return f"ContractedOperation({self.name}, {self.contract!r})"


# =============================================================================
# Decorator factories
# =============================================================================


def _contract(
    kind: str,
    predicate: PredicateRef,
    reason: str | ContractOptions | Mapping[str, Any] | None,
    is_async: bool | None,
    resolver: Resolver | None,
) -> Contract:
    if not isinstance(predicate, str) and not callable(predicate):
        raise ContractConfigurationError(
            f"A {kind} must be a predicate name or a callable, "
            f"got {type(predicate).__name__}"
        )
    return Contract(kind, predicate, normalize_options(reason, is_async), resolver)


def before(
    predicate: PredicateRef,
    reason: str | ContractOptions | Mapping[str, Any] | None = None,
    *,
    resolver: Resolver | None = None,
) -> Callable[[Any], ContractedOperation]:
    """
    Attach a precondition to an operation.

    The predicate is called with the operation's arguments before it runs.
    A falsy answer raises PreconditionFailure and the operation is skipped.

    Args:
        predicate: Callable, or name looked up on the owning instance
            (or through ``resolver``)
        reason: Failure message, ContractOptions, or {"reason": ...} mapping.
            Defaults to the predicate's textual form.
        resolver: Mapping or (ctx, name) callable used for named predicates

    Example:
        @before(lambda x: x >= 0, "x must be non-negative")
        def sqrt(x):
            return x ** 0.5

        sqrt(4)   # 2.0
        sqrt(-1)  # raises PreconditionFailure("x must be non-negative")
    """
    contract = _contract(PRECONDITION, predicate, reason, None, resolver)

    def decorator(operation: Any) -> ContractedOperation:
        return ContractedOperation(operation, contract)

    return decorator


def after(
    predicate: PredicateRef,
    reason: str | ContractOptions | Mapping[str, Any] | None = None,
    *,
    is_async: bool | None = None,
    resolver: Resolver | None = None,
) -> Callable[[Any], ContractedOperation]:
    """
    Attach a postcondition to an operation.

    The predicate is called with ``(result, *args, **kwargs)`` once the
    operation has produced its result. When the result is awaitable the
    wrapped call returns a coroutine that awaits it first, so the check (and
    any PostconditionFailure) happens when the caller awaits.

    Args:
        predicate: Callable, or name looked up on the owning instance
            (or through ``resolver``)
        reason: Failure message, ContractOptions, or mapping with
            "reason" / "async" keys
        is_async: Force pending (True) or immediate (False) handling of the
            result instead of detecting it
        resolver: Mapping or (ctx, name) callable used for named predicates

    Example:
        @after(lambda result, items: len(result) == len(items))
        async def fetch_all(items):
            return await asyncio.gather(*map(fetch, items))
    """
    contract = _contract(POSTCONDITION, predicate, reason, is_async, resolver)

    def decorator(operation: Any) -> ContractedOperation:
        return ContractedOperation(operation, contract)

    return decorator


# Short aliases
pre = before
post = after


# =============================================================================
# Introspection
# =============================================================================


def contracts_of(operation: Any) -> list[Contract]:
    """Contracts attached to an operation, outermost wrapper first."""
    found: list[Contract] = []
    current = operation
    while current is not None:
        if isinstance(current, ContractedOperation):
            found.append(current.contract)
            current = current.operation
        else:
            current = getattr(current, "__wrapped__", None)
    return found


def explain(operation: Any, verbose: bool = False) -> str:
    """
    Generate a plain-text description of the contracts on an operation.

    Example:
        >>> print(explain(Account.withdraw))
        Account.withdraw:
          PRE  insufficient funds
          POST lambda result, amount: result >= 0
    """
    name = getattr(operation, "__qualname__", None) or repr(operation)
    contracts = contracts_of(operation)
    if not contracts:
        return f"{name}: no contracts"

    lines = [f"{name}:"]
    for contract in contracts:
        label = "PRE " if contract.kind == PRECONDITION else "POST"
        line = f"  {label} {contract.reason}"
        if verbose:
            details = []
            if isinstance(contract.predicate, str):
                details.append(f"named {contract.predicate!r}")
            if contract.options.is_async is not None:
                details.append(f"async={contract.options.is_async}")
            if contract.resolver is not None:
                details.append(f"resolver={contract.resolver!r}")
            if details:
                line += f" ({', '.join(details)})"
        lines.append(line)
    return "\n".join(lines)
