"""Explicit name-to-predicate lookup tables."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, overload

from stipulate._errors import ContractConfigurationError


class PredicateRegistry:
    """
    Registry for named predicates.

    Pass a registry as ``resolver=`` to ``before``/``after`` to resolve
    predicate names against it instead of against attributes of the owning
    instance. Registered functions whose first parameter is ``self`` receive
    the owning instance.

    Example:
        checks = PredicateRegistry()

        @checks.predicate
        def is_positive(n):
            return n > 0

        @checks.predicate(name="within_limit")
        def _limit(self, result, amount):
            return result <= self.limit

        class Account:
            limit = 100

            @after("within_limit", resolver=checks)
            def deposit(self, amount):
                ...
    """

    def __init__(self) -> None:
        self._predicates: dict[str, Callable[..., Any]] = {}

    @overload
    def predicate(self, fn: Callable[..., Any]) -> Callable[..., Any]: ...

    @overload
    def predicate(
        self, fn: None = None, *, name: str | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]: ...

    def predicate(
        self, fn: Callable[..., Any] | None = None, *, name: str | None = None
    ) -> Any:
        """
        Decorator to register a predicate under its own name (or ``name``).

        Returns the function unchanged so it stays usable on its own.
        """

        def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
            self.register(name or f.__name__, f)
            return f

        if fn is not None:
            return decorator(fn)
        return decorator

    def register(self, name: str, fn: Callable[..., Any]) -> None:
        """Register ``fn`` as the predicate called ``name``."""
        if not callable(fn):
            raise ContractConfigurationError(
                f"Cannot register non-callable {fn!r} as predicate {name!r}"
            )
        if name in self._predicates:
            raise ContractConfigurationError(
                f"Predicate {name!r} is already registered"
            )
        self._predicates[name] = fn

    def get(self, name: str) -> Callable[..., Any] | None:
        return self._predicates.get(name)

    def names(self) -> list[str]:
        return sorted(self._predicates)

    def __call__(self, ctx: Any, name: str) -> Callable[..., Any] | None:
        """
        Resolver hook: look ``name`` up, ignoring ``ctx``.

        The registry itself is context-free. Registered functions whose first
        parameter is ``self`` are bound to ``ctx`` afterwards by
        ``bind_to_context``.
        """
        return self._predicates.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._predicates

    def __len__(self) -> int:
        return len(self._predicates)

    def __iter__(self) -> Iterator[str]:
        return iter(self._predicates)

    def __repr__(self) -> str:
        return f"PredicateRegistry({', '.join(self.names())})"
