"""Scoped configuration for contract checking."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import Any

from stipulate._hooks import FailureHook, LoggingHook


def _default_hooks() -> tuple[FailureHook, ...]:
    return (LoggingHook(stack_info=True),)


@dataclass(frozen=True)
class ContractConfig:
    """
    Configuration for contract checking.

    Attributes:
        enabled: If False, wrapped operations run without evaluating any
            predicate
        check_preconditions: Evaluate preconditions (ignored when disabled)
        check_postconditions: Evaluate postconditions (ignored when disabled)
        hooks: Hooks that receive a FailureRecord for every failure
    """

    enabled: bool = True
    check_preconditions: bool = True
    check_postconditions: bool = True
    hooks: tuple[FailureHook, ...] = field(default_factory=_default_hooks)


_contract_config: ContextVar[ContractConfig] = ContextVar(
    "contract_config", default=ContractConfig()
)


def get_config() -> ContractConfig:
    """Return the configuration active in the current context."""
    return _contract_config.get()


@contextmanager
def use_contracts(config: ContractConfig | None = None, **overrides: Any):
    """
    Context manager to scope a contract configuration.

    Args:
        config: Configuration to activate. Defaults to the active one.
        **overrides: Fields replaced on top of ``config``

    Example:
        # Collect failures in a list instead of logging them
        with use_contracts(hooks=(collector,)):
            account.withdraw(10)

        # Turn checking off for a hot loop
        with use_contracts(enabled=False):
            for order in orders:
                process(order)
    """
    base = config or _contract_config.get()
    if "hooks" in overrides:
        overrides["hooks"] = tuple(overrides["hooks"])
    token = _contract_config.set(replace(base, **overrides))
    try:
        yield _contract_config.get()
    finally:
        _contract_config.reset(token)
