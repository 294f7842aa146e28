"""
Stipulate - Preconditions & Postconditions for Python callables

Attach design-by-contract checks to functions and methods. Predicates can
be callables or names looked up on the instance that owns the method, and
postconditions work the same way for plain and awaitable results.

Decorators:
    before / pre  = check the arguments before the operation runs
    after / post  = check the result (and arguments) once it is available

Example:
    from stipulate import after, before

    class Account:
        def __init__(self, balance):
            self.balance = balance

        def has_funds(self, amount):
            return amount <= self.balance

        @before(lambda amount: amount > 0, "amount must be positive")
        @before("has_funds", "insufficient funds")
        @after(lambda result, amount: result >= 0)
        def withdraw(self, amount):
            self.balance -= amount
            return self.balance

    Account(10).withdraw(20)  # raises PreconditionFailure("insufficient funds")
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    # Core
    "before",
    "after",
    "pre",
    "post",
    "Contract",
    "ContractedOperation",
    "ContractOptions",
    # Resolution
    "PredicateRegistry",
    "resolve_predicate",
    "bind_to_context",
    "describe_predicate",
    # Results
    "Immediate",
    "Pending",
    "classify_result",
    "is_pending",
    # Failures
    "get_reason",
    "construct_failure",
    "StipulateError",
    "ContractConfigurationError",
    "ContractViolation",
    "PreconditionFailure",
    "PostconditionFailure",
    # Hooks
    "FailureHook",
    "FailureRecord",
    "PrintHook",
    "LoggingHook",
    "OpenTelemetryHook",
    # Configuration
    "ContractConfig",
    "get_config",
    "use_contracts",
    # Introspection
    "contracts_of",
    "explain",
]

from stipulate._config import ContractConfig, get_config, use_contracts
from stipulate._contracts import (
    Contract,
    ContractedOperation,
    after,
    before,
    contracts_of,
    explain,
    post,
    pre,
)
from stipulate._errors import (
    ContractConfigurationError,
    ContractViolation,
    PostconditionFailure,
    PreconditionFailure,
    StipulateError,
)
from stipulate._failure import construct_failure, get_reason
from stipulate._hooks import (
    FailureHook,
    FailureRecord,
    LoggingHook,
    OpenTelemetryHook,
    PrintHook,
)
from stipulate._registry import PredicateRegistry
from stipulate._resolve import bind_to_context, describe_predicate, resolve_predicate
from stipulate._result import Immediate, Pending, classify_result, is_pending
from stipulate._types import ContractOptions
