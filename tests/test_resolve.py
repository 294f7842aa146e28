"""Tests for predicate resolution, context binding, result classification and the registry."""

from __future__ import annotations

import asyncio

import pytest

from stipulate import (
    ContractConfigurationError,
    Immediate,
    Pending,
    PostconditionFailure,
    PreconditionFailure,
    PredicateRegistry,
    after,
    before,
    bind_to_context,
    classify_result,
    describe_predicate,
    is_pending,
    resolve_predicate,
    use_contracts,
)
from stipulate._resolve import call_predicate


@pytest.fixture(autouse=True)
def quiet_contracts():
    with use_contracts(hooks=()):
        yield


class Host:
    threshold = 3

    def above(self, n):
        return n > self.threshold

    not_callable = 7


# ---------------------------------------------------------------------------
# resolve_predicate
# ---------------------------------------------------------------------------


class TestResolvePredicate:
    def test_callable_used_directly(self):
        def check(x):
            return x

        assert resolve_predicate(check) is check

    def test_name_resolved_on_context(self):
        host = Host()
        predicate = resolve_predicate("above", host)
        assert predicate(5) is True
        assert predicate(2) is False

    def test_name_resolved_fresh_each_time(self):
        host = Host()
        assert resolve_predicate("above", host)(4) is True
        host.threshold = 10
        assert resolve_predicate("above", host)(4) is False

    def test_missing_name(self):
        with pytest.raises(ContractConfigurationError, match="'missing'"):
            resolve_predicate("missing", Host())

    def test_not_callable(self):
        with pytest.raises(ContractConfigurationError, match="not callable"):
            resolve_predicate("not_callable", Host())

    def test_name_without_context(self):
        with pytest.raises(ContractConfigurationError):
            resolve_predicate("above")

    def test_mapping_resolver(self):
        predicate = resolve_predicate("even", None, {"even": lambda n: n % 2 == 0})
        assert predicate(4) is True

    def test_callable_resolver_receives_context(self):
        seen = []

        def resolver(ctx, name):
            seen.append((ctx, name))
            return lambda n: True

        host = Host()
        resolve_predicate("anything", host, resolver)
        assert seen == [(host, "anything")]

    def test_resolved_self_function_is_bound(self):
        def uses_host(self, n):
            return n > self.threshold

        predicate = resolve_predicate("check", Host(), {"check": uses_host})
        assert predicate(4) is True


# ---------------------------------------------------------------------------
# bind_to_context
# ---------------------------------------------------------------------------


class TestBindToContext:
    def test_self_function_bound(self):
        def check(self, n):
            return n > self.threshold

        bound = bind_to_context(check, Host())
        assert bound(4) is True
        assert bound.__func__ is check

    def test_closure_unchanged(self):
        limit = 2

        def check(n):
            return n > limit

        assert bind_to_context(check, Host()) is check

    def test_lambda_unchanged(self):
        check = lambda n: n > 0  # noqa: E731
        assert bind_to_context(check, Host()) is check

    def test_bound_method_unchanged(self):
        host = Host()
        method = host.above
        assert bind_to_context(method, Host()) is method

    def test_no_context(self):
        def check(self, n):
            return True

        assert bind_to_context(check, None) is check


# ---------------------------------------------------------------------------
# call_predicate
# ---------------------------------------------------------------------------


class TestCallPredicate:
    def test_extra_positional_values_dropped(self):
        assert call_predicate(lambda result: result, (1, 2, 3), {}) == 1

    def test_var_positional_receives_all(self):
        assert call_predicate(lambda *values: values, (1, 2, 3), {}) == (1, 2, 3)

    def test_unknown_keywords_dropped(self):
        assert call_predicate(lambda a: a, (1,), {"other": 2}) == 1

    def test_keyword_not_repeated_for_filled_positional(self):
        assert call_predicate(lambda a, b: (a, b), (1, 2), {"b": 3}) == (1, 2)

    def test_keyword_fills_missing_positional(self):
        assert call_predicate(lambda r, amount: (r, amount), (1,), {"amount": 5}) == (
            1,
            5,
        )

    def test_var_keyword_receives_all(self):
        assert call_predicate(lambda **kw: kw, (), {"a": 1}) == {"a": 1}

    def test_builtin_without_signature(self):
        assert call_predicate(bool, (1,), {}) is True


# ---------------------------------------------------------------------------
# describe_predicate
# ---------------------------------------------------------------------------


class TestDescribePredicate:
    def test_name(self):
        assert describe_predicate("is_valid") == "is_valid"

    def test_lambda_source(self):
        check = lambda value: value is not None  # noqa: E731
        assert describe_predicate(check) == "lambda value: value is not None"

    def test_lambda_inside_call(self):
        pair = [lambda a, b: a < b, 1]
        assert describe_predicate(pair[0]) == "lambda a, b: a < b"

    def test_lambdas_sharing_a_line(self):
        low, high = (lambda a: a > 0), (lambda r: r < 10)
        assert describe_predicate(low) == "lambda a: a > 0"
        assert describe_predicate(high) == "lambda r: r < 10"

    def test_lambdas_with_same_parameters_on_one_line(self):
        first, second = (lambda a: a > 0), (lambda a: a * 5)
        assert describe_predicate(first) == "lambda a: a > 0"
        assert describe_predicate(second) == "lambda a: a * 5"

    def test_nested_lambda(self):
        outer = lambda a: (lambda b: b + a)  # noqa: E731
        assert describe_predicate(outer) == "lambda a: (lambda b: b + a)"
        assert describe_predicate(outer(1)) == "lambda b: b + a"

    def test_function_qualname(self):
        assert describe_predicate(Host.above) == "Host.above"

    def test_bound_method_qualname(self):
        assert describe_predicate(Host().above) == "Host.above"

    def test_callable_object_repr(self):
        class Checker:
            def __call__(self, x):
                return True

            def __repr__(self):
                return "Checker()"

        assert describe_predicate(Checker()) == "Checker()"


# ---------------------------------------------------------------------------
# classify_result
# ---------------------------------------------------------------------------


class TestClassifyResult:
    def test_plain_values_are_immediate(self):
        for value in (None, 0, "text", [1], {"then": 1}):
            assert classify_result(value) == Immediate(value)

    def test_coroutine_is_pending(self):
        async def work():
            return 1

        coro = work()
        classified = classify_result(coro)
        assert isinstance(classified, Pending)
        assert classified.awaitable is coro
        assert asyncio.run(coro) == 1

    def test_custom_awaitable_is_pending(self):
        class Deferred:
            def __await__(self):
                return (yield from asyncio.sleep(0, result=7).__await__())

        assert is_pending(Deferred())
        assert isinstance(classify_result(Deferred()), Pending)

    def test_forced_async_wraps_value(self):
        classified = classify_result(5, is_async=True)
        assert isinstance(classified, Pending)
        assert asyncio.run(classified.awaitable) == 5

    def test_forced_sync_keeps_awaitable_as_value(self):
        async def work():
            return 1

        coro = work()
        assert classify_result(coro, is_async=False) == Immediate(coro)
        coro.close()


# ---------------------------------------------------------------------------
# PredicateRegistry
# ---------------------------------------------------------------------------


checks = PredicateRegistry()


@checks.predicate
def is_positive(result):
    return result > 0


@checks.predicate(name="within_limit")
def _within_limit(self, result, amount):
    return result <= self.limit


class Wallet:
    def __init__(self, limit):
        self.limit = limit
        self.total = 0

    @after("is_positive", resolver=checks)
    def spend(self, amount):
        self.total -= amount
        return self.total

    @after("within_limit", "over limit", resolver=checks)
    def add(self, amount):
        self.total += amount
        return self.total


class TestPredicateRegistry:
    def test_registration(self):
        assert "is_positive" in checks
        assert "within_limit" in checks
        assert checks.names() == ["is_positive", "within_limit"]
        assert len(checks) == 2
        assert checks.get("is_positive") is is_positive

    def test_lookup_ignores_context(self):
        assert checks(None, "within_limit") is _within_limit
        assert checks(Wallet(limit=1), "within_limit") is _within_limit
        assert checks(Wallet(limit=1), "missing") is None

    def test_decorator_returns_function(self):
        assert is_positive(3) is True

    def test_duplicate_rejected(self):
        registry = PredicateRegistry()
        registry.register("x", lambda: True)
        with pytest.raises(ContractConfigurationError):
            registry.register("x", lambda: False)

    def test_non_callable_rejected(self):
        with pytest.raises(ContractConfigurationError):
            PredicateRegistry().register("x", 1)

    def test_resolver_for_methods(self):
        wallet = Wallet(limit=10)
        assert wallet.add(5) == 5

        with pytest.raises(PostconditionFailure) as exc_info:
            wallet.add(10)
        assert exc_info.value.message == "over limit"
        assert exc_info.value.arguments == (15, 10)

    def test_registry_predicate_ignores_extra_args(self):
        wallet = Wallet(limit=10)
        with pytest.raises(PostconditionFailure) as exc_info:
            wallet.spend(1)
        assert exc_info.value.message == "is_positive"

    def test_registry_on_free_function(self):
        @before("is_positive", resolver=checks)
        def reciprocal(x):
            return 1 / x

        assert reciprocal(2) == 0.5
        with pytest.raises(PreconditionFailure):
            reciprocal(-2)

    def test_unknown_name_in_registry(self):
        @before("nope", resolver=checks)
        def op(x):
            return x

        with pytest.raises(ContractConfigurationError):
            op(1)

    def test_repr(self):
        assert repr(checks) == "PredicateRegistry(is_positive, within_limit)"
