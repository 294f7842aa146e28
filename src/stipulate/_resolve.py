"""Predicate resolution and binding to the owning context."""

from __future__ import annotations

import ast
import functools
import inspect
import linecache
import types
from collections.abc import Callable, Mapping
from typing import Any

from stipulate._errors import ContractConfigurationError
from stipulate._types import PredicateRef, Resolver


def takes_context(fn: Callable[..., Any]) -> bool:
    """True if fn is a plain function whose first positional parameter is ``self``."""
    if not inspect.isfunction(fn):
        return False
    code = fn.__code__
    return code.co_argcount > 0 and code.co_varnames[0] == "self"


def bind_to_context(fn: Callable[..., Any], ctx: Any) -> Callable[..., Any]:
    """
    Make fn run against the owning context ``ctx``.

    Functions that ask for the context (first parameter ``self``) are bound
    as methods of ctx. Closures, lambdas without ``self``, bound methods and
    callable objects already carry whatever context they need and are
    returned unchanged.
    """
    if ctx is None or not takes_context(fn):
        return fn
    return types.MethodType(fn, ctx)


def bind_operation(operation: Any, ctx: Any) -> Callable[..., Any]:
    """Bind a wrapped operation to ctx through its own descriptor protocol."""
    if ctx is None:
        if isinstance(operation, (staticmethod, classmethod)):
            return operation.__func__
        return operation
    if isinstance(operation, classmethod):
        owner = ctx if isinstance(ctx, type) else type(ctx)
        return operation.__get__(None, owner)
    getter = getattr(type(operation), "__get__", None)
    if getter is None:
        return operation
    return getter(operation, ctx, type(ctx))


def _accepted(fn: Callable[..., Any]) -> tuple[list[str], bool, set[str], bool] | None:
    """Positional names, *args, keyword names and **kwargs of fn (None if unknown)."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    positional: list[str] = []
    keywords: set[str] = set()
    var_positional = var_keyword = False
    for param in signature.parameters.values():
        if param.kind is param.POSITIONAL_ONLY:
            positional.append(param.name)
        elif param.kind is param.POSITIONAL_OR_KEYWORD:
            positional.append(param.name)
            keywords.add(param.name)
        elif param.kind is param.VAR_POSITIONAL:
            var_positional = True
        elif param.kind is param.KEYWORD_ONLY:
            keywords.add(param.name)
        else:
            var_keyword = True
    return positional, var_positional, keywords, var_keyword


def call_predicate(
    predicate: Callable[..., Any], values: tuple[Any, ...], kwargs: dict[str, Any]
) -> Any:
    """
    Call predicate with as many of ``values``/``kwargs`` as it accepts.

    ``lambda result: result > 0`` can guard ``add(a, b)`` without naming
    the arguments it does not care about.
    """
    accepted = _accepted(predicate)
    if accepted is None:
        return predicate(*values, **kwargs)

    positional, var_positional, keywords, var_keyword = accepted
    if not var_positional:
        values = values[: len(positional)]
    filled = set(positional[: len(values)])
    kwargs = {
        key: value
        for key, value in kwargs.items()
        if key not in filled and (var_keyword or key in keywords)
    }
    return predicate(*values, **kwargs)


def _lookup(name: str, ctx: Any, resolver: Resolver | None) -> Any:
    if resolver is not None:
        if isinstance(resolver, Mapping):
            return resolver.get(name)
        return resolver(ctx, name)
    if ctx is None:
        raise ContractConfigurationError(
            f"Predicate {name!r} is given by name but the operation has no "
            "owning context to look it up on"
        )
    return getattr(ctx, name, None)


def resolve_predicate(
    ref: PredicateRef, ctx: Any = None, resolver: Resolver | None = None
) -> Callable[..., Any]:
    """
    Turn a predicate reference into a callable bound to ``ctx``.

    Args:
        ref: Predicate name or callable
        ctx: Owning context (the instance the operation runs on), or None
        resolver: Optional mapping or (ctx, name) callable used for names
            instead of attribute lookup on ctx

    Raises:
        ContractConfigurationError: the name cannot be found or does not
            resolve to a callable
    """
    if isinstance(ref, str):
        found = _lookup(ref, ctx, resolver)
        if found is None:
            raise ContractConfigurationError(
                f"Contract predicate {ref!r} could not be found"
            )
    else:
        found = ref

    if not callable(found):
        raise ContractConfigurationError(
            f"Contract predicate {describe_predicate(ref)!r} is not callable "
            f"(got {type(found).__name__})"
        )

    return bind_to_context(found, ctx)


# =============================================================================
# Textual form
# =============================================================================


@functools.lru_cache(maxsize=32)
def _parse_source(source: str) -> ast.Module | None:
    try:
        return ast.parse(source)
    except SyntaxError:
        return None


def _argument_names(node: ast.Lambda) -> tuple[str, ...]:
    args = node.args
    return tuple(arg.arg for arg in (*args.posonlyargs, *args.args, *args.kwonlyargs))


def _contains(node: ast.expr, position: tuple[int, int]) -> bool:
    start = (node.lineno, node.col_offset)
    end = (node.end_lineno, node.end_col_offset)
    return start <= position <= end


def _lambda_source(fn: types.FunctionType) -> str | None:
    """Source text of the lambda expression fn was compiled from."""
    try:
        filename = inspect.getsourcefile(fn)
    except TypeError:
        return None
    if not filename:
        return None

    linecache.checkcache(filename)
    source = "".join(linecache.getlines(filename, fn.__globals__))
    tree = _parse_source(source)
    if tree is None:
        return None

    code = fn.__code__
    names = code.co_varnames[: code.co_argcount + code.co_kwonlyargcount]
    candidates = [
        node
        for node in ast.walk(tree)
        if isinstance(node, ast.Lambda)
        and node.lineno == code.co_firstlineno
        and _argument_names(node) == names
    ]
    if not candidates:
        return None

    # Lambdas with the same parameters can share a line; the one enclosing
    # fn's instructions wins, innermost first
    positions = [
        (line, col)
        for line, _, col, _ in code.co_positions()
        if line is not None and col is not None
    ]
    node = max(
        candidates,
        key=lambda c: (
            sum(_contains(c, p) for p in positions),
            c.lineno - c.end_lineno,
            c.col_offset - c.end_col_offset,
        ),
    )
    segment = ast.get_source_segment(source, node)
    return " ".join(segment.split()) if segment else None


def describe_predicate(ref: Any) -> str:
    """
    Human readable textual form of a predicate reference.

    Names are returned as-is, lambdas as their source expression, named
    functions and methods as their qualified name, anything else as repr().
    """
    if isinstance(ref, str):
        return ref

    fn = getattr(ref, "__func__", ref)
    if inspect.isfunction(fn):
        if fn.__name__ == "<lambda>":
            return _lambda_source(fn) or repr(fn)
        return fn.__qualname__
    return repr(ref)
