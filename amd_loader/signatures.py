"""
Canonical shapes for ``define`` and ``require`` calls.

All argument-shape detection lives here. The rest of the loader only sees
the frozen dataclasses produced by ``normalize_define`` and
``normalize_require``:

    define(id, deps, factory)   -> Definition(id, deps, factory)
    define(id, factory)         -> Definition(id, <default deps>, factory)
    define(deps, factory)       -> Definition(None, deps, factory)
    define(factory)             -> Definition(None, <default deps>, factory)
    require("id")               -> LocalRequire("id")
    require([ids], cb, errback) -> TopLevelRequire(ids, cb, errback)
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .errors import InvalidSignatureError
from .ids import PSEUDO_IDS

DEFAULT_DEPENDENCIES = PSEUDO_IDS


@dataclass(frozen=True)
class Definition:
    """Normalized ``define`` call."""

    id: str | None
    deps: tuple[str, ...]
    factory: Any
    uses_default_deps: bool = False


@dataclass(frozen=True)
class LocalRequire:
    """Synchronous ``require(id)``."""

    id: str


@dataclass(frozen=True)
class TopLevelRequire:
    """Asynchronous ``require([ids], callback, errback)``."""

    ids: tuple[str, ...]
    callback: Callable[..., Any] | None = None
    errback: Callable[[BaseException], Any] | None = None


RequireCall = LocalRequire | TopLevelRequire


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def positional_arity(fn: Callable[..., Any]) -> int | None:
    """
    Number of positional arguments ``fn`` accepts.

    Returns:
        The count, or None when the callable takes ``*args`` or its
        signature cannot be inspected
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    count = 0
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


def _check_deps(deps: Any) -> tuple[str, ...]:
    if not all(isinstance(dep, str) and dep for dep in deps):
        raise InvalidSignatureError(
            f"Dependency list must contain non-empty strings, got {list(deps)!r}"
        )
    return tuple(deps)


def normalize_define(*args: Any) -> Definition:
    """
    Resolve the overloaded ``define`` arguments into a Definition.

    Raises:
        InvalidSignatureError: Arguments match none of the supported shapes
    """
    if not 1 <= len(args) <= 3:
        raise InvalidSignatureError(
            f"define() takes 1 to 3 arguments ({len(args)} given)"
        )

    rest = list(args)
    module_id = None
    if isinstance(rest[0], str):
        module_id = rest.pop(0)
        if not module_id:
            raise InvalidSignatureError("define() module id must not be empty")
        if not rest:
            raise InvalidSignatureError(
                f"define('{module_id}') is missing a factory"
            )

    if len(rest) == 2:
        deps, factory = rest
        if not is_sequence(deps):
            raise InvalidSignatureError(
                f"define() dependency list must be a list or tuple, got {type(deps).__name__}"
            )
        return Definition(id=module_id, deps=_check_deps(deps), factory=factory)

    if len(rest) != 1:
        raise InvalidSignatureError(
            "define() arguments must be (id?, deps?, factory)"
        )

    factory = rest[0]
    if not callable(factory):
        return Definition(id=module_id, deps=(), factory=factory)

    arity = positional_arity(factory)
    deps = DEFAULT_DEPENDENCIES if arity is None else DEFAULT_DEPENDENCIES[:arity]
    return Definition(
        id=module_id, deps=tuple(deps), factory=factory, uses_default_deps=True
    )


def normalize_require(*args: Any) -> RequireCall:
    """
    Resolve the overloaded ``require`` arguments.

    A string first argument is a local synchronous require; a sequence is a
    top-level require with an optional callback and errback.

    Raises:
        InvalidSignatureError: Arguments match none of the supported shapes
    """
    if not args:
        raise InvalidSignatureError("require() takes at least 1 argument (0 given)")

    first = args[0]
    if isinstance(first, str):
        if len(args) != 1:
            raise InvalidSignatureError(
                f"require('{first}') takes no callback; use require([ids], callback)"
            )
        if not first:
            raise InvalidSignatureError("require() module id must not be empty")
        return LocalRequire(id=first)

    if not is_sequence(first):
        raise InvalidSignatureError(
            f"require() expects a module id or a list of ids, got {type(first).__name__}"
        )
    if len(args) > 3:
        raise InvalidSignatureError(
            f"require() takes at most 3 arguments ({len(args)} given)"
        )

    callback = args[1] if len(args) > 1 else None
    errback = args[2] if len(args) > 2 else None
    for name, fn in (("callback", callback), ("errback", errback)):
        if fn is not None and not callable(fn):
            raise InvalidSignatureError(f"require() {name} must be callable")

    return TopLevelRequire(ids=_check_deps(first), callback=callback, errback=errback)
