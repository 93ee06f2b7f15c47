"""
Installs ``require`` and ``define`` into a caller-supplied scope.

The scope may be a mapping (a module namespace, an ``exec`` globals dict)
or any object accepting attributes. Binding returns a function that
restores whatever the scope held before.
"""

import logging
from collections.abc import Callable
from collections.abc import MutableMapping
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    from .loader import Loader

logger = logging.getLogger(__name__)

_MISSING = object()
BOUND_NAMES = ("require", "define")


def make_entry_points(loader: "Loader") -> dict[str, Callable[..., Any]]:
    """Build the ``require``/``define`` pair forwarding to ``loader``."""

    def require(*args: Any) -> Any:
        return loader.require(*args)

    def define(*args: Any) -> None:
        loader.define(*args)

    # AMD loaders advertise themselves through define.amd
    define.amd = {}
    return {"require": require, "define": define}


def bind(loader: "Loader", scope: Any) -> Callable[[], None]:
    """
    Bind ``require`` and ``define`` for ``loader`` into ``scope``.

    Args:
        loader: Loader the functions forward to
        scope: Mapping or attribute-bearing object

    Returns:
        Unbind function restoring the previous values
    """
    entry_points = make_entry_points(loader)
    is_mapping = isinstance(scope, MutableMapping)
    previous: dict[str, Any] = {}

    for name, fn in entry_points.items():
        if is_mapping:
            previous[name] = scope.get(name, _MISSING)
            scope[name] = fn
        else:
            previous[name] = getattr(scope, name, _MISSING)
            setattr(scope, name, fn)

    logger.debug(f"Bound require/define into {type(scope).__name__} scope")

    def unbind():
        for name, value in previous.items():
            if is_mapping:
                if value is _MISSING:
                    scope.pop(name, None)
                else:
                    scope[name] = value
            elif value is _MISSING:
                if hasattr(scope, name):
                    delattr(scope, name)
            else:
                setattr(scope, name, value)
        logger.debug(f"Unbound require/define from {type(scope).__name__} scope")

    return unbind
