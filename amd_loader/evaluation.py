"""
Host evaluation of fetched units.

Units are Python source text. A unit that calls ``define`` is executed once
so its definitions register; a unit without ``define`` calls is a plain
CommonJS module whose body becomes the factory.
"""

import ast
import logging
from collections.abc import Callable
from types import CodeType
from typing import Any

from .errors import ModuleLoadError
from .sources import ModuleSource

logger = logging.getLogger(__name__)


class CompiledUnit:
    """A parsed and compiled unit plus what static analysis found in it."""

    def __init__(self, source: ModuleSource):
        self.source = source
        filename = source.uri or source.id
        try:
            tree = ast.parse(source.text, filename=filename)
            self.code: CodeType = compile(tree, filename, "exec")
        except SyntaxError as e:
            raise ModuleLoadError(
                f"Source of module '{source.id}' does not compile: {e}",
                module_id=source.id,
            ) from e

        self.calls_define = any(_is_call_to(node, "define") for node in ast.walk(tree))
        self.required_ids = _literal_requires(tree)

    @property
    def is_commonjs(self) -> bool:
        return not self.calls_define


def _is_call_to(node: ast.AST, name: str) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == name
    )


def _literal_requires(tree: ast.AST) -> tuple[str, ...]:
    """Ids passed as a single string literal to ``require(...)``, in order."""
    found: list[str] = []
    for node in ast.walk(tree):
        if (
            _is_call_to(node, "require")
            and len(node.args) == 1
            and not node.keywords
            and isinstance(node.args[0], ast.Constant)
            and isinstance(node.args[0].value, str)
            and node.args[0].value
            and node.args[0].value not in found
        ):
            found.append(node.args[0].value)
    return tuple(found)


def execute_unit(unit: CompiledUnit, scope: dict[str, Any]) -> None:
    """
    Run an AMD unit's top-level code in ``scope``.

    Raises:
        ModuleLoadError: The unit's top-level code raised
    """
    scope.setdefault("__name__", unit.source.id)
    scope.setdefault("__file__", unit.source.uri)
    try:
        exec(unit.code, scope)  # noqa: S102
    except ModuleLoadError:
        raise
    except Exception as e:
        raise ModuleLoadError(
            f"Evaluating source of module '{unit.source.id}' failed: {type(e).__name__}: {e}",
            module_id=unit.source.id,
        ) from e


def commonjs_factory(unit: CompiledUnit) -> Callable[[Any, Any, Any], None]:
    """Wrap a CommonJS unit body as a ``(require, exports, module)`` factory."""

    def factory(require, exports, module):
        namespace = {
            "__name__": module.id,
            "__file__": unit.source.uri,
            "require": require,
            "exports": exports,
            "module": module,
        }
        exec(unit.code, namespace)  # noqa: S102

    factory.__qualname__ = f"commonjs:{unit.source.id}"
    return factory
