"""
Dependency resolution.

Two phases:
- ``ensure_available`` (async) walks the declared dependency graph of the
  requested ids and fetches every id the registry does not know yet. This
  is the only place the loader suspends.
- ``resolve`` (sync) evaluates a module depth-first, injecting the pseudo
  dependencies and breaking cycles by handing out the partial exports of a
  module that is still executing.
"""

import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator
from typing import Any

from .errors import LoaderError
from .errors import ModuleEvaluationError
from .errors import ModuleLoadError
from .ids import is_pseudo_id
from .invoker import FactoryInvoker
from .models import ModuleState
from .registry import ModuleRecord
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)

LoadUnitFn = Callable[[str], Awaitable[None]]
MakeRequireFn = Callable[[str], Callable[..., Any]]


class DependencyResolver:
    """Turns requires into EVALUATED records in dependency order."""

    def __init__(
        self,
        registry: ModuleRegistry,
        invoker: FactoryInvoker,
        make_require: MakeRequireFn,
    ):
        """
        Initialize resolver.

        Args:
            registry: Registry holding the records
            invoker: Runs factories once dependencies are resolved
            make_require: Builds the module-local ``require`` for a module id
        """
        self.registry = registry
        self.invoker = invoker
        self._make_require = make_require
        self._inflight: dict[str, asyncio.Task] = {}

    def resolve(self, module_id: str, strict: bool = False) -> Any:
        """
        Evaluate ``module_id`` (and its dependencies) and return its value.

        Args:
            module_id: Normalized module id
            strict: Raise ModuleLoadError for unknown ids instead of returning None

        Returns:
            Exported value, the partial exports of a module still executing,
            or None for an unknown id when not strict

        Raises:
            ModuleLoadError: Unknown id with ``strict``
            ModuleEvaluationError: The module or one of its dependencies failed
        """
        record = self.registry.get(module_id)
        if record is None:
            if strict:
                raise ModuleLoadError(
                    f"Module '{module_id}' is not defined", module_id=module_id
                )
            logger.debug(
                f"Module '{module_id}' is not defined and cannot be loaded synchronously"
            )
            return None

        if record.state == ModuleState.EVALUATED:
            return record.exported_value
        if record.state == ModuleState.FAILED:
            raise record.error
        if record.state == ModuleState.EXECUTING:
            logger.debug(
                f"Circular dependency on '{module_id}', returning its partial exports"
            )
            return record.module.exports

        return self._evaluate(record)

    def _evaluate(self, root: ModuleRecord) -> Any:
        """
        Depth-first evaluation of ``root`` using an explicit stack.

        Each frame holds a record, the iterator over its declared
        dependencies and the values resolved so far. Any failure marks
        every record still on the stack FAILED with the same error.
        """
        root.state = ModuleState.EXECUTING
        stack: list[tuple[ModuleRecord, Iterator[str], list[Any]]] = [
            (root, iter(root.dependency_ids), [])
        ]
        value: Any = None

        try:
            while stack:
                record, deps, args = stack[-1]
                for dep in deps:
                    child = self._unevaluated(dep)
                    if child is not None:
                        child.state = ModuleState.EXECUTING
                        stack.append((child, iter(child.dependency_ids), []))
                        break
                    args.append(self._resolve_dependency(record, dep))
                else:
                    value = self.invoker.invoke(record, args)
                    stack.pop()
                    if stack:
                        stack[-1][2].append(value)
        except LoaderError as e:
            self._fail_stack(stack, e)
            raise
        except Exception as e:
            module_id = stack[-1][0].id
            error = ModuleEvaluationError(
                f"Resolving module '{module_id}' raised {type(e).__name__}: {e}",
                module_id=module_id,
                cause=e,
            )
            self._fail_stack(stack, error)
            raise error from e
        except BaseException as e:
            # Interrupts propagate unchanged; the records still fail for good
            module_id = stack[-1][0].id
            error = ModuleEvaluationError(
                f"Resolving module '{module_id}' was interrupted by {type(e).__name__}",
                module_id=module_id,
                cause=e,
            )
            self._fail_stack(stack, error)
            raise

        return value

    def _unevaluated(self, dep: str) -> ModuleRecord | None:
        """Record for ``dep`` if it still has to be evaluated, else None."""
        if is_pseudo_id(dep):
            return None
        record = self.registry.get(dep)
        if record is not None and record.state in (
            ModuleState.REGISTERED,
            ModuleState.LOADING,
        ):
            return record
        return None

    def _fail_stack(
        self, stack: list[tuple[ModuleRecord, Iterator[str], list[Any]]], error: LoaderError
    ) -> None:
        for record, _, _ in reversed(stack):
            if record.state == ModuleState.EXECUTING:
                self.invoker.fail(record, error)

    def _resolve_dependency(self, record: ModuleRecord, dep: str) -> Any:
        if dep == "require":
            return self._make_require(record.id)
        if dep == "exports":
            return record.exports_object
        if dep == "module":
            return record.module
        return self.resolve(dep)

    async def ensure_available(
        self, module_ids: Iterable[str], load_unit: LoadUnitFn
    ) -> None:
        """
        Make every id (and its transitive dependencies) known to the registry.

        Missing declared dependencies are fetched through ``load_unit``;
        missing soft dependencies (found by scanning require calls) are
        fetched best-effort.

        Raises:
            ModuleLoadError: A required id could not be fetched or never materialized
        """
        pending: list[tuple[str, bool]] = [(module_id, True) for module_id in module_ids]
        seen: set[str] = set()
        loading: list[ModuleRecord] = []

        try:
            while pending:
                module_id, required = pending.pop(0)
                if module_id in seen or is_pseudo_id(module_id):
                    continue
                seen.add(module_id)

                record = self.registry.get(module_id)
                if record is None:
                    try:
                        record = await self._fetch(module_id, load_unit)
                    except ModuleLoadError as e:
                        if required:
                            raise
                        logger.debug(f"Skipping soft dependency '{module_id}': {e}")
                        continue

                if record.state == ModuleState.REGISTERED:
                    record.state = ModuleState.LOADING
                    loading.append(record)
                if record.state == ModuleState.LOADING:
                    pending.extend((dep, True) for dep in record.module_dependencies)
                    pending.extend((dep, False) for dep in record.soft_dependency_ids)
        except BaseException:
            for record in loading:
                if record.state == ModuleState.LOADING:
                    record.state = ModuleState.REGISTERED
            raise

    async def _fetch(self, module_id: str, load_unit: LoadUnitFn) -> ModuleRecord:
        """Load the unit for ``module_id``, sharing one fetch among concurrent requests."""
        task = self._inflight.get(module_id)
        if task is None:
            task = asyncio.ensure_future(load_unit(module_id))
            self._inflight[module_id] = task
            task.add_done_callback(lambda _: self._inflight.pop(module_id, None))

        await asyncio.shield(task)

        record = self.registry.get(module_id)
        if record is None:
            raise ModuleLoadError(
                f"Source for module '{module_id}' did not define it",
                module_id=module_id,
            )
        return record
