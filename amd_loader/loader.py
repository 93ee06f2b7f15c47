"""
Loader façade - the public ``define``/``require`` surface.

Orchestrates the signature normalizer, the module registry, the dependency
resolver and the factory invoker:

- ``define(...)`` registers a definition (anonymous ones take the id of the
  unit being evaluated).
- ``require("id")`` resolves synchronously and never fetches.
- ``require([ids], callback, errback)`` creates a PendingRequest that fetches
  missing units, evaluates the ids and then calls back.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from . import events
from .errors import InvalidSignatureError
from .errors import LoaderError
from .errors import ModuleLoadError
from .evaluation import CompiledUnit
from .evaluation import commonjs_factory
from .evaluation import execute_unit
from .hooks import EventRegistry
from .ids import is_pseudo_id
from .ids import normalize_id
from .invoker import FactoryInvoker
from .models import LoaderConfig
from .models import ModuleStatus
from .registry import ModuleRecord
from .registry import ModuleRegistry
from .resolver import DependencyResolver
from .scope import bind
from .signatures import DEFAULT_DEPENDENCIES
from .signatures import LocalRequire
from .signatures import TopLevelRequire
from .signatures import normalize_define
from .signatures import normalize_require
from .sources import ModuleSource
from .sources import SourceFetcher

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PendingRequest:
    """An in-flight top-level ``require([ids], callback)``.

    Awaiting the request yields the exported values in listed order, or
    raises the failure when no errback handled it.
    """

    ids: tuple[str, ...]
    callback: Callable[..., Any] | None = None
    errback: Callable[[BaseException], Any] | None = None
    unresolved: set[str] = field(init=False)
    values: list[Any] | None = None
    error: BaseException | None = None
    task: asyncio.Task | None = None

    def __post_init__(self):
        self.unresolved = set(self.ids)

    @property
    def done(self) -> bool:
        return self.values is not None or self.error is not None

    def __await__(self):
        if self.task is not None:
            yield from self.task.__await__()
        if self.error is not None and self.errback is None:
            raise self.error
        return self.values


class Loader:
    """
    AMD/CommonJS module loader.

    Example:
        loader = Loader(fetcher=FileSourceFetcher(Path("modules")))
        loader.define("config", {"debug": True})
        loader.require(["app"], lambda app: app.run())
    """

    def __init__(
        self,
        config: LoaderConfig | None = None,
        fetcher: SourceFetcher | None = None,
        events_registry: EventRegistry | None = None,
    ):
        """
        Initialize loader.

        Args:
            config: Loader settings (defaults apply when omitted)
            fetcher: Source fetcher for ids unknown to a top-level require
            events_registry: Optional shared event registry
        """
        self.config = config or LoaderConfig()
        self.fetcher = fetcher
        self.events = events_registry or EventRegistry()
        self.registry = ModuleRegistry()
        self.invoker = FactoryInvoker(self.events)
        self.resolver = DependencyResolver(
            self.registry, self.invoker, self.local_require
        )
        self._units: list[ModuleSource] = []
        self._unit_records: list[list[ModuleRecord]] = []
        self._pending: list[PendingRequest] = []
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # define
    # ------------------------------------------------------------------

    def define(self, *args: Any) -> ModuleRecord:
        """
        Register a module definition.

        Accepts ``(id?, deps?, factory)``; see signatures.normalize_define.

        Raises:
            InvalidSignatureError: Unsupported argument shape, or anonymous
                definition outside of a unit evaluation
            DuplicateDefinitionError: The id already began executing
        """
        definition = normalize_define(*args)
        source = self._units[-1] if self._units else None
        record = self.registry.register_definition(
            definition.id,
            definition.deps,
            definition.factory,
            source.id if source else None,
            uri=source.uri if source else None,
            uses_default_deps=definition.uses_default_deps,
        )
        if self._unit_records:
            self._unit_records[-1].append(record)

        self.events.emit(
            events.MODULE_DEFINED,
            {"module_id": record.id, "source_id": record.source_id},
        )
        return record

    # ------------------------------------------------------------------
    # require
    # ------------------------------------------------------------------

    def require(self, *args: Any) -> Any:
        """
        Require one module synchronously or several asynchronously.

        ``require("id")`` returns the exported value (None for an unknown id).
        ``require([ids], callback=None, errback=None)`` returns a PendingRequest.
        """
        call = normalize_require(*args)
        if isinstance(call, LocalRequire):
            return self.resolver.resolve(normalize_id(call.id))
        return self._submit(call)

    def local_require(self, referrer: str) -> Callable[[str], Any]:
        """Build the ``require`` free variable for module ``referrer``."""

        def require(*args: Any) -> Any:
            if len(args) != 1 or not isinstance(args[0], str):
                raise InvalidSignatureError(
                    f"require() inside module '{referrer}' only accepts a single module id"
                )
            return self.resolver.resolve(normalize_id(args[0], referrer))

        return require

    async def require_async(self, *module_ids: str) -> list[Any]:
        """Coroutine form of a top-level require; returns the exported values."""
        request = PendingRequest(ids=tuple(normalize_id(i) for i in module_ids))
        await self._fulfil(request)
        return request.values

    def _submit(self, call: TopLevelRequire) -> PendingRequest:
        request = PendingRequest(
            ids=tuple(normalize_id(module_id) for module_id in call.ids),
            callback=call.callback,
            errback=call.errback,
        )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self._fulfil(request))
            request.task = task
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return request

        asyncio.run(self._run_until_idle(request))
        return request

    async def _run_until_idle(self, request: PendingRequest) -> None:
        await self._fulfil(request)
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait for every scheduled top-level request, re-raising the first failure."""
        while self._tasks:
            tasks = list(self._tasks)
            self._tasks.difference_update(tasks)
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result

    async def _fulfil(self, request: PendingRequest) -> list[Any] | None:
        self._pending.append(request)
        try:
            await self.resolver.ensure_available(request.ids, self._load_unit)
            values = []
            for module_id in request.ids:
                values.append(self.resolver.resolve(module_id, strict=True))
                request.unresolved.discard(module_id)
        except LoaderError as e:
            request.error = e
            logger.error(f"[request:failed] {list(request.ids)}: {e}")
            self.events.emit(
                events.REQUEST_FAILED, {"module_ids": list(request.ids), "error": e}
            )
            if request.errback is None:
                raise
            request.errback(e)
            return None
        finally:
            self._pending.remove(request)

        request.values = values
        self.events.emit(events.REQUEST_COMPLETE, {"module_ids": list(request.ids)})
        if request.callback is not None:
            request.callback(*values)
        return values

    @property
    def pending_requests(self) -> list[PendingRequest]:
        """Top-level requests that have not completed yet."""
        return list(self._pending)

    # ------------------------------------------------------------------
    # unit loading
    # ------------------------------------------------------------------

    async def _load_unit(self, module_id: str) -> None:
        if self.fetcher is None:
            raise ModuleLoadError(
                f"Module '{module_id}' is not defined and no source fetcher is configured",
                module_id=module_id,
            )

        logger.info(f"[module:fetch] {module_id}")
        self.events.emit(events.MODULE_FETCH, {"module_id": module_id})

        try:
            if hasattr(self.fetcher, "async_fetch"):
                source = await self.fetcher.async_fetch(module_id)
            else:
                source = self.fetcher.fetch(module_id)
        except ModuleLoadError:
            raise
        except Exception as e:
            raise ModuleLoadError(
                f"Fetching module '{module_id}' failed: {e}", module_id=module_id
            ) from e

        self.evaluate(source)

    def evaluate(self, source: ModuleSource) -> list[ModuleRecord]:
        """
        Evaluate a unit so its definitions register.

        Args:
            source: Unit to evaluate; its id keys anonymous definitions

        Returns:
            Records registered by the unit

        Raises:
            ModuleLoadError: The unit does not compile or its top-level code raised
        """
        unit = CompiledUnit(source)

        if unit.is_commonjs and self.config.commonjs_units:
            logger.debug(f"Unit '{source.id}' has no define() call, wrapping as CommonJS")
            record = self.registry.register_definition(
                source.id,
                DEFAULT_DEPENDENCIES,
                commonjs_factory(unit),
                source.id,
                uri=source.uri,
                uses_default_deps=True,
            )
            self.events.emit(
                events.MODULE_DEFINED,
                {"module_id": record.id, "source_id": record.source_id},
            )
            records = [record]
        else:
            scope: dict[str, Any] = {}
            bind(self, scope)
            self._units.append(source)
            self._unit_records.append([])
            try:
                execute_unit(unit, scope)
            finally:
                self._units.pop()
                records = self._unit_records.pop()

        if self.config.scan_requires and unit.required_ids:
            for record in records:
                if record.uses_default_deps:
                    record.soft_dependency_ids = self._soft_dependencies(
                        record.id, unit.required_ids
                    )

        return records

    def _soft_dependencies(
        self, referrer: str, required_ids: tuple[str, ...]
    ) -> tuple[str, ...]:
        soft = []
        for module_id in required_ids:
            if is_pseudo_id(module_id):
                continue
            try:
                soft.append(normalize_id(module_id, referrer))
            except InvalidSignatureError:
                logger.debug(f"Ignoring unresolvable require('{module_id}') in '{referrer}'")
        return tuple(soft)

    # ------------------------------------------------------------------
    # scope binding and diagnostics
    # ------------------------------------------------------------------

    def install(self, scope: Any) -> Callable[[], None]:
        """Bind ``require``/``define`` into ``scope``; returns the unbind function."""
        return bind(self, scope)

    def describe(self) -> list[ModuleStatus]:
        """Status of every known module, in definition order."""
        statuses = []
        for module_id in self.registry.all_ids():
            record = self.registry.get(module_id)
            if record is not None:
                statuses.append(record.status())
        return statuses
