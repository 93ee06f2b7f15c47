"""
Module registry - the authoritative id -> record map.

Records are created by ``register_definition`` and only change state
through the resolver and the factory invoker.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from types import SimpleNamespace
from typing import Any

from .errors import DuplicateDefinitionError
from .errors import InvalidSignatureError
from .ids import is_pseudo_id
from .ids import normalize_id
from .models import ModuleState
from .models import ModuleStatus

logger = logging.getLogger(__name__)

# Records in these states may still be replaced by a new definition
REPLACEABLE_STATES = (ModuleState.REGISTERED, ModuleState.LOADING)


@dataclass
class Module:
    """The ``module`` free variable handed to factories."""

    id: str
    exports: Any
    uri: str | None = None


@dataclass
class ModuleRecord:
    """One module's definition and lifecycle state."""

    id: str
    dependency_ids: tuple[str, ...]
    factory: Any
    source_id: str | None = None
    uri: str | None = None
    uses_default_deps: bool = False
    soft_dependency_ids: tuple[str, ...] = ()
    state: ModuleState = ModuleState.REGISTERED
    error: BaseException | None = None
    exports_object: SimpleNamespace = field(default_factory=SimpleNamespace)
    module: Module = field(init=False)
    _exported_value: Any = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.module = Module(id=self.id, exports=self.exports_object, uri=self.uri)

    @property
    def exported_value(self) -> Any:
        """Final value handed to ``require`` callers once EVALUATED."""
        if self.state != ModuleState.EVALUATED:
            raise RuntimeError(
                f"Module '{self.id}' has no exported value in state {self.state.value}"
            )
        return self._exported_value

    def set_exported_value(self, value: Any) -> None:
        """Assign the exported value and enter EVALUATED. Allowed once."""
        if self.state in (ModuleState.EVALUATED, ModuleState.FAILED):
            raise RuntimeError(
                f"Module '{self.id}' is already {self.state.value}"
            )
        self._exported_value = value
        self.state = ModuleState.EVALUATED

    def mark_failed(self, error: BaseException) -> None:
        if self.state == ModuleState.EVALUATED:
            raise RuntimeError(f"Module '{self.id}' is already evaluated")
        self.error = error
        self.state = ModuleState.FAILED

    @property
    def module_dependencies(self) -> tuple[str, ...]:
        """Dependency ids that name other modules (pseudo-ids removed)."""
        return tuple(dep for dep in self.dependency_ids if not is_pseudo_id(dep))

    def status(self) -> ModuleStatus:
        return ModuleStatus(
            id=self.id,
            state=self.state,
            dependencies=list(self.dependency_ids),
            source_id=self.source_id,
            uri=self.uri,
            error=str(self.error) if self.error else None,
        )


class ModuleRegistry:
    """Holds at most one record per normalized module id."""

    def __init__(self):
        self._records: dict[str, ModuleRecord] = {}

    def register_definition(
        self,
        module_id: str | None,
        deps: tuple[str, ...] | list[str],
        factory: Any,
        source_id: str | None = None,
        *,
        uri: str | None = None,
        uses_default_deps: bool = False,
    ) -> ModuleRecord:
        """
        Create or replace the record for a definition.

        Anonymous definitions are keyed by ``source_id``, the id of the unit
        currently being evaluated. Relative dependency ids are normalized
        against the record's id.

        Args:
            module_id: Explicit id, or None for an anonymous definition
            deps: Dependency ids as written
            factory: Callable factory or literal exported value
            source_id: Id of the unit being evaluated
            uri: Location the unit was fetched from
            uses_default_deps: Whether deps were defaulted by the normalizer

        Returns:
            The new REGISTERED record

        Raises:
            InvalidSignatureError: Anonymous definition with no unit being evaluated
            DuplicateDefinitionError: Existing record already began executing
        """
        key = module_id or source_id
        if not key:
            raise InvalidSignatureError(
                "Anonymous define() outside of a loaded unit has no module id"
            )
        key = normalize_id(key)

        existing = self._records.get(key)
        if existing is not None:
            if existing.state not in REPLACEABLE_STATES:
                raise DuplicateDefinitionError(
                    f"Module '{key}' is already {existing.state.value} and cannot be redefined",
                    module_id=key,
                )
            logger.debug(f"Replacing pending definition of module '{key}'")

        record = ModuleRecord(
            id=key,
            dependency_ids=tuple(
                dep if is_pseudo_id(dep) else normalize_id(dep, key) for dep in deps
            ),
            factory=factory,
            source_id=source_id,
            uri=uri,
            uses_default_deps=uses_default_deps,
        )
        self._records[key] = record
        logger.debug(
            f"Registered module '{key}' with dependencies {list(record.dependency_ids)}"
        )
        return record

    def get(self, module_id: str) -> ModuleRecord | None:
        return self._records.get(module_id)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def all_ids(self) -> Iterator[str]:
        """Yield a snapshot of every known id in insertion order (diagnostics only).

        The ids are copied up front, so defining modules while iterating is safe.
        """
        yield from list(self._records)
