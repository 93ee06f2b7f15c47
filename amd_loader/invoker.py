"""
Factory invocation.

Runs a record's factory exactly once and settles its exported value:
a non-None return value wins, otherwise ``module.exports`` (the exports
object unless the factory reassigned it).
"""

import logging
from collections.abc import Sequence
from typing import Any

from . import events
from .errors import ModuleEvaluationError
from .hooks import EventRegistry
from .models import ModuleState
from .registry import ModuleRecord
from .signatures import positional_arity

logger = logging.getLogger(__name__)


class FactoryInvoker:
    """Executes module factories with their resolved dependencies."""

    def __init__(self, events_registry: EventRegistry | None = None):
        self.events = events_registry or EventRegistry()

    def invoke(self, record: ModuleRecord, args: Sequence[Any]) -> Any:
        """
        Execute ``record``'s factory and transition it to EVALUATED.

        Args:
            record: Record in REGISTERED, LOADING or EXECUTING state
            args: Resolved values, in dependency order

        Returns:
            The record's exported value

        Raises:
            ModuleEvaluationError: Factory raised; record is marked FAILED
        """
        if record.state in (ModuleState.EVALUATED, ModuleState.FAILED):
            raise RuntimeError(
                f"Factory of module '{record.id}' already ran ({record.state.value})"
            )

        factory = record.factory
        if not callable(factory):
            record.set_exported_value(factory)
            self._evaluated(record)
            return record.exported_value

        arity = positional_arity(factory)
        if arity is not None:
            args = args[:arity]

        try:
            result = factory(*args)
        except ModuleEvaluationError as e:
            # A nested require failed; keep the original attribution
            self.fail(record, e)
            raise
        except Exception as e:
            error = ModuleEvaluationError(
                f"Factory of module '{record.id}' raised {type(e).__name__}: {e}",
                module_id=record.id,
                cause=e,
            )
            self.fail(record, error)
            raise error from e

        record.set_exported_value(result if result is not None else record.module.exports)
        self._evaluated(record)
        return record.exported_value

    def _evaluated(self, record: ModuleRecord) -> None:
        logger.info(f"[module:evaluated] {record.id}")
        self.events.emit(events.MODULE_EVALUATED, {"module_id": record.id})

    def fail(self, record: ModuleRecord, error: BaseException) -> None:
        """Mark ``record`` FAILED with ``error`` and notify observers."""
        record.mark_failed(error)
        logger.error(f"[module:failed] {record.id}: {error}")
        self.events.emit(
            events.MODULE_FAILED, {"module_id": record.id, "error": error}
        )
