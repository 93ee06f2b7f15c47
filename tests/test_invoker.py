"""Tests for factory invocation."""

import pytest
from amd_loader import events
from amd_loader.errors import ModuleEvaluationError
from amd_loader.hooks import EventRegistry
from amd_loader.invoker import FactoryInvoker
from amd_loader.models import ModuleState
from amd_loader.registry import ModuleRegistry
from amd_loader.testing import EventRecorder


@pytest.fixture
def registry() -> ModuleRegistry:
    return ModuleRegistry()


@pytest.fixture
def invoker() -> FactoryInvoker:
    return FactoryInvoker(EventRegistry())


def test_literal_factory_is_the_export(registry, invoker) -> None:
    value = {"debug": True}
    record = registry.register_definition("config", [], value)

    assert invoker.invoke(record, []) is value
    assert record.state == ModuleState.EVALUATED


def test_return_value_wins(registry, invoker) -> None:
    record = registry.register_definition("A", ["exports"], lambda exports: "returned")
    assert invoker.invoke(record, [record.exports_object]) == "returned"


def test_mutated_exports_used_when_nothing_returned(registry, invoker) -> None:
    def factory(exports):
        exports.value = 42

    record = registry.register_definition("A", ["exports"], factory)
    result = invoker.invoke(record, [record.exports_object])

    assert result is record.exports_object
    assert result.value == 42


def test_reassigned_module_exports(registry, invoker) -> None:
    def factory(module):
        module.exports = {"replaced": True}

    record = registry.register_definition("A", ["module"], factory)
    assert invoker.invoke(record, [record.module]) == {"replaced": True}


def test_surplus_arguments_are_dropped(registry, invoker) -> None:
    record = registry.register_definition("A", ["B", "C"], lambda b: b)
    assert invoker.invoke(record, ["b", "c"]) == "b"


def test_factory_runs_once(registry, invoker) -> None:
    calls = []
    record = registry.register_definition("A", [], lambda: calls.append(1))
    invoker.invoke(record, [])

    with pytest.raises(RuntimeError):
        invoker.invoke(record, [])
    assert calls == [1]


def test_failure_marks_record_failed(registry, invoker) -> None:
    def factory():
        raise ValueError("bad factory")

    record = registry.register_definition("A", [], factory)
    with pytest.raises(ModuleEvaluationError) as exc_info:
        invoker.invoke(record, [])

    error = exc_info.value
    assert error.module_id == "A"
    assert isinstance(error.cause, ValueError)
    assert error.__cause__ is error.cause
    assert record.state == ModuleState.FAILED
    assert record.error is error


def test_nested_evaluation_error_keeps_attribution(registry, invoker) -> None:
    inner = ModuleEvaluationError("B failed", module_id="B")

    def factory():
        raise inner

    record = registry.register_definition("A", [], factory)
    with pytest.raises(ModuleEvaluationError) as exc_info:
        invoker.invoke(record, [])

    assert exc_info.value is inner
    assert record.error is inner


def test_events_emitted(registry) -> None:
    event_registry = EventRegistry()
    recorder = EventRecorder(event_registry)
    invoker = FactoryInvoker(event_registry)

    invoker.invoke(registry.register_definition("ok", [], 1), [])
    failing = registry.register_definition("bad", [], lambda: 1 / 0)
    with pytest.raises(ModuleEvaluationError):
        invoker.invoke(failing, [])

    assert recorder.module_ids(events.MODULE_EVALUATED) == ["ok"]
    assert recorder.module_ids(events.MODULE_FAILED) == ["bad"]
