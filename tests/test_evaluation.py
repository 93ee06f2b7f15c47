"""Tests for unit compilation and evaluation."""

import pytest
from amd_loader.errors import ModuleLoadError
from amd_loader.evaluation import CompiledUnit
from amd_loader.evaluation import execute_unit
from amd_loader.models import ModuleState
from amd_loader.sources import ModuleSource
from amd_loader.testing import create_test_loader


def unit(text: str, module_id: str = "u") -> CompiledUnit:
    return CompiledUnit(ModuleSource(id=module_id, text=text))


class TestCompiledUnit:
    def test_detects_define_calls(self) -> None:
        assert not unit("define(1)").is_commonjs
        assert unit("exports.x = 1").is_commonjs
        assert unit("obj.define(1)").is_commonjs

    def test_collects_literal_requires(self) -> None:
        compiled = unit(
            "a = require('a')\n"
            "b = require('./b')\n"
            "again = require('a')\n"
            "dynamic = require(name)\n"
            "multi = require(['c'], cb)\n"
        )
        assert compiled.required_ids == ("a", "./b")

    def test_syntax_error_is_load_error(self) -> None:
        with pytest.raises(ModuleLoadError, match="does not compile") as exc_info:
            unit("def broken(:", module_id="broken")
        assert exc_info.value.module_id == "broken"


def test_execute_unit_failure_is_load_error() -> None:
    with pytest.raises(ModuleLoadError, match="ZeroDivisionError") as exc_info:
        execute_unit(unit("1 / 0", module_id="bad"), {})
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


class TestLoaderEvaluate:
    def test_commonjs_unit_runs_on_require(self) -> None:
        loader, _, _ = create_test_loader()
        records = loader.evaluate(
            ModuleSource(id="counter", text="exports.count = 1\nmodule.id_seen = module.id")
        )

        assert [r.id for r in records] == ["counter"]
        assert records[0].state == ModuleState.REGISTERED

        counter = loader.require("counter")
        assert counter.count == 1
        assert records[0].module.id_seen == "counter"

    def test_commonjs_module_exports_reassignment(self) -> None:
        loader, _, _ = create_test_loader()
        loader.evaluate(ModuleSource(id="m", text="module.exports = {'replaced': True}"))
        assert loader.require("m") == {"replaced": True}

    def test_commonjs_disabled(self) -> None:
        loader, _, _ = create_test_loader(commonjs_units=False)
        records = loader.evaluate(ModuleSource(id="plain", text="x = 1"))

        assert records == []
        assert "plain" not in loader.registry

    def test_soft_dependencies_for_default_deps_only(self) -> None:
        loader, _, _ = create_test_loader()
        records = loader.evaluate(
            ModuleSource(
                id="lib/bundle",
                text=(
                    "define('lib/sugar', lambda require: require('./x'))\n"
                    "define('lib/explicit', ['require'], lambda require: require('./y'))\n"
                ),
            )
        )
        soft = {record.id: record.soft_dependency_ids for record in records}
        assert soft == {"lib/sugar": ("lib/x", "lib/y"), "lib/explicit": ()}

    def test_scanning_disabled(self) -> None:
        loader, _, _ = create_test_loader(scan_requires=False)
        (record,) = loader.evaluate(ModuleSource(id="a", text="require('b')"))
        assert record.soft_dependency_ids == ()

    def test_anonymous_definitions_take_unit_id(self) -> None:
        loader, _, _ = create_test_loader()
        (record,) = loader.evaluate(
            ModuleSource(id="anon", text="define(['require'], lambda r: 1)", uri="memory:anon")
        )
        assert record.id == "anon"
        assert record.uri == "memory:anon"
        assert record.source_id == "anon"
