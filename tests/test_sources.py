"""Tests for source fetchers."""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from amd_loader.errors import ModuleLoadError
from amd_loader.sources import FileSourceFetcher
from amd_loader.sources import HttpSourceFetcher
from amd_loader.sources import InMemorySourceFetcher
from amd_loader.sources import map_path


class TestMapPath:
    def test_no_mapping(self) -> None:
        assert map_path("lib/x", {}) == "lib/x"

    def test_exact_mapping(self) -> None:
        assert map_path("test", {"test": "../util/test"}) == "../util/test"

    def test_prefix_mapping(self) -> None:
        assert map_path("lib/x", {"lib": "vendor/lib"}) == "vendor/lib/x"

    def test_longest_prefix_wins(self) -> None:
        paths = {"lib": "vendor/lib", "lib/special": "special"}
        assert map_path("lib/special/x", paths) == "special/x"
        assert map_path("lib/other", paths) == "vendor/lib/other"

    def test_prefix_matches_whole_segments(self) -> None:
        assert map_path("library/x", {"lib": "vendor/lib"}) == "library/x"


class TestFileSourceFetcher:
    def test_fetch_existing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / "lib").mkdir()
            (base / "lib" / "util.py").write_text("define(1)")

            source = FileSourceFetcher(base).fetch("lib/util")

            assert source.id == "lib/util"
            assert source.text == "define(1)"
            assert source.uri == str((base / "lib" / "util.py").resolve())

    def test_paths_mapping_to_absolute_location(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / "elsewhere.py").write_text("exports.x = 1")

            fetcher = FileSourceFetcher(
                base / "modules", paths={"test": str(base / "elsewhere")}
            )
            assert fetcher.fetch("test").text == "exports.x = 1"

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ModuleLoadError, match="File not found") as exc_info:
                FileSourceFetcher(Path(tmpdir)).fetch("missing")
            assert exc_info.value.module_id == "missing"

    def test_custom_extension(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / "a.amd").write_text("define(2)")

            fetcher = FileSourceFetcher(base, extension=".amd")
            assert fetcher.locate("a") == (base / "a.amd").resolve()
            assert fetcher.fetch("a").text == "define(2)"


class TestHttpSourceFetcher:
    def test_locate(self) -> None:
        fetcher = HttpSourceFetcher("https://example.com/modules")
        assert fetcher.locate("lib/util") == "https://example.com/modules/lib/util.py"

    def test_locate_with_absolute_mapping(self) -> None:
        fetcher = HttpSourceFetcher(
            "https://example.com/modules", paths={"cdn": "https://cdn.example.com/x"}
        )
        assert fetcher.locate("cdn/y") == "https://cdn.example.com/x/y.py"

    def test_fetch(self) -> None:
        response = MagicMock()
        response.read.return_value = b"define(1)"
        response.__enter__.return_value = response

        with patch("amd_loader.sources.urlopen", return_value=response) as urlopen:
            source = HttpSourceFetcher("https://example.com", timeout=5).fetch("a")

        urlopen.assert_called_once_with("https://example.com/a.py", timeout=5)
        assert source.text == "define(1)"
        assert source.uri == "https://example.com/a.py"

    def test_fetch_failure(self) -> None:
        with patch("amd_loader.sources.urlopen", side_effect=OSError("refused")):
            with pytest.raises(ModuleLoadError, match="Failed to download") as exc_info:
                HttpSourceFetcher("https://example.com").fetch("a")
        assert exc_info.value.module_id == "a"

    @pytest.mark.asyncio
    async def test_async_fetch(self) -> None:
        response = MagicMock()
        response.read.return_value = b"define(2)"
        response.__enter__.return_value = response

        with patch("amd_loader.sources.urlopen", return_value=response):
            source = await HttpSourceFetcher("https://example.com").async_fetch("b")
        assert source.text == "define(2)"


class TestInMemorySourceFetcher:
    def test_fetch_and_record(self) -> None:
        fetcher = InMemorySourceFetcher({"a": "define(1)"})
        fetcher.add("b", "define(2)")

        assert fetcher.fetch("b").text == "define(2)"
        assert fetcher.fetch("a").uri == "memory:a"
        assert fetcher.fetched == ["b", "a"]

    def test_missing(self) -> None:
        with pytest.raises(ModuleLoadError):
            InMemorySourceFetcher().fetch("a")
