"""Module source fetching.

The loader only depends on the ``SourceFetcher`` contract: given a module
id, return the unit's source text. Fetchers may also provide
``async_fetch``, which is preferred when present.

Provided fetchers:
- FileSourceFetcher: ids map to files under a base directory
- HttpSourceFetcher: ids map to URLs under a base URL
- InMemorySourceFetcher: ids map to strings held in a dict
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import quote
from urllib.request import urlopen

from .errors import ModuleLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleSource:
    """Source text of one loadable unit."""

    id: str
    text: str
    uri: str | None = None


class SourceFetcher(Protocol):
    """Protocol for retrieving module source text by id."""

    def fetch(self, module_id: str) -> ModuleSource:
        """Retrieve the unit for ``module_id``.

        Raises:
            ModuleLoadError: Source cannot be found or read
        """
        ...


def map_path(module_id: str, paths: dict[str, str]) -> str:
    """
    Apply id prefix overrides.

    The longest configured prefix matching a whole leading segment run of
    ``module_id`` is replaced by its location.
    """
    for prefix in sorted(paths, key=len, reverse=True):
        if module_id == prefix:
            return paths[prefix]
        if module_id.startswith(prefix.rstrip("/") + "/"):
            return paths[prefix].rstrip("/") + module_id[len(prefix.rstrip("/")) :]
    return module_id


def _with_extension(location: str, extension: str) -> str:
    if extension and not location.endswith(extension):
        return location + extension
    return location


class FileSourceFetcher:
    """Fetches units from the local filesystem."""

    def __init__(
        self,
        base_path: Path | None = None,
        paths: dict[str, str] | None = None,
        extension: str = ".py",
        encoding: str = "utf-8",
    ) -> None:
        """Initialize fetcher.

        Args:
            base_path: Directory relative locations are resolved against.
            paths: Id prefix -> location overrides.
            extension: Suffix appended to locations lacking it.
            encoding: Text encoding of source files.
        """
        self.base_path = base_path or Path.cwd()
        self.paths = dict(paths or {})
        self.extension = extension
        self.encoding = encoding

    def locate(self, module_id: str) -> Path:
        """Map a module id to the file that should contain it."""
        location = Path(_with_extension(map_path(module_id, self.paths), self.extension))
        if not location.is_absolute():
            location = self.base_path / location
        return location.resolve()

    def fetch(self, module_id: str) -> ModuleSource:
        path = self.locate(module_id)
        if not path.is_file():
            raise ModuleLoadError(f"File not found: {path}", module_id=module_id)

        try:
            text = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise ModuleLoadError(
                f"Could not read {path}: {e}", module_id=module_id
            ) from e

        logger.debug(f"Read module '{module_id}' from {path}")
        return ModuleSource(id=module_id, text=text, uri=str(path))


class HttpSourceFetcher:
    """Fetches units over http:// or https://.

    Downloads run in a worker thread so a pending top-level require does not
    block the event loop.
    """

    def __init__(
        self,
        base_url: str,
        paths: dict[str, str] | None = None,
        extension: str = ".py",
        encoding: str = "utf-8",
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.paths = dict(paths or {})
        self.extension = extension
        self.encoding = encoding
        self.timeout = timeout

    def locate(self, module_id: str) -> str:
        """Map a module id to its URL."""
        location = _with_extension(map_path(module_id, self.paths), self.extension)
        if "://" in location:
            return location
        return self.base_url + quote(location.lstrip("/"))

    def fetch(self, module_id: str) -> ModuleSource:
        url = self.locate(module_id)
        try:
            with urlopen(url, timeout=self.timeout) as response:  # noqa: S310
                content = response.read()
        except Exception as e:
            raise ModuleLoadError(
                f"Failed to download {url}: {e}", module_id=module_id
            ) from e

        logger.debug(f"Downloaded module '{module_id}' from {url}")
        return ModuleSource(id=module_id, text=content.decode(self.encoding), uri=url)

    async def async_fetch(self, module_id: str) -> ModuleSource:
        return await asyncio.to_thread(self.fetch, module_id)


class InMemorySourceFetcher:
    """Serves units from a dict of id -> source text."""

    def __init__(self, sources: dict[str, str] | None = None) -> None:
        self.sources = dict(sources or {})
        self.fetched: list[str] = []

    def add(self, module_id: str, text: str) -> None:
        self.sources[module_id] = text

    def fetch(self, module_id: str) -> ModuleSource:
        self.fetched.append(module_id)
        if module_id not in self.sources:
            raise ModuleLoadError(
                f"No source registered for module '{module_id}'", module_id=module_id
            )
        return ModuleSource(
            id=module_id, text=self.sources[module_id], uri=f"memory:{module_id}"
        )
