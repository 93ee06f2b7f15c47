"""
Configuration and diagnostic models for the loader.
Uses Pydantic for validation and serialization.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import Field


class ModuleState(str, Enum):
    """Lifecycle of a module record.

    REGISTERED -> LOADING -> EXECUTING -> EVALUATED, or FAILED from any
    non-terminal state. EVALUATED and FAILED are terminal.
    """

    REGISTERED = "registered"
    LOADING = "loading"
    EXECUTING = "executing"
    EVALUATED = "evaluated"
    FAILED = "failed"


class LoaderConfig(BaseModel):
    """Loader settings, usually read from a YAML file."""

    base_path: Path = Field(
        default_factory=Path.cwd, description="Root directory for file sources"
    )
    base_url: str | None = Field(
        default=None, description="Root URL; when set, sources are fetched over HTTP"
    )
    paths: dict[str, str] = Field(
        default_factory=dict,
        description="Id prefix -> location overrides (longest prefix wins)",
    )
    extension: str = Field(default=".py", description="Suffix appended to ids")
    encoding: str = Field(default="utf-8", description="Source text encoding")
    timeout: float = Field(default=60.0, description="HTTP fetch timeout in seconds")
    commonjs_units: bool = Field(
        default=True,
        description="Treat units without define() calls as CommonJS modules",
    )
    scan_requires: bool = Field(
        default=True,
        description="Prefetch literal require('x') calls of CommonJS-style modules",
    )


class ModuleStatus(BaseModel):
    """Snapshot of one registry record."""

    id: str
    state: ModuleState
    dependencies: list[str] = Field(default_factory=list)
    source_id: str | None = None
    uri: str | None = None
    error: str | None = None

    def __str__(self) -> str:
        line = f"{self.id} [{self.state.value}]"
        if self.dependencies:
            line += f" -> {', '.join(self.dependencies)}"
        if self.error:
            line += f" ({self.error})"
        return line
