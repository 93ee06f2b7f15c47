"""Loader configuration loading."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .models import LoaderConfig
from .sources import FileSourceFetcher
from .sources import HttpSourceFetcher
from .sources import SourceFetcher

logger = logging.getLogger(__name__)

BASE_PATH_ENV = "AMD_LOADER_BASE_PATH"


def load_config(path: Path | None = None, **overrides: Any) -> LoaderConfig:
    """
    Build a LoaderConfig from an optional YAML file plus overrides.

    Relative ``base_path`` values in the file are resolved against the
    file's directory. When no base path is configured anywhere,
    ``AMD_LOADER_BASE_PATH`` is used if set.

    Args:
        path: YAML file to read
        **overrides: Values taking precedence over the file (None values ignored)

    Returns:
        Validated configuration

    Raises:
        yaml.YAMLError: If the file contains invalid YAML
        pydantic.ValidationError: If values have the wrong types
        OSError: If the file can't be read
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        if "base_path" in data and not Path(data["base_path"]).is_absolute():
            data["base_path"] = path.parent / data["base_path"]
        logger.debug(f"Loaded loader config from {path}")

    data.update({key: value for key, value in overrides.items() if value is not None})

    if "base_path" not in data and (env_base := os.environ.get(BASE_PATH_ENV)):
        data["base_path"] = Path(env_base)

    return LoaderConfig(**data)


def create_fetcher(config: LoaderConfig) -> SourceFetcher:
    """HTTP fetcher when ``base_url`` is configured, file fetcher otherwise."""
    if config.base_url:
        return HttpSourceFetcher(
            config.base_url,
            paths=config.paths,
            extension=config.extension,
            encoding=config.encoding,
            timeout=config.timeout,
        )
    return FileSourceFetcher(
        config.base_path,
        paths=config.paths,
        extension=config.extension,
        encoding=config.encoding,
    )
