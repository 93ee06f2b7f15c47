"""
AMD Loader - define/require module loading with AMD and CommonJS semantics.
"""

__version__ = "1.0.0"

from .config import create_fetcher
from .config import load_config
from .errors import DuplicateDefinitionError
from .errors import InvalidSignatureError
from .errors import LoaderError
from .errors import ModuleEvaluationError
from .errors import ModuleLoadError
from .hooks import EventRegistry
from .loader import Loader
from .loader import PendingRequest
from .models import LoaderConfig
from .models import ModuleState
from .models import ModuleStatus
from .registry import Module
from .registry import ModuleRecord
from .registry import ModuleRegistry
from .scope import bind
from .signatures import Definition
from .signatures import LocalRequire
from .signatures import TopLevelRequire
from .signatures import normalize_define
from .signatures import normalize_require
from .sources import FileSourceFetcher
from .sources import HttpSourceFetcher
from .sources import InMemorySourceFetcher
from .sources import ModuleSource
from .sources import SourceFetcher

__all__ = [
    "Loader",
    "PendingRequest",
    "LoaderConfig",
    "load_config",
    "create_fetcher",
    "bind",
    # Registry
    "Module",
    "ModuleRecord",
    "ModuleRegistry",
    "ModuleState",
    "ModuleStatus",
    # Call shapes
    "Definition",
    "LocalRequire",
    "TopLevelRequire",
    "normalize_define",
    "normalize_require",
    # Sources
    "ModuleSource",
    "SourceFetcher",
    "FileSourceFetcher",
    "HttpSourceFetcher",
    "InMemorySourceFetcher",
    # Events
    "EventRegistry",
    # Error taxonomy
    "LoaderError",
    "DuplicateDefinitionError",
    "ModuleLoadError",
    "ModuleEvaluationError",
    "InvalidSignatureError",
]
