"""Loader error taxonomy.

Every failure the loader raises derives from ``LoaderError`` so callers can
catch loader problems without knowing which stage produced them.

- ``DuplicateDefinitionError``: an id is defined again after it started executing.
- ``ModuleLoadError``: the source of an id could not be fetched or never defined it.
- ``ModuleEvaluationError``: a factory raised; the original error is chained.
- ``InvalidSignatureError``: ``define``/``require`` arguments match no known shape.
"""

from __future__ import annotations


class LoaderError(Exception):
    """Base for all loader errors.

    Attributes:
        module_id: Id of the module the error is attributed to, if any.
    """

    def __init__(self, message: str, *, module_id: str | None = None) -> None:
        super().__init__(message)
        self.module_id = module_id

    def __repr__(self) -> str:
        parts = [repr(str(self))]
        if self.module_id is not None:
            parts.append(f"module_id={self.module_id!r}")
        return f"{type(self).__name__}({', '.join(parts)})"


class DuplicateDefinitionError(LoaderError):
    """An id was redefined after its record began executing.

    Only REGISTERED and LOADING records can be replaced. Redefining a record
    that is EXECUTING (including one whose factory is still running inside a
    cycle), EVALUATED or FAILED raises this error and keeps the existing record.
    """


class ModuleLoadError(LoaderError):
    """Source for a module could not be fetched, evaluated, or did not define it."""

    pass


class ModuleEvaluationError(LoaderError):
    """A module factory raised during execution.

    Attributes:
        cause: The exception raised by the factory.
    """

    def __init__(
        self,
        message: str,
        *,
        module_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, module_id=module_id)
        self.cause = cause

    def __repr__(self) -> str:
        parts = [repr(str(self))]
        if self.module_id is not None:
            parts.append(f"module_id={self.module_id!r}")
        if self.cause is not None:
            parts.append(f"cause={self.cause!r}")
        return f"{type(self).__name__}({', '.join(parts)})"


class InvalidSignatureError(LoaderError):
    """Arguments to ``define`` or ``require`` match none of the canonical shapes."""

    pass
