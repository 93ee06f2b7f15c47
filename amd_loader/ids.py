"""Module id normalization."""

from .errors import InvalidSignatureError

# Dependency names that resolve to injected free variables rather than modules
PSEUDO_IDS = ("require", "exports", "module")


def is_pseudo_id(module_id: str) -> bool:
    return module_id in PSEUDO_IDS


def is_relative(module_id: str) -> bool:
    """True for ids starting with ``./`` or ``../``."""
    return module_id.startswith("./") or module_id.startswith("../")


def normalize_id(module_id: str, referrer: str | None = None) -> str:
    """
    Normalize a module id.

    Relative ids are resolved against the directory of ``referrer`` (or the
    root when there is no referrer). Flat and absolute-style ids are returned
    unchanged.

    Args:
        module_id: Id as written by the caller
        referrer: Id of the module the id appears in

    Returns:
        Normalized id

    Raises:
        InvalidSignatureError: Id is empty or not a string
    """
    if not isinstance(module_id, str) or not module_id:
        raise InvalidSignatureError(f"Invalid module id: {module_id!r}")

    if not is_relative(module_id):
        return module_id

    parts = referrer.split("/")[:-1] if referrer else []
    for segment in module_id.split("/"):
        if segment in (".", ""):
            continue
        if segment == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            else:
                # Climbing above the root is kept so the fetcher can decide
                parts.append("..")
            continue
        parts.append(segment)

    if not parts:
        raise InvalidSignatureError(
            f"Module id '{module_id}' resolves to nothing relative to '{referrer}'"
        )
    return "/".join(parts)
