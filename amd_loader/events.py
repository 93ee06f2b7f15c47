"""
Canonical event names for loader lifecycle hooks.
Stable surface for observers and diagnostics.
"""

# Definitions
MODULE_DEFINED = "module:defined"

# Source fetching
MODULE_FETCH = "module:fetch"

# Factory execution
MODULE_EVALUATED = "module:evaluated"
MODULE_FAILED = "module:failed"

# Top-level requests
REQUEST_COMPLETE = "request:complete"
REQUEST_FAILED = "request:failed"

ALL_EVENTS = [
    MODULE_DEFINED,
    MODULE_FETCH,
    MODULE_EVALUATED,
    MODULE_FAILED,
    REQUEST_COMPLETE,
    REQUEST_FAILED,
]
