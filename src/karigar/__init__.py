"""
Karigar – product listings, analytics and AI business advice for artisans.

All state lives in a local key-value store owned by `store.DataStore`;
`advisor` talks to an external text-generation service and `imaging`
prepares product photos for inline storage.
"""

__all__ = [
    "advisor",
    "config",
    "errors",
    "imaging",
    "logging",
    "paths",
    "store",
]
