"""Alerts domain package.

Administrator CRUD over alerts plus the live viewer feed that reconciles a
bulk read with the collection's change stream and local dismiss actions.
"""

__all__ = [
    "models",
    "schemas",
    "store",
    "repository",
    "reconciliation",
    "feed",
    "service",
    "router",
]
