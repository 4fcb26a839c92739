"""Process-wide report store and wizard registry, as FastAPI dependencies.

Tests swap both through `app.dependency_overrides`.
"""

from typing import Optional

from reportstudio.services.registry import WizardRegistry
from reportstudio.services.store import SqlReportStore

_store: Optional[SqlReportStore] = None
_registry: Optional[WizardRegistry] = None


def get_store() -> SqlReportStore:
    global _store
    if _store is None:
        _store = SqlReportStore()
    return _store


def get_registry() -> WizardRegistry:
    global _registry
    if _registry is None:
        _registry = WizardRegistry(get_store())
    return _registry
