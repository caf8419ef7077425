"""
Catalog module.

Registry backends, the catalog source that loads and sorts installed apps,
and the query filter applied on every search.
"""

from .query import filter_apps
from .registry import (
    FLAG_SYSTEM,
    FLAG_UPDATED_SYSTEM,
    BaseRegistry,
    DpkgRegistry,
    PythonDistributionRegistry,
    RegistryEntry,
    get_registry,
)
from .source import CatalogSource, sort_apps

__all__ = [
    "BaseRegistry",
    "CatalogSource",
    "DpkgRegistry",
    "FLAG_SYSTEM",
    "FLAG_UPDATED_SYSTEM",
    "PythonDistributionRegistry",
    "RegistryEntry",
    "filter_apps",
    "get_registry",
    "sort_apps",
]
