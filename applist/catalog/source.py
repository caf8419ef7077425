"""
Catalog source: turns a registry scan into a sorted list of AppInfo records.
"""

import logging
from typing import List, Sequence

from utils.exceptions import AppListError, CatalogUnavailable
from utils.logging_config import log_performance

from ..models import AppInfo
from .registry import BaseRegistry

logger = logging.getLogger(__name__)


def sort_apps(apps: Sequence[AppInfo]) -> List[AppInfo]:
    """Sort by name case-insensitively, ties broken by identifier."""
    return sorted(apps, key=lambda app: (app.name.lower(), app.identifier))


class CatalogSource:
    """Reads installed applications from a registry backend."""

    def __init__(self, registry: BaseRegistry):
        self.registry = registry

    @log_performance(logger)
    def list_apps(self, include_system_apps: bool = False) -> List[AppInfo]:
        """
        List installed applications.

        System apps are dropped before detail resolution when
        include_system_apps is False. Entries whose details cannot be
        resolved are skipped; a partial list is a normal result.

        Raises:
            CatalogUnavailable: If the registry cannot be read at all.
        """
        try:
            entries = self.registry.entries()
        except AppListError:
            raise
        except OSError as e:
            raise CatalogUnavailable(f"Registry '{self.registry.name}' unavailable: {e}") from e

        apps: List[AppInfo] = []
        seen = set()
        skipped = 0
        for entry in entries:
            if not include_system_apps and entry.is_system:
                continue
            if entry.identifier in seen:
                logger.warning(f"Duplicate registry entry ignored: {entry.identifier}")
                continue
            try:
                app = self.registry.resolve(entry)
            except Exception as e:
                skipped += 1
                logger.debug(f"Skipping {entry.identifier}: {e}")
                continue
            seen.add(entry.identifier)
            apps.append(app)

        logger.info(
            f"Loaded {len(apps)} apps from '{self.registry.name}' "
            f"(system apps {'included' if include_system_apps else 'excluded'}, {skipped} skipped)"
        )
        return sort_apps(apps)
