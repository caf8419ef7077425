"""
App list session.

Single-writer coordinator for everything the presentation layer observes:
the loaded app list, the current search, and load/export progress and
notices. Each transition replaces the whole immutable state snapshot, then
notifies observers, so nobody sees a half-updated state.

Loads use generation stamping: only the most recently started load may
publish its result, so a slow stale load cannot overwrite a newer one.
At most one export runs at a time; extra export requests are ignored.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from utils.state_machine import StateMachine, StateTransition

from .catalog import CatalogSource, filter_apps
from .export import ExportPipeline
from .models import AppInfo, ExportFormat, ExportResult

logger = logging.getLogger(__name__)

NOTHING_TO_EXPORT = "nothing to export"


class SessionPhase(Enum):
    """Externally meaningful session states, derived from the state flags."""

    IDLE = auto()
    LOADING = auto()
    READY = auto()
    EXPORTING = auto()
    ERROR = auto()
    EXPORT_NOTICE = auto()


@dataclass(frozen=True)
class AppListState:
    """Immutable snapshot of the session."""

    apps: Tuple[AppInfo, ...] = ()
    filtered_apps: Tuple[AppInfo, ...] = ()
    search_query: str = ""
    include_system_apps: bool = False
    is_loading: bool = False
    is_exporting: bool = False
    error: Optional[str] = None
    export_message: Optional[str] = None
    loaded: bool = False

    @property
    def phase(self) -> SessionPhase:
        if self.is_loading:
            return SessionPhase.LOADING
        if self.is_exporting:
            return SessionPhase.EXPORTING
        if self.error is not None:
            return SessionPhase.ERROR
        if self.export_message is not None:
            return SessionPhase.EXPORT_NOTICE
        if self.loaded:
            return SessionPhase.READY
        return SessionPhase.IDLE


Observer = Callable[[AppListState], None]


class AppListSession:
    """Coordinates catalog loads, searches and exports for one user session."""

    def __init__(
        self,
        source: CatalogSource,
        pipeline: ExportPipeline,
        include_system_apps: bool = False,
    ):
        self._source = source
        self._pipeline = pipeline
        self._state = AppListState(include_system_apps=include_system_apps)
        self._observers: List[Observer] = []
        self._phase: StateMachine[SessionPhase] = StateMachine(SessionPhase.IDLE)
        self._load_generation = 0

    @property
    def state(self) -> AppListState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._phase.state

    @property
    def phase_history(self) -> List[StateTransition[SessionPhase]]:
        return self._phase.history

    def subscribe(self, observer: Observer) -> None:
        """Register a callback that receives every new snapshot."""
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _apply(self, **changes) -> AppListState:
        self._state = replace(self._state, **changes)
        snapshot = self._state
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception(f"State observer {observer!r} failed")
        return snapshot

    def _sync_phase(self, reason: str) -> None:
        self._phase.transition_to(self._state.phase, reason)

    # -- Loading ---------------------------------------------------------------

    async def load(self) -> bool:
        """
        Reload the app list from the catalog.

        Returns:
            True if this load's result was published, False on failure or
            when a newer load superseded it.
        """
        self._load_generation += 1
        generation = self._load_generation
        include_system = self._state.include_system_apps

        self._apply(is_loading=True, error=None)
        self._sync_phase(f"load #{generation} started")

        try:
            apps = await asyncio.to_thread(self._source.list_apps, include_system)
        except Exception as e:
            if generation != self._load_generation:
                logger.debug(f"Ignoring failure of superseded load #{generation}: {e}")
                return False
            logger.error(f"Load #{generation} failed: {e}")
            self._apply(is_loading=False, error=f"Failed to load app list: {e}")
            self._sync_phase(f"load #{generation} failed")
            return False

        if generation != self._load_generation:
            logger.debug(f"Discarding stale load #{generation} (latest is #{self._load_generation})")
            return False

        filtered = filter_apps(apps, self._state.search_query, include_system)
        self._apply(
            apps=tuple(apps),
            filtered_apps=tuple(filtered),
            is_loading=False,
            error=None,
            loaded=True,
        )
        self._sync_phase(f"load #{generation} finished with {len(apps)} apps")
        return True

    def search(self, query: str) -> None:
        """Set the search query and refilter the loaded apps."""
        filtered = filter_apps(self._state.apps, query, self._state.include_system_apps)
        self._apply(search_query=query, filtered_apps=tuple(filtered))
        logger.debug(f"Search {query!r}: {len(filtered)} of {len(self._state.apps)} apps")

    async def toggle_system_apps(self) -> bool:
        """Flip system app inclusion and reload, since classification is applied at load time."""
        self._apply(include_system_apps=not self._state.include_system_apps)
        return await self.load()

    # -- Exporting -------------------------------------------------------------

    async def export(self, fmt: ExportFormat) -> Optional[ExportResult]:
        """
        Export the currently filtered apps.

        Returns:
            The ExportResult, or None if nothing was exported (empty list,
            or another export already running).
        """
        return await self._export(fmt, share=False)

    async def export_and_share(self, fmt: ExportFormat) -> Optional[ExportResult]:
        """Export, then hand the file to the share mechanism on success."""
        return await self._export(fmt, share=True)

    def _export_file_name(self) -> str:
        context = self._state.search_query.strip() or "all"
        return f"app_list_{context}_{int(time.time() * 1000)}"

    async def _export(self, fmt: ExportFormat, share: bool) -> Optional[ExportResult]:
        # Check and claim the export slot without suspending in between
        if self._state.is_exporting:
            logger.warning(f"{fmt.name} export ignored: another export is in progress")
            return None

        apps = self._state.filtered_apps
        if not apps:
            self._apply(export_message=NOTHING_TO_EXPORT)
            self._sync_phase("nothing to export")
            return None

        self._apply(is_exporting=True, export_message=None, error=None)
        self._sync_phase(f"{fmt.name} export started")

        result: Optional[ExportResult] = None
        try:
            result = await asyncio.to_thread(
                self._pipeline.export, list(apps), fmt, self._export_file_name()
            )
            if not result.success:
                message = f"Export failed: {result.error}"
            else:
                message = f"Exported {result.exported_count} apps to:\n{result.file_path}"
                if share:
                    shared = await asyncio.to_thread(
                        self._pipeline.share_artifact,
                        result.file_path,
                        result.mime_type,
                        result.exported_count,
                    )
                    if shared.success:
                        message = f"Exported and shared {result.exported_count} apps"
            self._apply(is_exporting=False, export_message=message)
        except Exception as e:
            logger.exception(f"{fmt.name} export crashed")
            self._apply(is_exporting=False, error=f"Export error: {e}")

        self._sync_phase(f"{fmt.name} export finished")
        return result

    # -- Notices ---------------------------------------------------------------

    def clear_error(self) -> None:
        self._apply(error=None)
        self._sync_phase("error acknowledged")

    def clear_export_message(self) -> None:
        self._apply(export_message=None)
        self._sync_phase("export notice acknowledged")
