"""
Shared test fixtures for AppList.

Provides a scriptable fake registry, sample app records and temporary
export directories.
"""

from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from applist.catalog import CatalogSource, RegistryEntry
from applist.catalog.registry import FLAG_SYSTEM, BaseRegistry
from applist.export import ExportConfig, ExportPipeline
from applist.models import AppInfo
from applist.session import AppListSession
from utils.exceptions import CatalogUnavailable, EntryResolutionFailure


def make_app(
    name: str,
    identifier: Optional[str] = None,
    version_label: str = "1.0",
    version_ordinal: int = 1,
    installed_at: int = 1_700_000_000_000,
    updated_at: int = 1_700_000_000_000,
    is_system: bool = False,
) -> AppInfo:
    return AppInfo(
        name=name,
        identifier=identifier or f"com.example.{name.lower().replace(' ', '')}",
        version_label=version_label,
        version_ordinal=version_ordinal,
        installed_at=installed_at,
        updated_at=updated_at,
        is_system=is_system,
    )


class FakeRegistry(BaseRegistry):
    """In-memory registry; entries listed in `broken` fail to resolve."""

    name = "fake"

    def __init__(
        self,
        apps: List[AppInfo],
        broken: Optional[Set[str]] = None,
        unavailable: bool = False,
    ):
        self.apps: Dict[str, AppInfo] = {app.identifier: app for app in apps}
        self.order = [app.identifier for app in apps]
        self.broken = broken or set()
        self.unavailable = unavailable
        self.resolved: List[str] = []

    def entries(self) -> List[RegistryEntry]:
        if self.unavailable:
            raise CatalogUnavailable("registry offline")
        return [
            RegistryEntry(
                identifier=ident,
                flags=FLAG_SYSTEM if self.apps[ident].is_system else 0,
            )
            for ident in self.order
        ]

    def resolve(self, entry: RegistryEntry) -> AppInfo:
        self.resolved.append(entry.identifier)
        if entry.identifier in self.broken:
            raise EntryResolutionFailure(f"cannot resolve {entry.identifier}")
        return self.apps[entry.identifier]


@pytest.fixture
def sample_apps() -> List[AppInfo]:
    """Three user apps in registry order, with mixed-case names."""
    return [
        make_app("Zeta", "org.zeta"),
        make_app("alpha", "com.alpha"),
        make_app("Beta", "net.beta"),
    ]


@pytest.fixture
def fake_registry(sample_apps: List[AppInfo]) -> FakeRegistry:
    return FakeRegistry(sample_apps)


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    return tmp_path / "exports"


@pytest.fixture
def pipeline(export_dir: Path) -> ExportPipeline:
    return ExportPipeline(ExportConfig(export_dir=export_dir))


@pytest.fixture
def session(fake_registry: FakeRegistry, pipeline: ExportPipeline) -> AppListSession:
    return AppListSession(source=CatalogSource(fake_registry), pipeline=pipeline)


@pytest.fixture
def mock_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point state and export directories at a temporary location."""
    monkeypatch.setenv("APPLIST_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("APPLIST_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    return tmp_path
