"""
Application registry backends.

A registry answers two questions: which applications are installed (a cheap
metadata scan that already knows each entry's classification), and what the
details of one entry are. Detail lookups may fail per entry; the catalog
source skips those.

Backends:
- python: distributions installed for the running interpreter
- dpkg: the Debian package database
"""

import logging
import os
import re
import sys
import sysconfig
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

import config
from utils.exceptions import CatalogUnavailable, ConfigError, EntryResolutionFailure

from ..models import UNKNOWN_VERSION, AppInfo

logger = logging.getLogger(__name__)

# Bit flags mirroring the OS package manager's classification bits
FLAG_SYSTEM = 1 << 0
FLAG_UPDATED_SYSTEM = 1 << 7
SYSTEM_FLAGS = FLAG_SYSTEM | FLAG_UPDATED_SYSTEM

_RELEASE_RE = re.compile(r"^\s*[vV]?(?:\d+[!:])?(\d+(?:\.\d+)*)")
_NAME_NORMALIZE_RE = re.compile(r"[-_.]+")


@dataclass(frozen=True)
class RegistryEntry:
    """One registry record before detail resolution."""

    identifier: str
    location: str = ""
    flags: int = 0
    ref: Any = field(default=None, compare=False, repr=False)

    @property
    def is_system(self) -> bool:
        return bool(self.flags & SYSTEM_FLAGS)


def version_ordinal(version: Optional[str]) -> int:
    """Pack the release part of a version string into one comparable integer.

    The first four numeric components take 16 bits each, the leading one
    capped at 0x7FFF so the result fits a signed 64-bit integer. Epochs
    ("1:" or "1!") are dropped. Returns 0 when no release number is found.

    >>> version_ordinal("2.31.0") > version_ordinal("2.4.9")
    True
    """
    match = _RELEASE_RE.match(version or "")
    if not match:
        return 0
    parts = [int(p) for p in match.group(1).split(".")[:4]]
    parts += [0] * (4 - len(parts))
    ordinal = min(parts[0], 0x7FFF)
    for part in parts[1:]:
        ordinal = (ordinal << 16) | min(part, 0xFFFF)
    return ordinal


def normalize_name(name: str) -> str:
    """PEP 503 normalized project name ('Foo_Bar.baz' -> 'foo-bar-baz')."""
    return _NAME_NORMALIZE_RE.sub("-", name).lower()


def _mtime_ms(path: Path) -> int:
    try:
        return int(path.stat().st_mtime * 1000)
    except OSError:
        return 0


def _ctime_ms(path: Path) -> int:
    try:
        return int(path.stat().st_ctime * 1000)
    except OSError:
        return 0


def _is_within(path: Path, roots: Iterable[Path]) -> bool:
    return any(path == root or root in path.parents for root in roots)


class BaseRegistry(ABC):
    """Interface every registry backend implements."""

    name: str = ""

    @abstractmethod
    def entries(self) -> List[RegistryEntry]:
        """
        Scan the registry.

        Raises:
            CatalogUnavailable: If the registry cannot be read at all.
        """

    @abstractmethod
    def resolve(self, entry: RegistryEntry) -> AppInfo:
        """
        Resolve full details for one entry.

        Raises:
            EntryResolutionFailure: If the entry's details cannot be read.
        """


class PythonDistributionRegistry(BaseRegistry):
    """Installed Python distributions visible on a search path.

    The first distribution found for a project name wins, like the import
    system. A copy living in a system site directory is classified as
    system; a non-system copy shadowing a system one is an updated system
    entry.
    """

    name = "python"

    def __init__(
        self,
        search_path: Optional[Sequence[str]] = None,
        system_dirs: Optional[Sequence[Path]] = None,
    ):
        self._search_path = list(search_path) if search_path is not None else None
        if system_dirs is None:
            system_dirs = _default_system_dirs()
        self._system_dirs = [Path(os.path.realpath(d)) for d in system_dirs]

    def _is_system_location(self, path: Path) -> bool:
        if _is_within(path, self._system_dirs):
            return True
        parts = path.parts
        return len(parts) > 1 and parts[1] == "usr" and "dist-packages" in parts

    def entries(self) -> List[RegistryEntry]:
        search_path = self._search_path if self._search_path is not None else list(sys.path)
        try:
            dists = list(metadata.distributions(path=search_path))
        except OSError as e:
            raise CatalogUnavailable(f"Cannot scan Python distributions: {e}") from e

        winners: Dict[str, Any] = {}
        locations: Dict[str, Path] = {}
        shadowed_system: set = set()

        for dist in dists:
            raw_name = _dist_name(dist)
            if not raw_name:
                logger.debug(f"Skipping distribution without a name: {_dist_path(dist)}")
                continue
            identifier = normalize_name(raw_name)
            dist_path = _dist_path(dist)
            location = Path(os.path.realpath(dist_path.parent)) if dist_path else Path()

            if identifier in winners:
                if dist_path and self._is_system_location(location):
                    shadowed_system.add(identifier)
                continue
            winners[identifier] = dist
            locations[identifier] = location

        result = []
        for identifier, dist in winners.items():
            location = locations[identifier]
            flags = 0
            if location.parts and self._is_system_location(location):
                flags |= FLAG_SYSTEM
            elif identifier in shadowed_system:
                flags |= FLAG_UPDATED_SYSTEM
            result.append(
                RegistryEntry(identifier=identifier, location=str(location), flags=flags, ref=dist)
            )

        logger.debug(f"Found {len(result)} Python distributions ({len(dists)} scanned)")
        return result

    def resolve(self, entry: RegistryEntry) -> AppInfo:
        dist = entry.ref
        if dist is None:
            raise EntryResolutionFailure(f"No distribution attached to {entry.identifier}")
        try:
            name = _dist_name(dist)
            version = dist.version or UNKNOWN_VERSION
        except (OSError, ValueError, KeyError) as e:
            raise EntryResolutionFailure(f"Unreadable metadata for {entry.identifier}: {e}") from e
        if not name:
            raise EntryResolutionFailure(f"Missing Name field for {entry.identifier}")

        dist_path = _dist_path(dist)
        installed_at = updated_at = 0
        if dist_path is not None:
            installed_at = _mtime_ms(dist_path / "INSTALLER")
            updated_at = max(
                _mtime_ms(dist_path / "METADATA"),
                _mtime_ms(dist_path / "PKG-INFO"),
                _mtime_ms(dist_path / "RECORD"),
            )

        return AppInfo(
            name=name,
            identifier=entry.identifier,
            version_label=version,
            version_ordinal=version_ordinal(version),
            installed_at=installed_at,
            updated_at=updated_at,
            is_system=entry.is_system,
        )


def _dist_name(dist: Any) -> Optional[str]:
    meta = dist.metadata
    return meta.get("Name") if meta is not None else None


def _dist_path(dist: Any) -> Optional[Path]:
    # PathDistribution keeps its .dist-info / .egg-info directory privately
    path = getattr(dist, "_path", None)
    return Path(path) if path is not None else None


def _default_system_dirs() -> List[Path]:
    """Site directories owned by the base interpreter rather than this environment."""
    if sys.prefix == sys.base_prefix:
        return []
    paths = sysconfig.get_paths(vars={"base": sys.base_prefix, "platbase": sys.base_exec_prefix})
    return [Path(paths["purelib"]), Path(paths["platlib"])]


def parse_control_file(text: str) -> List[Dict[str, str]]:
    """Parse deb822 stanzas ("Key: value" blocks separated by blank lines)."""
    stanzas: List[Dict[str, str]] = []
    current: Dict[str, str] = {}
    last_key: Optional[str] = None

    for line in text.splitlines():
        if not line.strip():
            if current:
                stanzas.append(current)
            current, last_key = {}, None
            continue
        if line[0] in " \t":
            # Continuation of a multi-line field
            if last_key is not None:
                current[last_key] += "\n" + line.strip()
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        last_key = key.strip()
        current[last_key] = value.strip()

    if current:
        stanzas.append(current)
    return stanzas


class DpkgRegistry(BaseRegistry):
    """Installed packages from the Debian package database."""

    name = "dpkg"

    SYSTEM_PRIORITIES = ("required", "important")

    def __init__(self, status_path: Optional[Path] = None, info_dir: Optional[Path] = None):
        status_path = status_path or config.DPKG_STATUS_PATH
        if not status_path:
            raise ConfigError("No dpkg status file configured (set APPLIST_DPKG_STATUS)")
        self.status_path = Path(status_path)
        self.info_dir = Path(info_dir) if info_dir else self.status_path.parent / "info"

    def entries(self) -> List[RegistryEntry]:
        try:
            text = self.status_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise CatalogUnavailable(f"Cannot read dpkg status file {self.status_path}: {e}") from e

        result = []
        seen = set()
        for stanza in parse_control_file(text):
            package = stanza.get("Package")
            if not package or not stanza.get("Status", "").endswith(" installed"):
                continue
            identifier = package
            if stanza.get("Multi-Arch") == "same" and stanza.get("Architecture"):
                identifier = f"{package}:{stanza['Architecture']}"
            if identifier in seen:
                continue
            seen.add(identifier)

            flags = 0
            if (
                stanza.get("Essential", "").lower() == "yes"
                or stanza.get("Priority", "").lower() in self.SYSTEM_PRIORITIES
            ):
                flags |= FLAG_SYSTEM
            result.append(
                RegistryEntry(
                    identifier=identifier,
                    location=str(self.status_path),
                    flags=flags,
                    ref=stanza,
                )
            )

        logger.debug(f"Found {len(result)} installed dpkg packages")
        return result

    def resolve(self, entry: RegistryEntry) -> AppInfo:
        stanza = entry.ref
        if not stanza or not stanza.get("Package"):
            raise EntryResolutionFailure(f"No package record for {entry.identifier}")

        version = stanza.get("Version") or UNKNOWN_VERSION
        list_file = self.info_dir / f"{entry.identifier}.list"

        return AppInfo(
            name=stanza["Package"],
            identifier=entry.identifier,
            version_label=version,
            version_ordinal=version_ordinal(version),
            installed_at=_ctime_ms(list_file),
            updated_at=_mtime_ms(list_file),
            is_system=entry.is_system,
        )


REGISTRIES: Dict[str, Type[BaseRegistry]] = {
    PythonDistributionRegistry.name: PythonDistributionRegistry,
    DpkgRegistry.name: DpkgRegistry,
}


def get_registry(name: str, **kwargs: Any) -> BaseRegistry:
    """Create a registry backend by name ('python' or 'dpkg')."""
    registry_cls = REGISTRIES.get(name.strip().lower())
    if registry_cls is None:
        raise ConfigError(
            f"Unknown registry: {name} (available: {', '.join(sorted(REGISTRIES))})"
        )
    return registry_cls(**kwargs)
