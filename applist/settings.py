"""
Settings

Optional YAML settings file layered over the environment defaults from
config.py, plus the wiring that turns settings into a ready session.

Example applist.yaml:
    export_dir: ~/Exports/apps
    registry: dpkg
    include_system_apps: true
    default_format: csv
    share_command: "thunderbird -compose attachment={path}"
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

import config
from utils.exceptions import ConfigError

from .catalog import BaseRegistry, CatalogSource, get_registry
from .catalog.registry import REGISTRIES
from .export import ExportConfig, ExportPipeline
from .models import ExportFormat
from .session import AppListSession

logger = logging.getLogger(__name__)


@dataclass
class AppListSettings:
    """Resolved application settings."""

    export_dir: Path = field(default_factory=lambda: config.EXPORT_DIR)
    registry: str = field(default_factory=lambda: config.REGISTRY)
    include_system_apps: bool = field(default_factory=lambda: config.INCLUDE_SYSTEM_APPS)
    default_format: ExportFormat = ExportFormat.JSON
    share_command: Optional[str] = field(default_factory=lambda: config.SHARE_COMMAND)
    dpkg_status_path: Optional[Path] = field(default_factory=lambda: config.DPKG_STATUS_PATH)

    def __post_init__(self) -> None:
        if self.registry.strip().lower() not in REGISTRIES:
            raise ConfigError(
                f"Unknown registry: {self.registry} (available: {', '.join(sorted(REGISTRIES))})"
            )

    @classmethod
    def from_yaml(cls, path: Path) -> "AppListSettings":
        """Load settings from a YAML file; keys not in the file keep their defaults.

        Raises:
            ConfigError: If the file is missing, malformed or has invalid values.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Settings file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")

        kwargs: Dict[str, Any] = {}
        if data.get("export_dir"):
            kwargs["export_dir"] = Path(data["export_dir"]).expanduser()
        if data.get("registry"):
            kwargs["registry"] = str(data["registry"])
        if "include_system_apps" in data:
            kwargs["include_system_apps"] = bool(data["include_system_apps"])
        if data.get("default_format"):
            try:
                kwargs["default_format"] = ExportFormat.from_name(str(data["default_format"]))
            except ValueError as e:
                raise ConfigError(str(e)) from e
        if "share_command" in data:
            kwargs["share_command"] = data["share_command"] or None
        if data.get("dpkg_status_path"):
            kwargs["dpkg_status_path"] = Path(data["dpkg_status_path"]).expanduser()

        logger.debug(f"Loaded settings from {path}: {sorted(kwargs)}")
        return cls(**kwargs)

    def build_registry(self) -> BaseRegistry:
        if self.registry.strip().lower() == "dpkg":
            return get_registry("dpkg", status_path=self.dpkg_status_path)
        return get_registry(self.registry)

    def build_session(self) -> AppListSession:
        """Wire registry, catalog source and export pipeline into a session."""
        pipeline = ExportPipeline(
            ExportConfig(export_dir=self.export_dir, share_command=self.share_command)
        )
        return AppListSession(
            source=CatalogSource(self.build_registry()),
            pipeline=pipeline,
            include_system_apps=self.include_system_apps,
        )
