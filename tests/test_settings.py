"""Tests for YAML settings loading and session wiring."""

from pathlib import Path

import pytest
import yaml

import config
from applist.catalog.registry import DpkgRegistry, PythonDistributionRegistry
from applist.models import ExportFormat
from applist.session import AppListSession
from applist.settings import AppListSettings
from utils.exceptions import ConfigError


def _write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults_come_from_config(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(config, "EXPORT_DIR", tmp_path / "out")
        monkeypatch.setattr(config, "REGISTRY", "dpkg")
        monkeypatch.setattr(config, "INCLUDE_SYSTEM_APPS", True)
        monkeypatch.setattr(config, "SHARE_COMMAND", "mailer {path}")

        settings = AppListSettings()

        assert settings.export_dir == tmp_path / "out"
        assert settings.registry == "dpkg"
        assert settings.include_system_apps is True
        assert settings.share_command == "mailer {path}"
        assert settings.default_format is ExportFormat.JSON

    def test_unknown_registry_rejected(self) -> None:
        with pytest.raises(ConfigError, match="Unknown registry"):
            AppListSettings(registry="rpm")


class TestFromYaml:
    def test_loads_values(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "applist.yaml", {
            "export_dir": str(tmp_path / "exports"),
            "registry": "dpkg",
            "include_system_apps": True,
            "default_format": "csv",
            "share_command": "mailer {path}",
            "dpkg_status_path": str(tmp_path / "status"),
        })

        settings = AppListSettings.from_yaml(path)

        assert settings.export_dir == tmp_path / "exports"
        assert settings.registry == "dpkg"
        assert settings.include_system_apps is True
        assert settings.default_format is ExportFormat.CSV
        assert settings.share_command == "mailer {path}"
        assert settings.dpkg_status_path == tmp_path / "status"

    def test_partial_file_keeps_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(config, "REGISTRY", "python")
        path = _write_yaml(tmp_path / "applist.yaml", {"default_format": "TXT"})

        settings = AppListSettings.from_yaml(path)

        assert settings.default_format is ExportFormat.TXT
        assert settings.registry == "python"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "applist.yaml"
        path.write_text("")
        assert isinstance(AppListSettings.from_yaml(path), AppListSettings)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            AppListSettings.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "applist.yaml"
        path.write_text("registry: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            AppListSettings.from_yaml(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "applist.yaml", ["json", "csv"])
        with pytest.raises(ConfigError, match="mapping"):
            AppListSettings.from_yaml(path)

    def test_bad_format(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "applist.yaml", {"default_format": "xml"})
        with pytest.raises(ConfigError):
            AppListSettings.from_yaml(path)

    def test_bad_registry(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "applist.yaml", {"registry": "rpm"})
        with pytest.raises(ConfigError, match="Unknown registry"):
            AppListSettings.from_yaml(path)


class TestWiring:
    def test_dpkg_registry_uses_status_path(self, tmp_path: Path) -> None:
        settings = AppListSettings(registry="dpkg", dpkg_status_path=tmp_path / "status")
        registry = settings.build_registry()
        assert isinstance(registry, DpkgRegistry)
        assert registry.status_path == tmp_path / "status"

    def test_python_registry(self) -> None:
        assert isinstance(
            AppListSettings(registry="python").build_registry(), PythonDistributionRegistry
        )

    def test_build_session(self, tmp_path: Path) -> None:
        settings = AppListSettings(
            registry="dpkg",
            dpkg_status_path=tmp_path / "status",
            include_system_apps=True,
            export_dir=tmp_path / "exports",
        )
        session = settings.build_session()
        assert isinstance(session, AppListSession)
        assert session.state.include_system_apps is True
