"""
Core data types shared by the catalog, export and session layers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class AppInfo:
    """One installed application record.

    Timestamps are milliseconds since the Unix epoch; 0 means unknown.
    """

    name: str
    identifier: str
    version_label: str = UNKNOWN_VERSION
    version_ordinal: int = 0
    installed_at: int = 0
    updated_at: int = 0
    is_system: bool = False
    icon: Optional[Any] = None

    @property
    def has_icon(self) -> bool:
        return self.icon is not None


class ExportFormat(Enum):
    """Export formats with their file extension and MIME type."""

    JSON = ("json", "application/json")
    CSV = ("csv", "text/csv")
    TXT = ("txt", "text/plain")

    def __init__(self, extension: str, mime_type: str):
        self.extension = extension
        self.mime_type = mime_type

    @classmethod
    def from_name(cls, name: str) -> "ExportFormat":
        """Look up a format by extension or member name (case-insensitive)."""
        key = name.strip().lower()
        for fmt in cls:
            if key in (fmt.extension, fmt.name.lower()):
                return fmt
        raise ValueError(f"Unknown export format: {name}")


@dataclass(frozen=True)
class ExportResult:
    """Outcome of one export; failures carry an error instead of raising."""

    success: bool
    file_path: Optional[str] = None
    error: Optional[str] = None
    exported_count: int = 0
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class ShareResult:
    """Outcome of a best-effort share hand-off. Callers may ignore it."""

    success: bool
    error: Optional[str] = None
