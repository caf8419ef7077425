"""
Custom exception hierarchy for AppList.

All project-specific exceptions inherit from AppListError.
"""


class AppListError(Exception):
    """Base exception for AppList."""

    pass


class ConfigError(AppListError):
    """Invalid or missing configuration."""

    pass


class CatalogUnavailable(AppListError):
    """The application registry could not be read at all."""

    pass


class EntryResolutionFailure(AppListError):
    """Details for a single registry entry could not be resolved."""

    pass


class ExportWriteFailure(AppListError):
    """Error creating the export directory or writing an artifact."""

    pass


class ShareFailure(AppListError):
    """Handing an artifact to the share mechanism failed."""

    pass
