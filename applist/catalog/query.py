"""
Text search over a loaded app list.
"""

from typing import List, Sequence

from ..models import AppInfo


def matches(app: AppInfo, query: str) -> bool:
    """True if the query is a case-insensitive substring of the name or identifier."""
    needle = query.casefold()
    return needle in app.name.casefold() or needle in app.identifier.casefold()


def filter_apps(
    apps: Sequence[AppInfo],
    query: str,
    include_system_apps: bool = True,
) -> List[AppInfo]:
    """
    Filter apps by a search query, keeping their input order.

    A blank query returns every app. System apps are excluded when the list
    is loaded, so include_system_apps is not applied again here.
    """
    if not query or not query.strip():
        return list(apps)
    return [app for app in apps if matches(app, query)]
