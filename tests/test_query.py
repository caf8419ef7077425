"""Tests for query filtering."""

import pytest
from conftest import make_app

from applist.catalog import filter_apps

APPS = [
    make_app("alpha", "com.alpha"),
    make_app("Beta", "net.beta"),
    make_app("Zeta", "org.zeta"),
    make_app("Mail", "com.example.MAILER"),
]


class TestFilterApps:
    @pytest.mark.parametrize("query", ["", "   ", "\t"])
    def test_blank_query_returns_everything(self, query: str) -> None:
        assert filter_apps(APPS, query) == APPS

    def test_name_match_case_insensitive(self) -> None:
        assert [a.name for a in filter_apps(APPS, "BETA")] == ["Beta"]

    def test_identifier_match(self) -> None:
        assert [a.name for a in filter_apps(APPS, "mailer")] == ["Mail"]
        assert [a.name for a in filter_apps(APPS, "org.")] == ["Zeta"]

    def test_all_names_containing_a(self) -> None:
        result = filter_apps(APPS[:3], "a")
        assert [a.name for a in result] == ["alpha", "Beta", "Zeta"]

    def test_no_match(self) -> None:
        assert filter_apps(APPS, "nothing-here") == []

    def test_system_flag_not_reapplied(self) -> None:
        apps = [make_app("Shell", "sys.shell", is_system=True)]
        assert filter_apps(apps, "shell", include_system_apps=False) == apps

    @pytest.mark.parametrize("query", ["a", "E", "com", "ta", "x"])
    def test_result_is_ordered_subsequence(self, query: str) -> None:
        result = filter_apps(APPS, query)
        positions = [APPS.index(app) for app in result]
        assert positions == sorted(positions)
        for app in result:
            needle = query.lower()
            assert needle in app.name.lower() or needle in app.identifier.lower()

    def test_input_not_modified(self) -> None:
        apps = list(APPS)
        filter_apps(apps, "a")
        assert apps == APPS
