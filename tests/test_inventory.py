"""Tests for installed-application and autostart inventories."""

import pytest

from startupmanager.config import Settings
from startupmanager.discovery.inventory import (
    find_entry,
    list_all_autostart,
    list_autostart,
    list_installed,
)
from startupmanager.discovery.paths import DirectoryScope
from startupmanager.scanners.desktop_entries import read_entries

from conftest import write_entry


@pytest.fixture
def apps(xdg):
    """The first two installed-application directories, in precedence order."""
    return xdg["data_home"] / "applications", xdg["system_data"] / "applications"


class TestListInstalled:
    def test_first_directory_wins_on_duplicate_id(self, settings, apps):
        user_apps, system_apps = apps
        write_entry(user_apps, "editor.desktop", Name="User Editor", Exec="editor --user")
        write_entry(system_apps, "editor.desktop", Name="System Editor", Exec="editor")

        entries = list_installed([], settings)

        assert len(entries) == 1
        assert entries[0].name() == "User Editor"
        assert entries[0].path == user_apps / "editor.desktop"

    def test_duplicate_flatpak_ids_collapse(self, settings, apps):
        user_apps, system_apps = apps
        write_entry(user_apps, "firefox.desktop", Name="Firefox",
                    Exec="flatpak run org.mozilla.firefox", **{"X-Flatpak": "org.mozilla.firefox"})
        write_entry(system_apps, "org.mozilla.firefox.desktop", Name="Firefox (system)",
                    Exec="flatpak run org.mozilla.firefox", **{"X-Flatpak": "org.mozilla.firefox"})

        entries = list_installed([], settings)

        assert [e.id for e in entries] == ["org.mozilla.firefox"]
        assert entries[0].appid == "firefox"

    def test_entries_without_exec_are_dropped(self, settings, apps):
        write_entry(apps[0], "noexec.desktop", Name="No Exec")
        write_entry(apps[0], "ok.desktop", Name="Ok", Exec="ok")

        assert [e.id for e in list_installed([], settings)] == ["ok"]

    def test_applets_are_dropped(self, settings, apps):
        write_entry(apps[0], "applet.desktop", Name="Applet", Exec="applet",
                    **{"X-CosmicApplet": "true"})

        assert list_installed([], settings) == []

    def test_filtered_entry_does_not_shadow_later_duplicate(self, settings, apps):
        user_apps, system_apps = apps
        write_entry(user_apps, "tool.desktop", Name="Tool override")
        write_entry(system_apps, "tool.desktop", Name="Tool", Exec="tool")

        entries = list_installed([], settings)

        assert [e.name() for e in entries] == ["Tool"]

    def test_only_show_in_other_desktop_is_hidden(self, xdg, apps):
        write_entry(apps[0], "kde-only.desktop", Name="KDE Only", Exec="kapp", OnlyShowIn="KDE;")
        settings = Settings(environ={**xdg["environ"], "XDG_SESSION_DESKTOP": "GNOME"})

        assert list_installed([], settings) == []

    def test_only_show_in_without_session_is_shown(self, settings, apps):
        write_entry(apps[0], "kde-only.desktop", Name="KDE Only", Exec="kapp", OnlyShowIn="KDE;")

        assert [e.id for e in list_installed([], settings)] == ["kde-only"]

    def test_not_show_in_current_desktop_is_hidden(self, xdg, apps):
        write_entry(apps[0], "no-gnome.desktop", Name="Not GNOME", Exec="x", NotShowIn="GNOME;")
        write_entry(apps[0], "gnome.desktop", Name="GNOME", Exec="y", OnlyShowIn="GNOME;KDE;")
        settings = Settings(environ={**xdg["environ"], "XDG_SESSION_DESKTOP": "GNOME"})

        assert [e.id for e in list_installed([], settings)] == ["gnome"]

    def test_discovery_order_is_kept(self, settings, apps):
        user_apps, system_apps = apps
        write_entry(user_apps, "zeta.desktop", Name="Zeta", Exec="z")
        write_entry(system_apps, "alpha.desktop", Name="Alpha", Exec="a")

        assert [e.id for e in list_installed([], settings)] == ["zeta", "alpha"]


class TestListAutostart:
    def test_sorted_by_display_name_case_sensitive(self, settings, user_autostart):
        write_entry(user_autostart, "z.desktop", Name="Zeta", Exec="z")
        write_entry(user_autostart, "a.desktop", Name="alpha", Exec="a")
        write_entry(user_autostart, "b.desktop", Name="Beta", Exec="b")

        entries = list_autostart(DirectoryScope.USER, [], settings)

        assert [e.name() for e in entries] == ["Beta", "Zeta", "alpha"]

    def test_sorts_by_localized_name(self, settings, user_autostart):
        write_entry(user_autostart, "a.desktop", Name="Apple", Exec="a", **{"Name[de]": "Zucker"})
        write_entry(user_autostart, "b.desktop", Name="Banana", Exec="b")

        entries = list_autostart(DirectoryScope.USER, ["de"], settings)

        assert [e.id for e in entries] == ["b", "a"]

    def test_empty_directory(self, settings, user_autostart):
        user_autostart.mkdir(parents=True)

        assert list_autostart(DirectoryScope.USER, [], settings) == []

    def test_missing_directory(self, settings):
        assert list_autostart(DirectoryScope.USER, [], settings) == []

    def test_no_visibility_filtering(self, xdg, user_autostart):
        write_entry(user_autostart, "kde.desktop", Name="KDE", Exec="k", OnlyShowIn="KDE;")
        write_entry(user_autostart, "noexec.desktop", Name="No Exec")
        write_entry(user_autostart, "applet.desktop", Name="Applet", Exec="p",
                    **{"X-CosmicApplet": "true"})
        settings = Settings(environ={**xdg["environ"], "XDG_SESSION_DESKTOP": "GNOME"})

        entries = list_autostart(DirectoryScope.USER, [], settings)

        assert sorted(e.id for e in entries) == ["applet", "kde", "noexec"]

    def test_system_scope_reads_every_config_dir(self, tmp_path):
        first = tmp_path / "xdg-a"
        second = tmp_path / "xdg-b"
        write_entry(first / "autostart", "one.desktop", Name="One", Exec="1")
        write_entry(second / "autostart", "two.desktop", Name="Two", Exec="2")
        settings = Settings(environ={"HOME": str(tmp_path), "XDG_CONFIG_DIRS": f"{first}:{second}"})

        entries = list_autostart(DirectoryScope.SYSTEM, [], settings)

        assert [e.id for e in entries] == ["one", "two"]

    def test_duplicate_across_config_dirs_listed_once(self, tmp_path):
        first = tmp_path / "xdg-a"
        second = tmp_path / "xdg-b"
        write_entry(first / "autostart", "same.desktop", Name="Same", Exec="first")
        write_entry(second / "autostart", "same.desktop", Name="Same", Exec="second")
        settings = Settings(environ={"HOME": str(tmp_path), "XDG_CONFIG_DIRS": f"{first}:{second}"})

        entries = list_autostart(DirectoryScope.SYSTEM, [], settings)

        assert [e.id for e in entries] == ["same"]
        assert entries[0].exec_cmd == "first"
        assert entries[0].path == first / "autostart" / "same.desktop"

    def test_all_scopes(self, settings, xdg, user_autostart):
        write_entry(user_autostart, "mine.desktop", Name="Mine", Exec="m")
        write_entry(xdg["system_config"] / "autostart", "theirs.desktop", Name="Theirs", Exec="t")

        inventories = list_all_autostart([], settings)

        assert [e.id for e in inventories[DirectoryScope.USER]] == ["mine"]
        assert [e.id for e in inventories[DirectoryScope.SYSTEM]] == ["theirs"]


def test_find_entry_prefers_id_then_appid(tmp_path):
    write_entry(tmp_path, "firefox.desktop", Name="Firefox", **{"X-Flatpak": "org.mozilla.firefox"})
    write_entry(tmp_path, "org.mozilla.firefox.desktop", Name="Other")

    entries = list(read_entries([tmp_path]))

    assert find_entry(entries, "org.mozilla.firefox").appid == "firefox"
    assert find_entry(entries, "firefox").appid == "firefox"
    assert find_entry(entries, "missing") is None
