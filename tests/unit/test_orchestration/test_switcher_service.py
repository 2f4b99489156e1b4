"""
Unit tests for AppContext wiring and the SwitcherService facade.
"""

import json
from pathlib import Path

import pytest

from cfgswitch.config import SettingsManager
from cfgswitch.models import AccessMode
from cfgswitch.orchestration import AppContext, SwitcherService
from cfgswitch.validation import Busy, ProfileNotFound


@pytest.fixture
def service(config_dir, settings_manager):
    svc = SwitcherService(AppContext.create(config_dir, settings_manager))
    svc.store.scan()
    yield svc
    svc.shutdown()


@pytest.mark.unit
class TestAppContext:
    """Test cases for building the application context."""

    def test_components_share_watcher_and_channel(self, config_dir, settings_manager):
        context = AppContext.create(config_dir, settings_manager)

        assert context.store.watcher is context.watcher
        assert context.watcher.channel is context.channel
        assert context.dispatcher.channel is context.channel
        assert context.coordinator.store is context.store

    def test_settings_applied_to_watcher(self, config_dir, settings_file):
        path = settings_file({"settings": {
            "monitor_interval_minutes": 2,
            "max_scan_errors": 7,
            "cache_size_limit": 20,
        }})
        context = AppContext.create(config_dir, SettingsManager(path))

        stats = context.watcher.get_stats()
        assert stats.interval_minutes == 2
        assert stats.max_scan_errors == 7
        assert stats.cache_size_limit == 20

    def test_bad_settings_fall_back_to_defaults(self, config_dir, settings_file):
        path = settings_file({"settings": {"max_scan_errors": "many"}})
        context = AppContext.create(config_dir, SettingsManager(path))
        assert context.watcher.max_scan_errors == 5


@pytest.mark.unit
class TestSwitcherService:
    """Test cases for the operations exposed to collaborators."""

    def test_list_profiles(self, service):
        assert [i.id for i in service.list_profiles()] == ["current", "home", "work", "zeta"]

    def test_get_status_icons(self, service):
        assert service.get_status("current") == ""
        assert service.get_status("home") == "🔄"
        assert service.get_status("work") == "✅"
        assert service.get_status("zeta") == ""

    def test_get_status_uses_given_ignored_fields(self, service):
        assert service.get_status("home", ignored_fields=[]) == ""

    def test_get_status_error_icon(self, service, config_dir):
        (config_dir / "zeta.settings.json").write_text("{broken")
        assert service.get_status("zeta") == "❌"

    def test_get_status_unknown(self, service):
        with pytest.raises(ProfileNotFound):
            service.get_status("nope")

    def test_busy_while_locked(self, service):
        with service.store.access(AccessMode.CONSISTENT):
            with pytest.raises(Busy) as exc_info:
                service.get_status("work")
        assert "try again" in str(exc_info.value)

    def test_switch_round_trip(self, service):
        expected = service.read_content("home")
        service.switch("home")
        assert service.read_content("current") == expected
        assert service.get_status("home") == "✅"
        assert service.profiles_info()["active_profile"] == "home"

    def test_create_save_delete(self, service, config_dir):
        path = service.create("extra", '{"a": 1}')
        assert json.loads(Path(path).read_text()) == {"a": 1}

        service.save_content("extra", '{"a": 2}')
        assert service.read_content("extra") == '{"a": 2}'

        service.delete("extra")
        assert "extra" not in [i.id for i in service.list_profiles()]

    def test_create_from_current(self, service, config_dir):
        service.create_from_current("snapshot")
        assert service.get_status("snapshot") == "✅"

    def test_validate_json(self, service):
        assert service.validate_json('{"a": 1}') == {"is_valid": True, "errors": []}
        result = service.validate_json("[1]")
        assert result["is_valid"] is False
        assert result["errors"][0]["error_type"] == "semantic"

    def test_profiles_info(self, service, config_dir):
        info = service.profiles_info()
        assert info["config_dir"] == str(config_dir)
        assert info["profile_count"] == 3
        assert info["monitoring"] is False
        assert info["active_profile"] is None

    def test_monitoring_lifecycle(self, service):
        service.start_monitoring()
        assert service.monitoring_stats().is_running
        assert service.context.dispatcher.is_running

        service.stop_monitoring()
        assert not service.monitoring_stats().is_running
        assert not service.context.dispatcher.is_running

    def test_initialize_respects_auto_start(self, service):
        service.context.settings.update_auto_start_monitoring(False)
        service.initialize()
        assert not service.monitoring_stats().is_running

        service.context.settings.update_auto_start_monitoring(True)
        service.initialize()
        assert service.monitoring_stats().is_running

    def test_update_monitor_interval(self, service):
        settings = service.update_monitor_interval(0.5)
        assert settings.monitor_interval_minutes == 0.5
        assert service.monitoring_stats().interval_minutes == 0.5
        assert service.context.settings.current().monitor_interval_minutes == 0.5

    def test_ignored_fields_follow_settings(self, service):
        service.update_ignored_fields(["theme"])
        assert service.get_status("home") == ""
        assert service.get_status("zeta") == "🔄"
        service.update_ignored_fields(["theme", "model"])
        assert service.get_status("home") == "🔄"
        service.update_ignored_fields([])
        assert service.get_status("zeta") == ""
        service.reset_ignored_fields()
        assert service.get_status("home") == "🔄"

    def test_refresh_returns_snapshot(self, service):
        snapshot = service.refresh()
        assert [s.icon for s in snapshot.statuses] == ["🔄", "✅", ""]
