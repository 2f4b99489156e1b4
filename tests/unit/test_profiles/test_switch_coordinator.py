"""
Unit tests for SwitchCoordinator.

Tests the switch round-trip, pre-validation, rollback on write failure,
active flags, and the published state machine.
"""

from unittest.mock import patch

import pytest

from cfgswitch.models import FULL_MATCH, AccessMode, SwitchState
from cfgswitch.profiles import SwitchCoordinator
from cfgswitch.validation import InvalidProfileContent, ProfileNotFound, SwitchFailed


@pytest.fixture
def coordinator(store):
    return SwitchCoordinator(store)


@pytest.mark.unit
class TestSwitch:
    """Test cases for successful switches."""

    def test_round_trip(self, store, coordinator):
        expected = store.read_content("zeta")

        profile = coordinator.switch("zeta")

        assert profile.name == "zeta"
        assert store.read_content("current") == expected

    def test_switched_profile_becomes_full_match(self, store, coordinator):
        coordinator.switch("zeta")
        assert store.status_for("zeta", ["model"]) == FULL_MATCH

    def test_active_flags(self, store, coordinator):
        coordinator.switch("home")
        coordinator.switch("zeta")
        assert [p.name for p in store.get_profiles() if p.is_active] == ["zeta"]

    def test_state_transitions(self, coordinator):
        assert coordinator.last_state is None
        coordinator.switch("work")
        assert coordinator.last_state is SwitchState.COMMITTED
        assert coordinator.last_transitions == (
            SwitchState.REQUESTED,
            SwitchState.VALIDATING,
            SwitchState.WRITING,
            SwitchState.COMMITTED,
        )

    def test_uses_fresh_file_content(self, store, coordinator, config_dir):
        (config_dir / "work.settings.json").write_text('{"edited": true}')
        coordinator.switch("work")
        assert (config_dir / "settings.json").read_text() == '{"edited": true}'


@pytest.mark.unit
class TestSwitchFailures:
    """Test cases for failed switches; the live file must be untouched."""

    def test_nonexistent_profile(self, coordinator, config_dir):
        live = config_dir / "settings.json"
        before = live.read_bytes()

        with pytest.raises(ProfileNotFound):
            coordinator.switch("nonexistent")

        assert live.read_bytes() == before
        assert coordinator.last_state is SwitchState.ROLLED_BACK
        assert coordinator.last_transitions == (
            SwitchState.REQUESTED,
            SwitchState.VALIDATING,
            SwitchState.ROLLED_BACK,
        )

    def test_current_is_not_a_switch_target(self, coordinator):
        with pytest.raises(ProfileNotFound):
            coordinator.switch("current")

    def test_invalid_content(self, store, coordinator, config_dir):
        (config_dir / "home.settings.json").write_text("not json")
        live = config_dir / "settings.json"
        before = live.read_bytes()

        with pytest.raises(InvalidProfileContent):
            coordinator.switch("home")

        assert live.read_bytes() == before
        assert coordinator.last_state is SwitchState.ROLLED_BACK
        assert store.compare_all(["model"])[0].is_error

    def test_excessively_nested_content(self, store, coordinator, config_dir):
        (config_dir / "home.settings.json").write_text("[" * 100_000 + "]" * 100_000)
        live = config_dir / "settings.json"
        before = live.read_bytes()

        with pytest.raises(InvalidProfileContent) as exc_info:
            coordinator.switch("home")

        assert "too deep" in str(exc_info.value)
        assert live.read_bytes() == before
        assert coordinator.last_state is SwitchState.ROLLED_BACK

    def test_write_failure_rolls_back(self, store, coordinator, config_dir):
        coordinator.switch("work")
        live = config_dir / "settings.json"
        before = live.read_bytes()

        with patch("cfgswitch.profiles.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SwitchFailed) as exc_info:
                coordinator.switch("zeta")

        assert "disk full" in str(exc_info.value)
        assert live.read_bytes() == before
        assert [p.name for p in store.get_profiles() if p.is_active] == ["work"]
        assert sorted(p.name for p in config_dir.iterdir() if p.name.endswith(".tmp")) == []
        assert coordinator.last_transitions[-2:] == (SwitchState.WRITING, SwitchState.ROLLED_BACK)

    def test_unreadable_profile(self, coordinator, config_dir):
        (config_dir / "zeta.settings.json").unlink()
        with pytest.raises(SwitchFailed):
            coordinator.switch("zeta")

    def test_lock_released_after_failure(self, store, coordinator):
        with pytest.raises(ProfileNotFound):
            coordinator.switch("nope")
        with store.access(AccessMode.BEST_EFFORT):
            pass
