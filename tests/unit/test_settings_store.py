from __future__ import annotations

import json
from pathlib import Path

import pytest

from agency_portal.models.config_models import PortalConfig
from agency_portal.services.settings_store import NotificationSettings, SettingsStore


def test_defaults_when_file_missing(temp_workdir: Path):
    store = SettingsStore(temp_workdir / "config" / "settings.json")
    assert store.settings == NotificationSettings()
    assert store.settings.feedback_threshold == 6
    assert store.settings.utilization_threshold == 70


def test_update_persists_and_reloads(temp_workdir: Path):
    path = temp_workdir / "config" / "settings.json"
    store = SettingsStore(path)
    store.update(sound_enabled=False, utilization_threshold=85)
    assert json.loads(path.read_text(encoding="utf-8"))["utilization_threshold"] == 85
    assert SettingsStore(path).settings.sound_enabled is False


def test_stored_values_merged_over_defaults(temp_workdir: Path):
    path = temp_workdir / "config" / "settings.json"
    path.write_text(json.dumps({"critical_only": True, "legacy_key": 1}), encoding="utf-8")
    settings = SettingsStore(path).settings
    assert settings.critical_only is True
    assert settings.desktop_enabled is False


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_corrupt_file_yields_defaults(temp_workdir: Path, content: str, capsys):
    path = temp_workdir / "config" / "settings.json"
    path.write_text(content, encoding="utf-8")
    assert SettingsStore(path).settings == NotificationSettings()


def test_unknown_key_rejected(temp_workdir: Path):
    store = SettingsStore(temp_workdir / "config" / "settings.json")
    with pytest.raises(KeyError):
        store.update(volume=3)
    assert not store.path.exists()


def test_from_config_uses_settings_path(temp_workdir: Path):
    cfg = PortalConfig(settings_path=temp_workdir / "state" / "notify.json")
    store = SettingsStore.from_config(cfg)
    store.update(critical_only=True)
    assert json.loads((temp_workdir / "state" / "notify.json").read_text(encoding="utf-8"))["critical_only"] is True
