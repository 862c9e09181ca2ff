from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from ..models.config_models import PortalConfig

"""Persisted notification settings.

Read once at init (stored JSON merged over defaults), written on every change.
A missing or corrupt file yields the defaults; a corrupt file is logged, not
raised, and is overwritten by the next save.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "NotificationSettings",
    "SettingsStore",
]


@dataclass(frozen=True)
class NotificationSettings:
    sound_enabled: bool = True
    desktop_enabled: bool = False
    critical_only: bool = False
    feedback_threshold: int = 6
    utilization_threshold: int = 70


_FIELD_NAMES = {f.name for f in fields(NotificationSettings)}


class SettingsStore:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.settings = self.load()

    @classmethod
    def from_config(cls, cfg: PortalConfig) -> SettingsStore:
        return cls(cfg.settings_path)

    def load(self) -> NotificationSettings:
        if not self.path.exists():
            return NotificationSettings()
        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"settings file unreadable, using defaults: {e}")
            return NotificationSettings()
        if not isinstance(stored, dict):
            logger.warning(f"settings file is not an object, using defaults: {self.path}")
            return NotificationSettings()
        known = {k: v for k, v in stored.items() if k in _FIELD_NAMES}
        return replace(NotificationSettings(), **known)

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(self.settings), indent=2), encoding="utf-8")
        return self.path

    def update(self, **changes: Any) -> NotificationSettings:
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise KeyError(f"unknown settings: {sorted(unknown)}")
        self.settings = replace(self.settings, **changes)
        self.save()
        return self.settings
