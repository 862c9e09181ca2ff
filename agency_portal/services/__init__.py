from .alerts import AlertError, AlertRepository, AlertSubscription
from .commit import commit_records
from .pipeline import ImportBlockedError, ImportSession, NothingToImportError
from .settings_store import NotificationSettings, SettingsStore
from .validation import validate_rows

__all__ = [
    "AlertError",
    "AlertRepository",
    "AlertSubscription",
    "ImportBlockedError",
    "ImportSession",
    "NothingToImportError",
    "NotificationSettings",
    "SettingsStore",
    "commit_records",
    "validate_rows",
]
