"""Domain models for the agency portal.

Covers the tabular import pipeline (rows, records, results), configuration,
the JSON Lines error record and the dashboard alert feed.
"""

from .alert import Alert, AlertSeverity, AlertStatus
from .config_models import DatabaseConfig, PortalConfig, SessionConfig, TableConfig
from .error_record import ErrorRecord
from .import_record import ClientRecord, ClientType, EmployeeRecord, ImportRecord, ImportType
from .import_result import CommitResult, ValidationResult, ValidRow
from .parsed_row import ParsedRow

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "PortalConfig",
    "SessionConfig",
    "TableConfig",
    # Import models
    "ParsedRow",
    "ImportType",
    "ClientType",
    "ClientRecord",
    "EmployeeRecord",
    "ImportRecord",
    "ValidRow",
    "ValidationResult",
    "CommitResult",
    "ErrorRecord",
    # Alerts
    "Alert",
    "AlertSeverity",
    "AlertStatus",
]
