from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from contextlib import ExitStack
from pathlib import Path

import yaml

from agency_portal.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from agency_portal.db.connection import db_connection, load_env_file
from agency_portal.db.table_store import InMemoryTableStore, PostgresTableStore
from agency_portal.logging.error_log import ErrorLogBuffer
from agency_portal.logging.init import log_summary, setup_logging
from agency_portal.models.config_models import PortalConfig
from agency_portal.models.import_record import ImportType
from agency_portal.models.import_result import CommitResult
from agency_portal.services.alerts import AlertError, AlertRepository, notify_trigger_sql
from agency_portal.services.pipeline import ImportSession
from agency_portal.services.settings_store import SettingsStore
from agency_portal.services.summary import render_summary_line
from agency_portal.tabular.reader import ImportFileError, frame_to_rows, read_frame
from agency_portal.tabular.template import write_template

"""CLI entrypoint.

    python -m agency_portal.cli import --type clients clients.xlsx
    python -m agency_portal.cli template --type employees --output ./out
    python -m agency_portal.cli inspect clients.csv
    python -m agency_portal.cli alerts
    python -m agency_portal.cli settings --set sound_enabled=false

Exit codes:
    0  every row valid and committed
    2  validation or commit failures (committed rows stay committed)
    1  fatal: bad config, unsupported or unreadable file
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="agency_portal", description="Agency portal data tools")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    sub = p.add_subparsers(dest="command", required=True)

    types = [t.value for t in ImportType]

    imp = sub.add_parser("import", help="Validate a CSV/Excel file and upsert its rows by email")
    imp.add_argument("file", type=Path)
    imp.add_argument("--type", dest="import_type", choices=types, default=ImportType.CLIENTS.value)
    imp.add_argument("--dry-run", action="store_true", help="Validate and commit to an in-memory store only")
    imp.add_argument(
        "--skip-invalid", action="store_true", help="Commit valid rows even if other rows failed validation"
    )

    tpl = sub.add_parser("template", help="Write an .xlsx import template")
    tpl.add_argument("--type", dest="import_type", choices=types, default=ImportType.CLIENTS.value)
    tpl.add_argument("--output", type=Path, default=Path("."))

    ins = sub.add_parser("inspect", help="Print parsed header and first rows, then exit")
    ins.add_argument("file", type=Path)
    ins.add_argument("--rows", type=int, default=3)

    alerts = sub.add_parser("alerts", help="List dashboard alerts, newest first")
    alerts.add_argument(
        "--install-trigger", action="store_true", help="Install the NOTIFY trigger on the alerts table first"
    )

    st = sub.add_parser("settings", help="Show or change notification settings")
    st.add_argument("--set", dest="changes", action="append", default=[], metavar="KEY=VALUE")
    return p.parse_args(argv)


def _load_portal_config(path: Path | None) -> PortalConfig:
    """Explicit --config must exist; the default path is optional."""
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return PortalConfig()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def _inspect(path: Path, limit: int) -> int:
    logger = setup_logging()
    try:
        rows = frame_to_rows(read_frame(path), path.suffix.lower().lstrip("."))
    except ImportFileError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    headers = list(rows[0].fields) if rows else []
    print(f"FILE: {path.name} rows={len(rows)} cols={headers}")
    for row in rows[:limit]:
        print(f"  row {row.row_index}: {row.fields}")
    return EXIT_SUCCESS_ALL


def _list_alerts(cfg: PortalConfig, install_trigger: bool) -> int:
    logger = setup_logging()
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.error("alerts: database connection disabled (DISABLE_DB_CONNECT=1)")
        return EXIT_FATAL
    try:
        with db_connection(cfg.database) as conn, conn.cursor() as cur:
            if install_trigger:
                cur.execute(notify_trigger_sql(cfg.tables.alerts))
                logger.info(f"notify trigger installed on {cfg.tables.alerts}")
            alerts = AlertRepository.from_config(cur, cfg.tables).list_alerts()
    except AlertError as e:
        logger.error(f"alerts: {e}")
        return EXIT_FATAL
    except Exception as e:
        logger.error(f"alerts: DB connection failed: {e}")
        return EXIT_FATAL
    for alert in alerts:
        created = alert.created_at.isoformat() if alert.created_at else "-"
        print(f"{created} {alert.severity.value} {alert.status.value} {alert.client_name}: {alert.title}")
    logger.info(f"{len(alerts)} alert(s)")
    return EXIT_SUCCESS_ALL


def _settings(cfg: PortalConfig, changes: list[str]) -> int:
    logger = setup_logging()
    store = SettingsStore.from_config(cfg)
    if changes:
        parsed: dict[str, object] = {}
        for item in changes:
            key, sep, raw = item.partition("=")
            if not sep:
                logger.error(f"settings: expected KEY=VALUE, got {item!r}")
                return EXIT_FATAL
            # "false" -> False, "80" -> 80
            parsed[key.strip()] = yaml.safe_load(raw)
        try:
            store.update(**parsed)
        except KeyError as e:
            logger.error(f"settings: {e.args[0]}")
            return EXIT_FATAL
        logger.info(f"settings saved: {store.path}")
    for name, value in dataclasses.asdict(store.settings).items():
        print(f"{name}={value}")
    return EXIT_SUCCESS_ALL


def _run_import(args: argparse.Namespace, cfg: PortalConfig) -> int:
    logger = setup_logging()
    import_type = ImportType(args.import_type)
    error_log = ErrorLogBuffer(cfg.logs_directory)

    # DB 接続を完全に無効化したい場合 DISABLE_DB_CONNECT=1 (テスト等)
    use_db = not args.dry_run and os.getenv("DISABLE_DB_CONNECT") != "1"

    with ExitStack() as stack:
        store: PostgresTableStore | InMemoryTableStore
        db_mode = "mock"
        if use_db:
            try:
                conn = stack.enter_context(db_connection(cfg.database))
                store = PostgresTableStore(stack.enter_context(conn.cursor()))
                db_mode = "live"
            except Exception as db_e:
                if os.getenv("SUPPRESS_DB_WARNING") == "1":
                    logger.debug(f"DB connection failed -> fallback to mock mode: {db_e}")
                else:
                    logger.warning(f"DB connection failed -> fallback to mock mode: {db_e}")
                store = InMemoryTableStore()
        else:
            store = InMemoryTableStore()

        session = ImportSession(store, import_type=import_type, tables=cfg.tables, error_log=error_log)
        logger.info(f"Importing {import_type.value} from: {args.file} (mode={db_mode})")

        try:
            validation = session.select_file(args.file)
        except ImportFileError as e:
            logger.error(f"Failed to parse file: {e}")
            _flush(error_log)
            return EXIT_FATAL

        for message in validation.errors:
            logger.warning(message)

        commit: CommitResult | None = None
        if not validation.valid:
            logger.error("No valid data to import")
        elif validation.errors and not args.skip_invalid:
            logger.error(
                f"{len(validation.errors)} validation error(s) found; nothing committed "
                "(use --skip-invalid to import the valid rows)"
            )
        else:
            commit = session.commit(skip_invalid=args.skip_invalid)
            for message in commit.errors:
                logger.error(message)

    _flush(error_log)
    summary_line = render_summary_line(import_type.value, validation, commit)
    log_summary(summary_line[len("SUMMARY "):])

    if validation.errors or commit is None or commit.errors:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _flush(error_log: ErrorLogBuffer) -> None:
    logger = setup_logging()
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed to write error log: {e}")
        return
    if path is not None:
        logger.info(f"error log written: {path}")


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む (テストで main([]) を呼べるように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_portal_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "template":
        path = write_template(ImportType(args.import_type), args.output)
        logger.info(f"template written: {path}")
        return EXIT_SUCCESS_ALL
    if args.command == "inspect":
        return _inspect(args.file, args.rows)
    if args.command == "alerts":
        return _list_alerts(cfg, args.install_trigger)
    if args.command == "settings":
        return _settings(cfg, args.changes)
    return _run_import(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
