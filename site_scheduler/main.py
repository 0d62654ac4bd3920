"""Command-line entry point for site and schedule administration."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from site_scheduler.config import AppConfig, ConfigurationError, load_config
from site_scheduler.domain.models import (
    CreateSiteRequest,
    Schedule,
    SitesListOptions,
    UpdateSiteRequest,
)
from site_scheduler.logging import get_logger
from site_scheduler.logging.config import configure_logging
from site_scheduler.persistence.database import close_database, init_database
from site_scheduler.persistence.exceptions import PersistenceError, RecordNotFoundError
from site_scheduler.scheduling.exceptions import InvalidIntervalError
from site_scheduler.scheduling.interval import interval_seconds_to_minutes
from site_scheduler.scheduling.naming import site_id_from_task_name
from site_scheduler.services.site import SiteService

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the site-scheduler command."""
    parser = argparse.ArgumentParser(
        prog="site-scheduler",
        description="Manage monitored sites and keep their recurring schedules in sync",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    resources = parser.add_subparsers(dest="resource", required=True)

    sites = resources.add_parser("sites", help="Create, update, delete and list sites")
    site_commands = sites.add_subparsers(dest="command", required=True)

    create = site_commands.add_parser("create", help="Create a site")
    create.add_argument("--name", required=True)
    create.add_argument("--source-id", required=True)
    create.add_argument("--run-every-minutes", type=int, required=True)
    create.add_argument("--disabled", action="store_true", help="Create the site disabled")
    create.add_argument("--alert-mode", default=None, help="active (default) or muted")
    create.add_argument("--scope", default=None)
    create.add_argument("--http-alert-sink-id", default=None)

    update = site_commands.add_parser("update", help="Update fields of a site")
    update.add_argument("site_id")
    update.add_argument("--name")
    update.add_argument("--source-id")
    update.add_argument("--run-every-minutes", type=int)
    update.add_argument("--alert-mode", help="active or muted")
    update.add_argument("--scope", help="New scope; pass an empty value to clear it")
    update.add_argument(
        "--http-alert-sink-id", help="New alert sink; pass an empty value to clear it"
    )
    toggle = update.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="enabled", action="store_const", const=True)
    toggle.add_argument("--disable", dest="enabled", action="store_const", const=False)

    delete = site_commands.add_parser("delete", help="Delete a site and its schedule")
    delete.add_argument("site_id")

    get = site_commands.add_parser("get", help="Show a site")
    get.add_argument("site_id")

    list_sites = site_commands.add_parser("list", help="List sites")
    list_sites.add_argument("--q", help="Case-insensitive name filter")
    list_sites.add_argument("--scope", help="Exact scope filter")
    enabled_filter = list_sites.add_mutually_exclusive_group()
    enabled_filter.add_argument("--enabled", dest="enabled", action="store_const", const=True)
    enabled_filter.add_argument("--disabled", dest="enabled", action="store_const", const=False)
    list_sites.add_argument("--sort", default="created_at", choices=["created_at", "name"])
    list_sites.add_argument("--dir", default="desc", choices=["asc", "desc"])
    list_sites.add_argument("--limit", type=int, default=50)
    list_sites.add_argument("--offset", type=int, default=0)

    schedules = resources.add_parser("schedules", help="Inspect the schedule store")
    schedule_commands = schedules.add_subparsers(dest="command", required=True)
    schedule_commands.add_parser("list", help="List scheduled jobs")

    return parser


def load_runtime_config(config_path: Optional[Path], log_level_override: Optional[str]) -> AppConfig:
    """
    Load configuration and apply the CLI log level override.

    Priority for log level: CLI > environment > config file > default.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config = load_config(config_path)
    if log_level_override:
        app_config.logging.level = log_level_override.upper()
    return app_config


def schedule_to_dict(schedule: Schedule) -> Dict[str, Any]:
    """Render a schedule row with the site id and minutes it represents."""
    data = schedule.model_dump(mode="json")
    data["site_id"] = site_id_from_task_name(schedule.task_name)
    data["run_every_minutes"] = interval_seconds_to_minutes(schedule.interval_seconds)
    return data


def run_command(args: argparse.Namespace, service: SiteService) -> int:
    """Execute a parsed command against the service and print JSON output."""
    if args.resource == "schedules":
        _print_json([schedule_to_dict(s) for s in service.list_schedules()])
        return EXIT_OK

    if args.command == "create":
        site = service.create(
            CreateSiteRequest(
                name=args.name,
                enabled=not args.disabled,
                run_every_minutes=args.run_every_minutes,
                source_id=args.source_id,
                alert_mode=args.alert_mode,
                scope=args.scope,
                http_alert_sink_id=args.http_alert_sink_id,
            )
        )
        _print_json(site.model_dump(mode="json"))
        return EXIT_OK

    if args.command == "update":
        site = service.update(
            args.site_id,
            UpdateSiteRequest(
                name=args.name,
                enabled=args.enabled,
                run_every_minutes=args.run_every_minutes,
                source_id=args.source_id,
                alert_mode=args.alert_mode,
                scope=args.scope,
                http_alert_sink_id=args.http_alert_sink_id,
            ),
        )
        _print_json(site.model_dump(mode="json"))
        return EXIT_OK

    if args.command == "delete":
        deleted = service.delete(args.site_id)
        _print_json({"id": args.site_id, "deleted": deleted})
        return EXIT_OK if deleted else EXIT_NOT_FOUND

    if args.command == "get":
        _print_json(service.get_by_id(args.site_id).model_dump(mode="json"))
        return EXIT_OK

    sites = service.list(
        SitesListOptions(
            limit=args.limit,
            offset=args.offset,
            q=args.q,
            enabled=args.enabled,
            scope=args.scope,
            sort=args.sort,
            dir=args.dir,
        )
    )
    _print_json([site.model_dump(mode="json") for site in sites])
    return EXIT_OK


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0 success, 1 error, 2 site not found
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        app_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=app_config.logging.level,
            format_type=app_config.logging.format,
            environment=app_config.environment,
        )
        init_database(app_config.database.url, echo=app_config.database.echo)
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except PersistenceError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        return run_command(args, SiteService())
    except ValidationError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return EXIT_ERROR
    except InvalidIntervalError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return EXIT_ERROR
    except RecordNotFoundError as e:
        print(f"Not found: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except PersistenceError as e:
        logger.error(
            f"Command failed: {e}",
            extra={"event": "cli.command_failed", "error_type": type(e).__name__},
        )
        print(f"Storage Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
