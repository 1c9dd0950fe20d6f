"""
safeTicket sync command line

Operator commands for the ticket-exchange tables: migrate the legacy dataset,
verify the read path, and inspect a table.
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Any

from dotenv import load_dotenv

from .core.config_loader import KeyTier, SafeTicketConfig, load_config
from .core.exceptions import ConfigurationError, RemoteOperationError, SourceDataError
from .core.logging_config import get_logger, setup_logging
from .core.rest_client import TableClient
from .core.source import load_source_dataset
from .services.migration import DataMigrator, export_pending_schedules
from .services.verification import TableVerifier

COMMAND_KEY_TIERS: dict[str, KeyTier] = {
    "migrate": "service_role",
    "verify": "publishable",
    "inspect": "publishable",
}


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or greater: {value}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    load_dotenv()

    default_log_level = os.getenv("LOG_LEVEL", "INFO")

    parser = argparse.ArgumentParser(
        prog="safeticket-sync", description="safeTicket table migration and checks"
    )
    parser.add_argument("--config", default=None, help="Configuration file path")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--log-dir", default=os.getenv("LOG_DIR"), help="Write a JSON log file here"
    )
    parser.add_argument(
        "--validate-config", action="store_true", help="Validate configuration and exit"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser(
        "migrate", help="Copy the legacy dataset into the remote tables"
    )
    migrate.add_argument("--source", default=None, help="Legacy dataset (YAML or JSON)")
    migrate.add_argument(
        "--dry-run", action="store_true", help="Map and log rows without inserting them"
    )
    migrate.add_argument(
        "--pending-schedules-out",
        default=None,
        help="Write the schedules that were not migrated to this YAML file",
    )

    verify = subparsers.add_parser("verify", help="Fetch a few sales rows")
    verify.add_argument(
        "--limit", type=_non_negative_int, default=3, help="Number of rows to fetch"
    )

    inspect = subparsers.add_parser("inspect", help="Fetch a table and summarize it")
    inspect.add_argument("table", help="Table name, e.g. cambios")
    inspect.add_argument("--order", default=None, help="Column to order by")
    inspect.add_argument("--desc", action="store_true", help="Order descending")
    inspect.add_argument(
        "--limit", type=_non_negative_int, default=None, help="Maximum rows to fetch"
    )
    inspect.add_argument(
        "--keys", action="store_true", help="Show the first row's keys instead of the row"
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(log_dir=args.log_dir, log_level=args.log_level)
    logger = get_logger("cli")

    try:
        config = load_config(args.config)
        config.log_level = args.log_level
        tier = COMMAND_KEY_TIERS[args.command]

        if args.validate_config:
            _validate_config(config, tier)
            logger.info("Configuration is valid", command=args.command, key_tier=tier)
            return 0

        return asyncio.run(_dispatch(args, config))
    except (ConfigurationError, SourceDataError) as e:
        logger.error("Cannot start", command=args.command, error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


def _validate_config(config: SafeTicketConfig, tier: KeyTier) -> None:
    config.supabase.rest_url()
    config.supabase.key_for(tier)


def _make_client(config: SafeTicketConfig, tier: KeyTier) -> TableClient:
    return TableClient(
        config.supabase.rest_url(),
        config.supabase.key_for(tier),
        timeout=config.supabase.timeout,
    )


async def _dispatch(args: argparse.Namespace, config: SafeTicketConfig) -> int:
    if args.command == "migrate":
        return await run_migrate(args, config)
    if args.command == "verify":
        return await run_verify(args, config)
    return await run_inspect(args, config)


async def run_migrate(args: argparse.Namespace, config: SafeTicketConfig) -> int:
    """Migrate the legacy dataset. Step failures are logged, not turned into an exit code."""
    source = args.source or config.source_data
    if not source:
        raise ConfigurationError(
            "No source dataset given (use --source or set SAFETICKET_SOURCE_DATA)"
        )
    dataset = load_source_dataset(source)

    if args.dry_run:
        report = await DataMigrator(None, dataset, dry_run=True).run()
    else:
        async with _make_client(config, "service_role") as client:
            report = await DataMigrator(client, dataset).run()

    if args.pending_schedules_out:
        try:
            export_pending_schedules(report, args.pending_schedules_out)
        except OSError as e:
            get_logger("cli").error(
                "Failed to export pending schedules",
                path=args.pending_schedules_out,
                error=str(e),
            )

    _print_json(report.summary())
    return 0


async def run_verify(args: argparse.Namespace, config: SafeTicketConfig) -> int:
    logger = get_logger("cli")
    async with _make_client(config, "publishable") as client:
        try:
            rows = await TableVerifier(client).sample_sales(limit=args.limit)
        except RemoteOperationError as e:
            logger.error("Error fetching data", **e.log_context())
            return 0

    logger.info("Successfully fetched data", rows=len(rows))
    _print_json(rows)
    return 0


async def run_inspect(args: argparse.Namespace, config: SafeTicketConfig) -> int:
    logger = get_logger("cli")
    async with _make_client(config, "publishable") as client:
        try:
            snapshot = await TableVerifier(client).inspect_table(
                args.table, order_by=args.order, ascending=not args.desc, limit=args.limit
            )
        except RemoteOperationError as e:
            logger.error("Fetch Error", **e.log_context())
            return 0

    logger.info("Fetch Success", table=snapshot.table, data_length=snapshot.row_count)
    if args.keys:
        _print_json({"first_item_keys": snapshot.first_row_keys})
    else:
        _print_json({"first_item": snapshot.first_row})
    return 0


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


if __name__ == "__main__":
    sys.exit(main())
