"""Command line interface for the CMS migration toolkit."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import ArgumentError

from .commands import COMMANDS
from .models.mapping import MappingFileError
from .models.migration import MigrationConfig, MigrationRun
from .models.record import Record
from .orchestrator import MigrationOrchestrator
from .services.engine import MigrationEngine
from .services.templates import FilesystemTemplateResolver
from .stores.sql_store import SqlRecordStore

logger = logging.getLogger(__name__)

COMMON_ARGUMENTS = {
    "command",
    "ids",
    "types",
    "dry_run",
    "config",
    "database_url",
    "project_dir",
    "template_dirs",
    "report_dir",
    "verbose",
}


def _split_list(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ids", help="Comma separated ids of the records to migrate")
    parser.add_argument("--types", help="Comma separated record types to migrate")
    parser.add_argument("--dry-run", action="store_true", help="Simulate without changes")
    parser.add_argument("--config", help="Path to migration config file")
    parser.add_argument("--database-url", help="SQLAlchemy URL of the CMS database")
    parser.add_argument("--project-dir", help="Project root, new templates are written below it")
    parser.add_argument(
        "--template-dir",
        dest="template_dirs",
        action="append",
        help="Directory searched for legacy templates (repeatable)",
    )
    parser.add_argument("--report-dir", help="Write a JSON run report to <report-dir>/logs")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CMS Migration Tool - Migrate legacy CMS records to their successors"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    for name, command_class in COMMANDS.items():
        command_parser = subparsers.add_parser(name, help=command_class.description)
        _add_common_arguments(command_parser)
        command_class.add_arguments(command_parser)

    # Preview a mapping table
    preview_parser = subparsers.add_parser("preview-mapping", help="Preview a mapping table on a JSON record")
    preview_parser.add_argument("--mapping", required=True, help="Path to mapping file")
    preview_parser.add_argument("--input", required=True, help="Path to input JSON file")
    preview_parser.add_argument("--source-prefix", default="", help="Prefix of the source field names")
    preview_parser.add_argument("--target-prefix", default="", help="Prefix of the target field names")
    preview_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    return parser


def load_config(args: argparse.Namespace) -> MigrationConfig:
    """Configuration from the config file (if any), overridden by CLI flags."""
    config = MigrationConfig.from_json_file(args.config) if args.config else MigrationConfig.from_dict({})

    if args.dry_run:
        config.dry_run = True
    if args.database_url:
        config.database_url = args.database_url
    if args.project_dir:
        config.project_dir = args.project_dir
    if args.template_dirs:
        config.legacy_template_dirs = args.template_dirs
    if args.report_dir:
        config.output_dir = args.report_dir

    for key, value in vars(args).items():
        if key in COMMON_ARGUMENTS or value is None or value == "":
            continue
        config.options[key] = value

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command in COMMANDS:
        return run_command(args)
    elif args.command == "preview-mapping":
        return run_preview(args)

    parser.print_help()
    return 1


def run_command(args: argparse.Namespace) -> int:
    """Run a migration command against the configured database."""
    config = load_config(args)

    if not config.database_url:
        print("No database configured. Use --database-url or CMS_MIGRATION_DATABASE_URL.", file=sys.stderr)
        return 1

    command_class = COMMANDS[args.command]
    try:
        store = SqlRecordStore.from_url(config.database_url)
    except ArgumentError as e:
        print(f"Invalid database URL {config.database_url}: {e}", file=sys.stderr)
        return 1

    engine = MigrationEngine(
        store=store,
        resolver=FilesystemTemplateResolver(config.template_search_dirs),
        project_dir=config.project_dir,
        dry_run=config.dry_run,
        command_name=command_class.name,
        templates_dir=config.templates_dir,
    )

    command = command_class(engine, config.options)

    ids = [int(i) for i in _split_list(args.ids) or []]
    result = MigrationOrchestrator(command, config).run(ids=ids or None, types=_split_list(args.types))

    print_summary(result)
    return 0 if result.succeeded else 1


def print_summary(result: MigrationRun) -> None:
    """Print the final report of a run."""
    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" if result.succeeded else "MIGRATION FAILED")
    print("=" * 60)
    print(f"Command: {result.command}" + (" (dry run)" if result.dry_run else ""))
    print(f"Status: {result.status.value}")
    print(f"{result.element_name.capitalize()}s found: {result.records_found}")
    print(f"Succeeded: {result.records_succeeded}")
    print(f"Skipped: {result.records_skipped}")
    print(f"Failed: {result.records_failed}")
    if result.duration_seconds:
        print(f"Duration: {result.duration_seconds:.2f} seconds")

    for error in result.errors:
        record = f" ({result.element_name} {error['record_id']})" if "record_id" in error else ""
        print(f"  Error{record}: {error['error']}")

    if result.migration_sql:
        print("\n" + "=" * 60)
        print("MIGRATION SQL")
        print("=" * 60)
        for statement in result.migration_sql:
            print(statement)

    if result.upgrade_notices:
        print("\n" + "=" * 60)
        print("UPGRADE NOTICES")
        print("=" * 60)
        for category, messages in result.upgrade_notices.items():
            print(f"\n[{category}]")
            for message in messages:
                print(f"  - {message}")


def run_preview(args: argparse.Namespace) -> int:
    """Preview a mapping table on a record from a JSON file."""
    from .services.field_mapper import FieldMapper
    from .services.ledger import UpgradeLedger
    from .services.transforms import TransformRegistry
    from .models.mapping import FieldMapping

    try:
        mapping = FieldMapping.from_json_file(args.mapping, transforms=TransformRegistry().as_dict())
    except MappingFileError as e:
        print(f"Invalid mapping file: {e}", file=sys.stderr)
        return 1

    with open(args.input) as f:
        input_data: Dict[str, Any] = json.load(f)

    ledger = UpgradeLedger()
    target = Record("preview")
    FieldMapper(ledger).map(input_data, target, mapping, args.source_prefix, args.target_prefix)

    print("\n=== Input ===")
    print(json.dumps(input_data, indent=2, default=str))
    print("\n=== Output ===")
    print(json.dumps(target.to_dict(), indent=2, default=str))

    for category, messages in ledger.get_upgrade_notices().items():
        for message in messages:
            print(f"[{category}] {message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
