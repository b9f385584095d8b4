"""Migration orchestrator - drives a migration command through a complete run."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .commands.base import BaseMigrationCommand
from .models.migration import MigrationConfig, MigrationRun, MigrationStatus
from .models.record import Record
from .stores.base import StoreConnectionError

logger = logging.getLogger(__name__)


class MigrationAborted(Exception):
    """Raised when a run stops before all records were migrated."""


class MigrationOrchestrator:
    """
    Orchestrates a migration run.

    Handles:
    - Prerequisite checks of the command
    - Type validation and record selection
    - Migration of every record with error accounting
    - Finalization and reporting
    """

    def __init__(self, command: BaseMigrationCommand, config: Optional[MigrationConfig] = None):
        """
        Initialize the orchestrator.

        Args:
            command: Command to run, bound to the engine of this run
            config: Migration configuration
        """
        self.command = command
        self.engine = command.engine
        self.config = config or MigrationConfig(dry_run=self.engine.is_dry_run())
        self.current_run: Optional[MigrationRun] = None

    def run(self, ids: Optional[List[int]] = None, types: Optional[List[str]] = None) -> MigrationRun:
        """
        Run the migration command.

        Args:
            ids: Restrict the run to these record ids
            types: Restrict the run to these record types

        Returns:
            MigrationRun with results and statistics
        """
        run = MigrationRun(
            command=self.command.name,
            element_name=self.command.element_name,
            dry_run=self.engine.is_dry_run(),
        )
        run.started_at = datetime.utcnow()
        self.current_run = run

        try:
            self._run_phases(run, ids, types)

        except StoreConnectionError as e:
            logger.error(f"Migration aborted, store not reachable: {e}")
            run.status = MigrationStatus.FAILED
            run.add_error(str(e))

        except MigrationAborted as e:
            logger.error(f"Migration aborted: {e}")
            run.status = MigrationStatus.FAILED

        except Exception as e:
            logger.error(f"Migration failed: {e}")
            run.status = MigrationStatus.FAILED
            run.add_error(str(e))

        finally:
            run.completed_at = datetime.utcnow()
            run.upgrade_notices = self.engine.get_upgrade_notices()
            run.migration_sql = self.engine.get_migration_sql()
            run.templates = [t.to_dict() for t in self.engine.processed_templates]
            if self.config.output_dir:
                self._save_report(run)

        return run

    def _run_phases(self, run: MigrationRun, ids: Optional[List[int]], types: Optional[List[str]]) -> None:
        element_name = self.command.element_name

        logger.info("=== PHASE 1: PREREQUISITES ===")
        run.status = MigrationStatus.CHECKING
        if not self.command.before_migration_check():
            run.status = MigrationStatus.FAILED
            run.add_error("Prerequisites of the migration are not met")
            return

        run.types = self.select_types(types)
        if self.command.types and not run.types:
            run.status = MigrationStatus.FAILED
            run.add_error(
                f"None of the requested types is supported. Supported types: {', '.join(self.command.types)}"
            )
            return

        logger.info("=== PHASE 2: COLLECTING ===")
        run.status = MigrationStatus.COLLECTING
        records = self.command.collect(ids, run.types)
        run.records_found = len(records)

        if not records:
            logger.info(f"No {element_name}s found to migrate")
            run.status = MigrationStatus.COMPLETED
            return

        logger.info(f"Found {len(records)} {element_name}s to migrate")

        logger.info("=== PHASE 3: MIGRATING ===")
        run.status = MigrationStatus.MIGRATING
        for record in records:
            self._migrate_record(run, record)

        logger.info("=== PHASE 4: FINALIZING ===")
        run.status = MigrationStatus.FINALIZING
        self.command.finalize()

        run.status = MigrationStatus.COMPLETED
        logger.info("=== MIGRATION COMPLETED ===")

    def select_types(self, types: Optional[List[str]] = None) -> List[str]:
        """Requested types supported by the command, all supported types if none requested."""
        if not types:
            return list(self.command.types)

        selected = [t for t in types if t in self.command.types]
        for unsupported in (t for t in types if t not in self.command.types):
            logger.warning(f"Type {unsupported} is not supported by {self.command.name}")
        return selected

    def _migrate_record(self, run: MigrationRun, record: Record) -> None:
        element_name = self.command.element_name
        run.records_processed += 1

        try:
            if self.command.migrate(record):
                run.records_succeeded += 1
                logger.info(f"Migrated {element_name} {record.id}")
            else:
                run.records_skipped += 1
                logger.info(f"Skipped {element_name} {record.id}")

        except StoreConnectionError:
            raise

        except Exception as e:
            run.records_failed += 1
            run.add_error(str(e), record_id=record.id)
            logger.error(f"Failed to migrate {element_name} {record.id}: {e}")

            if not self.config.continue_on_error:
                raise MigrationAborted(f"Stopped after error in {element_name} {record.id}") from e
            if run.records_failed >= self.config.max_errors:
                raise MigrationAborted(f"Stopped after {run.records_failed} errors")

    def _save_report(self, run: MigrationRun) -> None:
        """Save the migration report."""
        logs_dir = Path(self.config.output_dir) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)

        filepath = logs_dir / f"migration_report_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.json"
        with open(filepath, "w") as f:
            json.dump(run.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved migration report to {filepath}")
