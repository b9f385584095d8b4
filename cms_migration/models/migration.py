"""Migration execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime
import json
import os
import uuid


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    CHECKING = "checking"
    COLLECTING = "collecting"
    MIGRATING = "migrating"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MigrationRun:
    """A complete run of one migration command."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    command: str = ""
    element_name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING
    dry_run: bool = False
    types: List[str] = field(default_factory=list)

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Statistics
    records_found: int = 0
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    records_skipped: int = 0

    # Errors and ledger
    errors: List[Dict[str, Any]] = field(default_factory=list)
    upgrade_notices: Dict[str, List[str]] = field(default_factory=dict)
    migration_sql: List[str] = field(default_factory=list)
    templates: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "command": self.command,
            "element_name": self.element_name,
            "status": self.status.value,
            "dry_run": self.dry_run,
            "types": self.types,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "records_found": self.records_found,
            "records_processed": self.records_processed,
            "records_succeeded": self.records_succeeded,
            "records_failed": self.records_failed,
            "records_skipped": self.records_skipped,
            "errors": self.errors,
            "upgrade_notices": self.upgrade_notices,
            "migration_sql": self.migration_sql,
            "templates": self.templates,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def succeeded(self) -> bool:
        return self.status == MigrationStatus.COMPLETED

    def add_error(self, error: str, record_id: Any = None) -> None:
        """Record a failure."""
        entry: Dict[str, Any] = {
            "error": error,
            "timestamp": datetime.utcnow().isoformat(),
        }
        if record_id is not None:
            entry["record_id"] = record_id
        self.errors.append(entry)


@dataclass
class MigrationConfig:
    """Configuration for a migration run."""
    database_url: Optional[str] = None
    project_dir: str = "."
    templates_dir: str = "templates"
    legacy_template_dirs: List[str] = field(default_factory=list)

    # Execution options
    dry_run: bool = False
    continue_on_error: bool = True
    max_errors: int = 100  # Stop after this many errors

    # Output
    output_dir: Optional[str] = None

    # Command specific options (e.g. category_field, news_archive_ids)
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "database_url": self.database_url,
            "project_dir": self.project_dir,
            "templates_dir": self.templates_dir,
            "legacy_template_dirs": self.legacy_template_dirs,
            "dry_run": self.dry_run,
            "continue_on_error": self.continue_on_error,
            "max_errors": self.max_errors,
            "output_dir": self.output_dir,
            "options": self.options,
        }

    @property
    def template_search_dirs(self) -> List[str]:
        """Directories searched for legacy templates, relative ones resolved against the project."""
        dirs = self.legacy_template_dirs or [self.templates_dir]
        return [d if os.path.isabs(d) else os.path.join(self.project_dir, d) for d in dirs]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        return cls(
            database_url=data.get("database_url") or os.environ.get("CMS_MIGRATION_DATABASE_URL"),
            project_dir=data.get("project_dir", "."),
            templates_dir=data.get("templates_dir", "templates"),
            legacy_template_dirs=data.get("legacy_template_dirs", []),
            dry_run=data.get("dry_run", False),
            continue_on_error=data.get("continue_on_error", True),
            max_errors=data.get("max_errors", 100),
            output_dir=data.get("output_dir"),
            options=data.get("options", {}),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "MigrationConfig":
        """Load configuration from JSON file."""
        with open(file_path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
