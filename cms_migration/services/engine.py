"""Migration engine bundling mapper, persistence gate, template migrator and ledger."""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from ..models.mapping import FieldMapping
from ..models.record import MigrationOutcome, Record, TemplateMigrationRecord
from ..stores.base import BaseRecordStore
from .field_mapper import FieldMapper
from .ledger import UpgradeLedger
from .persistence import DryRunGate
from .templates import LocalFilesystem, TemplateMigrator, TemplateResolver
from .transforms import TransformRegistry

logger = logging.getLogger(__name__)


class MigrationEngine:
    """
    The operations every migration command is built from.

    All collaborators are passed in; one engine serves exactly one run.
    """

    def __init__(
        self,
        store: BaseRecordStore,
        resolver: TemplateResolver,
        filesystem: Optional[LocalFilesystem] = None,
        project_dir: str = ".",
        dry_run: bool = False,
        command_name: str = "",
        templates_dir: str = "templates",
        transforms: Optional[TransformRegistry] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Record store holding legacy and new records
            resolver: Resolves legacy template names to files
            filesystem: File access for template copies
            project_dir: Project root, new templates go to ``<project_dir>/<templates_dir>``
            dry_run: If True, simulate without touching the store or the filesystem
            command_name: Name of the running command, used in template annotations
            templates_dir: Template directory relative to the project root
            transforms: Named transforms for mapping table files
        """
        self.store = store
        self.ledger = UpgradeLedger()
        self.gate = DryRunGate(store, dry_run=dry_run)
        self.mapper = FieldMapper(self.ledger)
        self.transforms = transforms or TransformRegistry()
        self.templates = TemplateMigrator(
            resolver=resolver,
            filesystem=filesystem or LocalFilesystem(),
            gate=self.gate,
            ledger=self.ledger,
            target_dir=os.path.join(project_dir, templates_dir),
            command_name=command_name,
        )

    # Field mapping

    def map(
        self,
        source: Union[Record, Mapping[str, Any]],
        target: Record,
        mapping: Union[FieldMapping, Dict[str, Any]],
        source_prefix: str = "",
        target_prefix: str = "",
    ) -> None:
        self.mapper.map(source, target, mapping, source_prefix, target_prefix)

    def load_mapping(self, file_path: str) -> FieldMapping:
        """Load a mapping table file, resolving transform names."""
        return FieldMapping.from_json_file(file_path, transforms=self.transforms.as_dict())

    # Persistence

    def save(self, record: Record) -> None:
        self.gate.save(record)

    def delete(self, record: Record) -> bool:
        return self.gate.delete(record)

    def delete_by(self, table: str, criteria: Dict[str, Any]) -> int:
        return self.gate.delete_by(table, criteria)

    def is_dry_run(self) -> bool:
        return self.gate.is_dry_run()

    def set_dry_run(self, dry_run: bool) -> None:
        self.gate.set_dry_run(dry_run)

    # Templates

    def move_template(
        self,
        source: Record,
        source_field: str,
        target: Record,
        target_field: str,
        target_prefix: str = "",
    ) -> MigrationOutcome:
        return self.templates.move_template(source, source_field, target, target_field, target_prefix)

    @property
    def processed_templates(self) -> List[TemplateMigrationRecord]:
        return self.templates.processed

    # Ledger

    def add_upgrade_notice(self, category: str, message: str) -> None:
        self.ledger.add_upgrade_notice(category, message)

    def get_upgrade_notices(self) -> Dict[str, List[str]]:
        return self.ledger.get_upgrade_notices()

    def has_upgrade_notices(self) -> bool:
        return self.ledger.has_upgrade_notices()

    def add_migration_sql(self, statement: str) -> None:
        self.ledger.add_migration_sql(statement)

    def get_migration_sql(self) -> List[str]:
        return self.ledger.get_migration_sql()

    def has_migration_sql(self) -> bool:
        return self.ledger.has_migration_sql()
