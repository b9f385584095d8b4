"""Template migration: relocate legacy templates under the new naming convention."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from ..models.record import MigrationOutcome, Record, TemplateMigrationRecord
from .field_mapper import is_falsy
from .ledger import UpgradeLedger
from .persistence import DryRunGate

logger = logging.getLogger(__name__)

TEMPLATE_NOTICE = "template"
TARGET_EXTENSION = ".html.twig"
LEGACY_EXTENSIONS = (".html5", ".xhtml")


class TemplateNotFoundError(LookupError):
    """The legacy template name cannot be resolved to a file."""


class TemplateResolver(ABC):
    """Resolves a legacy template name to a file path."""

    @abstractmethod
    def resolve(self, name: str) -> str:
        """
        Get the path of a legacy template.

        Raises:
            TemplateNotFoundError: If no file exists for the name
        """
        pass


class FilesystemTemplateResolver(TemplateResolver):
    """Looks up ``<dir>/<name><extension>`` in the search directories, first hit wins."""

    def __init__(self, search_dirs: Iterable[str], extensions: Sequence[str] = LEGACY_EXTENSIONS):
        self.search_dirs = list(search_dirs)
        self.extensions = tuple(extensions)

    def resolve(self, name: str) -> str:
        for directory in self.search_dirs:
            for extension in self.extensions:
                path = os.path.join(directory, name + extension)
                if os.path.isfile(path):
                    return path
            # nested theme folders
            for root, _, files in os.walk(directory):
                for extension in self.extensions:
                    if name + extension in files:
                        return os.path.join(root, name + extension)
        raise TemplateNotFoundError(
            f"Template {name} not found in {', '.join(self.search_dirs) or 'no directories'}"
        )


class LocalFilesystem:
    """Thin file access layer so template copies can be observed in tests."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def write_bytes(self, path: str, content: bytes) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)


def annotate_template(content: bytes, template_name: str, source_path: str, command_name: str) -> bytes:
    """
    Wrap legacy template content in a twig comment with its provenance.

    The legacy bytes are kept as they are, whatever their encoding. ``#}``
    inside the legacy content is written as ``#\\}`` so the comment cannot
    end early.
    """
    origin = command_name or "migration"
    escaped = content.replace(b"#}", b"#\\}")
    if not escaped.endswith(b"\n"):
        escaped += b"\n"
    header = (
        "{#\n"
        f"  Migrated by {origin} from legacy template \"{template_name}\" ({source_path}).\n"
        "  Rewrite this template in twig syntax. The legacy source follows, with\n"
        "  closing comment markers escaped by a backslash.\n"
        "\n"
    )
    return header.encode("utf-8", errors="surrogateescape") + escaped + b"#}\n"


class TemplateMigrator:
    """
    Copies legacy templates to the new template directory once per run.

    The target record always receives the new template name, even when the
    physical copy fails; failures end up as template notices.
    """

    def __init__(
        self,
        resolver: TemplateResolver,
        filesystem: LocalFilesystem,
        gate: DryRunGate,
        ledger: UpgradeLedger,
        target_dir: str,
        command_name: str = "",
        extension: str = TARGET_EXTENSION,
    ):
        """
        Initialize the template migrator.

        Args:
            resolver: Resolves legacy template names to files
            filesystem: File access used for reading and writing templates
            gate: Persistence gate used to save the target record
            ledger: Ledger receiving template notices
            target_dir: Directory the new templates are written to
            command_name: Name of the migration command, written into the annotation
            extension: Extension of the new templates
        """
        self.resolver = resolver
        self.filesystem = filesystem
        self.gate = gate
        self.ledger = ledger
        self.target_dir = target_dir
        self.command_name = command_name
        self.extension = extension
        self._processed: List[TemplateMigrationRecord] = []

    @property
    def processed(self) -> List[TemplateMigrationRecord]:
        return list(self._processed)

    def _find_processed(self, name: str) -> Optional[TemplateMigrationRecord]:
        for entry in self._processed:
            if entry.source_name == name:
                return entry
        return None

    def move_template(
        self,
        source: Record,
        source_field: str,
        target: Record,
        target_field: str,
        target_prefix: str = "",
    ) -> MigrationOutcome:
        """
        Point the target at the new template and copy the legacy file.

        Args:
            source: Legacy record holding the template name
            source_field: Template field of the legacy record
            target: New record receiving the template file name
            target_field: Template field of the new record
            target_prefix: Prefix of the new template name, e.g. ``filter_form_``

        Returns:
            Outcome of the template migration
        """
        template_name = source.get(source_field)

        if is_falsy(template_name):
            self.ledger.add_upgrade_notice(
                TEMPLATE_NOTICE,
                f"No template set for source record (ID: {source.id}). "
                "Maybe you need to manually migrate the default theme.",
            )
            return MigrationOutcome.NO_SOURCE_TEMPLATE

        template_name = str(template_name)
        target_file_name = f"{target_prefix}{template_name}{self.extension}"
        target.set(target_field, target_file_name)
        self.gate.save(target)

        if self._find_processed(template_name):
            logger.debug(f"Template {template_name} was already processed. Skipping.")
            return MigrationOutcome.SUCCESS

        try:
            template_path = self.resolver.resolve(template_name)
        except Exception as e:
            message = f"Could not copy template: {template_name}, which file does not exist. ({e})"
            self.ledger.add_upgrade_notice(TEMPLATE_NOTICE, message)
            logger.info(message)
            return MigrationOutcome.SOURCE_TEMPLATE_MISSING

        target_path = os.path.join(self.target_dir, target_file_name)
        copied = False

        if not self.filesystem.exists(target_path):
            try:
                if not self.gate.is_dry_run():
                    content = self.filesystem.read_bytes(template_path)
                    self.filesystem.write_bytes(
                        target_path,
                        annotate_template(content, template_name, template_path, self.command_name),
                    )
                    copied = True
                message = (
                    f"Created copy of existing template to {target_file_name} template, "
                    f"please adjust the template to fit twig syntax in {target_path}."
                )
                self.ledger.add_upgrade_notice(TEMPLATE_NOTICE, message)
                logger.info(message)
            except FileNotFoundError:
                message = f"Could not copy template: {template_name}, which file does not exist."
                self.ledger.add_upgrade_notice(TEMPLATE_NOTICE, message)
                logger.info(message)
                return MigrationOutcome.COPY_ERROR
            except OSError as e:
                message = (
                    f"An error occurred while copying template from {template_path} "
                    f"to {target_path}: {e}"
                )
                self.ledger.add_upgrade_notice(TEMPLATE_NOTICE, message)
                logger.warning(message)
                return MigrationOutcome.COPY_ERROR

        self._processed.append(
            TemplateMigrationRecord(
                source_name=template_name,
                target_name=target_file_name,
                copied=copied,
            )
        )
        return MigrationOutcome.SUCCESS
