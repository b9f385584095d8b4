"""Field mapping models."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union
import json
import logging

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

Transform = Callable[[Any], Any]


class MappingFileError(ValueError):
    """Raised when a mapping table file cannot be read or validated."""


@dataclass
class MappingEntry:
    """
    Destination of one source field.

    ``transform is None`` means a plain rename, otherwise the value is passed
    through the transform before it is written. A missing ``destination`` is a
    configuration error the mapper reports as a notice.
    """
    destination: Optional[str]
    transform: Optional[Any] = None
    transform_name: Optional[str] = None

    @property
    def is_rename(self) -> bool:
        return self.transform is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result: Dict[str, Any] = {"destination": self.destination}
        if self.transform_name:
            result["transform"] = self.transform_name
        return result


@dataclass
class FieldMapping:
    """Ordered mapping from source field names to destinations."""
    entries: List[Tuple[str, MappingEntry]] = field(default_factory=list)
    name: str = ""
    description: str = ""

    def __iter__(self) -> Iterator[Tuple[str, MappingEntry]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def add(self, source_key: str, destination: Optional[str], transform: Optional[Transform] = None) -> None:
        """Append an entry."""
        self.entries.append((source_key, MappingEntry(destination=destination, transform=transform)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        fields = {}
        for key, entry in self.entries:
            fields[key] = entry.destination if entry.is_rename else entry.to_dict()
        return {
            "name": self.name,
            "description": self.description,
            "fields": fields,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        transforms: Optional[Dict[str, Transform]] = None,
        name: str = "",
    ) -> "FieldMapping":
        """
        Create from a ``{source_key: destination}`` table.

        Values may be a destination name, a ``MappingEntry`` or a dict with
        ``destination`` and an optional ``transform``. A transform given as a
        string is looked up in ``transforms``.
        """
        transforms = transforms or {}
        mapping = cls(name=name)

        for source_key, spec in data.items():
            if isinstance(spec, MappingEntry):
                entry = spec
            elif isinstance(spec, dict):
                transform = spec.get("transform")
                transform_name = None
                if isinstance(transform, str):
                    transform_name = transform
                    transform = transforms.get(transform)
                    if transform is None:
                        logger.warning(
                            f"Unknown transform '{transform_name}' for mapping key "
                            f"'{source_key}', value will be copied unchanged"
                        )
                entry = MappingEntry(
                    destination=spec.get("destination"),
                    transform=transform,
                    transform_name=transform_name,
                )
            else:
                entry = MappingEntry(destination=spec)
            mapping.entries.append((source_key, entry))

        return mapping

    @classmethod
    def from_json_file(
        cls,
        file_path: str,
        transforms: Optional[Dict[str, Transform]] = None,
    ) -> "FieldMapping":
        """Load and validate a mapping table from a JSON file."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            table = MappingTableFile.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise MappingFileError(f"Invalid mapping file {file_path}: {e}") from e

        data: Dict[str, Any] = {}
        for key, spec in table.fields.items():
            data[key] = spec if isinstance(spec, str) else spec.model_dump()

        mapping = cls.from_dict(data, transforms=transforms, name=table.name)
        mapping.description = table.description
        return mapping


class MappingEntryFile(BaseModel):
    destination: Optional[str] = None
    transform: Optional[str] = None


class MappingTableFile(BaseModel):
    """Structure of a JSON mapping table file."""
    name: str = ""
    description: str = ""
    fields: Dict[str, Union[str, MappingEntryFile]]
