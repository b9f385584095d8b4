"""Field mapper copying legacy field values onto new records."""

import logging
from typing import Any, Dict, Mapping, Union

from ..models.mapping import FieldMapping
from ..models.record import Record
from .ledger import UpgradeLedger

logger = logging.getLogger(__name__)

MAPPING_NOTICE = "mapping"


def is_falsy(value: Any) -> bool:
    """
    Check if a legacy value counts as unset.

    Besides Python's falsy values the legacy string ``"0"`` is unset too, as
    legacy rows store numeric and boolean columns as strings.
    """
    if isinstance(value, str):
        return value == "" or value == "0"
    return not value


class FieldMapper:
    """
    Maps source fields to target fields using a declarative table.

    Only truthy source values are migrated. Legitimate zero or false legacy
    values never reach the target; this mirrors every existing migration
    command and is kept on purpose.
    """

    def __init__(self, ledger: UpgradeLedger):
        self.ledger = ledger

    def map(
        self,
        source: Union[Record, Mapping[str, Any]],
        target: Record,
        mapping: Union[FieldMapping, Dict[str, Any]],
        source_prefix: str = "",
        target_prefix: str = "",
    ) -> None:
        """
        Copy mapped values from source to target in place.

        Args:
            source: Legacy record or plain dict of legacy values
            target: Record receiving the values
            mapping: Mapping table, keys without prefix
            source_prefix: Prefix of the source keys, e.g. ``owl_``
            target_prefix: Prefix of the target keys, e.g. ``tinySlider_``
        """
        if not isinstance(mapping, FieldMapping):
            mapping = FieldMapping.from_dict(mapping)

        for source_key, entry in mapping:
            value = source.get(source_prefix + source_key)
            if is_falsy(value):
                continue

            if entry.destination is None:
                self.ledger.add_upgrade_notice(
                    MAPPING_NOTICE,
                    f"Missing destination for value of mapping key '{source_key}'.",
                )
                continue

            if entry.transform is not None and callable(entry.transform):
                try:
                    value = entry.transform(value)
                except Exception as e:
                    self.ledger.add_upgrade_notice(
                        MAPPING_NOTICE,
                        f"Could not transform value of '{source_prefix}{source_key}' "
                        f"for '{target_prefix}{entry.destination}': {e}",
                    )
                    logger.warning(f"Transform failed for {source_prefix}{source_key}: {e}")
                    continue

            target.set(target_prefix + entry.destination, value)
