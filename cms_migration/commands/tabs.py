"""Migration of accessible tabs content elements to tab control elements."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..models.record import Record
from .base import ContentElementMigrationCommand, quote_sql

logger = logging.getLogger(__name__)

LEGACY_START = "accessible_tabs_start"
LEGACY_SEPARATOR = "accessible_tabs_separator"
LEGACY_STOP = "accessible_tabs_stop"

TAB_CONTROL_START = "tabcontrol_start"
TAB_CONTROL_SEPARATOR = "tabcontrol_separator"
TAB_CONTROL_STOP = "tabcontrol_stop"

REQUIRED_COLUMNS = ["tabControlHeadline", "tabControlRememberLastTab"]


def group_tab_elements(elements: List[Record]) -> List[List[Dict[str, Any]]]:
    """
    Split the tab elements of one parent into groups.

    Elements must be sorted. A group runs from a start element to the next
    stop element; elements outside a group are ignored. Each group member is
    a snapshot of id, type and tab title taken before anything is migrated.
    """
    groups = []
    current: Optional[List[Dict[str, Any]]] = None

    for element in elements:
        snapshot = {
            "id": element.id,
            "type": element.get("type"),
            "title": element.get("accessible_tabs_title"),
        }
        element_type = snapshot["type"]

        if element_type == LEGACY_START:
            if current is not None:
                logger.warning(f"Tab group starting at {current[0]['id']} has no stop element")
            current = [snapshot]
        elif current is None:
            logger.warning(f"Tab element {element.id} ({element_type}) is outside of a tab group")
        else:
            current.append(snapshot)
            if element_type == LEGACY_STOP:
                groups.append(current)
                current = None

    if current is not None:
        logger.warning(f"Tab group starting at {current[0]['id']} has no stop element")

    return groups


class TabsToTabControlCommand(ContentElementMigrationCommand):
    """
    Converts accessible tabs elements into tab control elements.

    The tab control start element carries the headline of the first tab, so
    the first separator of every group is merged into the start element and
    deleted.
    """

    name = "migrate:ce:tabcontrol"
    description = "Migrate accessible tabs content elements to tab control elements."
    types = [LEGACY_START, LEGACY_SEPARATOR, LEGACY_STOP]

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self.groups: Dict[Any, List[Dict[str, Any]]] = {}

    def before_migration_check(self) -> bool:
        if not self.store.has_columns(self.table, REQUIRED_COLUMNS):
            logger.error(
                f"Columns {', '.join(REQUIRED_COLUMNS)} are missing in {self.table}. "
                f"Is the tab control extension installed?"
            )
            return False
        return True

    def collect(self, ids: Optional[List[int]] = None, types: Optional[List[str]] = None) -> List[Record]:
        records = super().collect(ids, types)

        parents: List[Tuple[Any, Any]] = []
        for record in records:
            parent = (record.get("pid"), record.get("ptable"))
            if parent not in parents:
                parents.append(parent)

        self.groups = {}
        for pid, ptable in parents:
            criteria: Dict[str, Any] = {"pid": pid, "type": self.types}
            if ptable is not None:
                criteria["ptable"] = ptable
            siblings = self.store.find_by(self.table, criteria, order_by="sorting")
            for group in group_tab_elements(siblings):
                for member in group:
                    self.groups[member["id"]] = group

        return records

    def migrate(self, record: Record) -> bool:
        group = self.groups.get(record.id)
        if group is None:
            logger.error(f"Content element {record.id} does not belong to a complete tab group. Skipping.")
            return False

        record_type = record.get("type")
        second = group[1] if len(group) > 1 else None

        if second is not None and record.id == second["id"] and record_type == LEGACY_SEPARATOR:
            self.engine.add_migration_sql(f"DELETE FROM tl_content WHERE id={record.id};")
            self.engine.delete(record)
            return True

        if record_type == LEGACY_START:
            if group[0]["id"] != record.id:
                logger.error(f"Element ids of tab group of content element {record.id} are not correct. Skipping.")
                return False
            if second is None or second["type"] != LEGACY_SEPARATOR:
                logger.error(f"Second element of tab group {record.id} is not a separator element.")

            record.set("type", TAB_CONTROL_START)
            record.set("tabControlHeadline", second["title"] if second is not None else "")
            record.set("tabControlRememberLastTab", record.get("accessible_tabs_save_state", ""))
            self.engine.add_migration_sql(
                f"UPDATE tl_content SET type={quote_sql(TAB_CONTROL_START)}, "
                f"tabControlHeadline={quote_sql(record.get('tabControlHeadline'))}, "
                f"tabControlRememberLastTab={quote_sql(record.get('tabControlRememberLastTab'))} "
                f"WHERE id={record.id};"
            )

        elif record_type == LEGACY_SEPARATOR:
            record.set("type", TAB_CONTROL_SEPARATOR)
            record.set("tabControlHeadline", record.get("accessible_tabs_title"))
            self.engine.add_migration_sql(
                f"UPDATE tl_content SET type={quote_sql(TAB_CONTROL_SEPARATOR)}, "
                f"tabControlHeadline={quote_sql(record.get('tabControlHeadline'))} "
                f"WHERE id={record.id};"
            )

        elif record_type == LEGACY_STOP:
            record.set("type", TAB_CONTROL_STOP)
            self.engine.add_migration_sql(
                f"UPDATE tl_content SET type={quote_sql(TAB_CONTROL_STOP)} WHERE id={record.id};"
            )

        else:
            return False

        record.set("tstamp", self.now())
        self.engine.save(record)
        return True
