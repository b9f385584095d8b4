"""Ledger of upgrade notices and migration SQL collected during a run."""

import logging
from typing import Any, Dict, List

from ..models.record import Notice

logger = logging.getLogger(__name__)


class UpgradeLedger:
    """
    Append-only collection of operator follow-ups.

    Notices are grouped by category. SQL statements are kept verbatim so an
    operator can replay them against a separately migrated database; the
    ledger never executes them.
    """

    def __init__(self):
        self._notices: List[Notice] = []
        self._sql: List[str] = []

    def add_upgrade_notice(self, category: str, message: str) -> None:
        """Add a notice for manual follow-up."""
        self._notices.append(Notice(category=category, message=message))
        logger.debug(f"[{category}] {message}")

    def get_upgrade_notices(self) -> Dict[str, List[str]]:
        """Get notice messages grouped by category, in order of appearance."""
        grouped: Dict[str, List[str]] = {}
        for notice in self._notices:
            grouped.setdefault(notice.category, []).append(notice.message)
        return grouped

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)

    def has_upgrade_notices(self) -> bool:
        return bool(self._notices)

    def add_migration_sql(self, statement: str) -> None:
        """Add a statement for later replay."""
        self._sql.append(statement)

    def get_migration_sql(self) -> List[str]:
        return list(self._sql)

    def has_migration_sql(self) -> bool:
        return bool(self._sql)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "upgrade_notices": self.get_upgrade_notices(),
            "migration_sql": self.get_migration_sql(),
        }
