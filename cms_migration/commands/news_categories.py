"""Migration of legacy news categories to the generic category tables."""

import argparse
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from ..models.record import Record
from ..services.field_mapper import is_falsy
from .base import BaseMigrationCommand, parse_id_list, quote_sql
from .news_support import find_news_ids

logger = logging.getLogger(__name__)

LEGACY_CATEGORY_TABLE = "tl_news_category"
LEGACY_RELATION_TABLE = "tl_news_categories"
CATEGORY_TABLE = "tl_category"
ASSOCIATION_TABLE = "tl_category_association"


class NewsCategoriesCommand(BaseMigrationCommand):
    """
    Copies legacy news categories into ``tl_category``.

    Every category is copied while records are migrated. Parent ids, news
    associations and primary categories are handled in ``finalize`` once the
    id of every new category is known.
    """

    name = "migrate:db:news_categories"
    description = "Migrate news categories and their news relations to the generic category tables."
    table = LEGACY_CATEGORY_TABLE
    element_name = "category"
    types: List[str] = []

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self.field = self.option("field", "categories")
        self.category_ids = parse_id_list(self.option("category_ids"))
        self.news_archive_ids = parse_id_list(self.option("news_archive_ids"))
        self.primary_category_field = self.option("primary_category_field", "")

        # legacy id -> new category
        self.categories: Dict[Any, Record] = {}
        self.associations: List[Record] = []

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--field",
            default=None,
            help="Name of the target category field in tl_news (default: categories)",
        )
        parser.add_argument(
            "--category-ids",
            dest="category_ids",
            default=None,
            help="Restrict to legacy categories of these comma separated ids and their children",
        )
        parser.add_argument(
            "--news-archive-ids",
            dest="news_archive_ids",
            default=None,
            help="Restrict relations to news of these comma separated archive ids",
        )
        parser.add_argument(
            "--primary-category-field",
            dest="primary_category_field",
            default=None,
            help="Source field in tl_news holding the id of the primary category",
        )

    def with_children(self, ids: List[int]) -> List[int]:
        """The given category ids and the ids of all their descendants."""
        result = list(ids)
        seen: Set[str] = {str(i) for i in ids}
        parents = list(ids)

        while parents:
            children = self.store.find_by(self.table, {"pid": parents}, order_by="id")
            parents = []
            for child in children:
                if str(child.id) in seen:
                    continue
                seen.add(str(child.id))
                result.append(child.id)
                parents.append(child.id)

        return result

    def restricted_category_ids(self, ids: Optional[List[int]] = None) -> List[int]:
        restriction = list(ids or []) + self.category_ids
        return self.with_children(restriction) if restriction else []

    def collect(self, ids: Optional[List[int]] = None, types: Optional[List[str]] = None) -> List[Record]:
        restriction = self.restricted_category_ids(ids)
        criteria = {"id": restriction} if restriction else {}
        return self.store.find_by(self.table, criteria, order_by="id")

    def migrate(self, record: Record) -> bool:
        legacy_id = record.id

        # the legacy id may exist in the target table as well
        category = self.store.new_record(CATEGORY_TABLE)
        for key, value in record.items():
            if key != Record.ID_FIELD:
                category.set(key, value)
        category.set("dateAdded", record.get("tstamp"))

        self.engine.save(category)
        self.categories[legacy_id] = category
        logger.info(f"Migrated category \"{category.get('title')}\" (legacy id: {legacy_id}, id: {category.id})")
        return True

    def finalize(self) -> None:
        self.update_parents()
        self.migrate_associations()
        if self.primary_category_field:
            self.migrate_primary_categories()

    def new_id(self, legacy_id: Any) -> Optional[Any]:
        for key, category in self.categories.items():
            if str(key) == str(legacy_id):
                return category.id
        return None

    def update_parents(self) -> None:
        for category in self.categories.values():
            parent_id = self.new_id(category.get("pid"))
            category.set("pid", parent_id if parent_id is not None else 0)

            if not is_falsy(category.get("jumpTo")) and not is_falsy(category.get("pid")):
                category.set("overrideJumpTo", "1")

            self.engine.save(category)

    def legacy_relations(self) -> List[Tuple[Any, Any]]:
        """Distinct (category_id, news_id) pairs of the legacy relation table."""
        criteria: Dict[str, Any] = {}
        restriction = self.restricted_category_ids()
        if restriction:
            criteria["category_id"] = restriction
        if self.news_archive_ids:
            # an empty archive restricts to nothing
            criteria["news_id"] = find_news_ids(self.store, self.news_archive_ids)

        pairs: List[Tuple[Any, Any]] = []
        for relation in self.store.find_by(LEGACY_RELATION_TABLE, criteria):
            pair = (relation.get("category_id"), relation.get("news_id"))
            if pair not in pairs:
                pairs.append(pair)
        return pairs

    def migrate_associations(self) -> None:
        for legacy_category_id, news_id in self.legacy_relations():
            category_id = self.new_id(legacy_category_id)
            if category_id is None:
                self.engine.add_upgrade_notice(
                    self.element_name,
                    f"Unable to migrate relation of news {news_id} and category {legacy_category_id} "
                    f"because the category was not migrated.",
                )
                continue

            association = self.store.new_record(
                ASSOCIATION_TABLE,
                tstamp=self.now(),
                category=category_id,
                parentTable="tl_news",
                entity=news_id,
                categoryField=self.field,
            )
            self.engine.save(association)
            self.associations.append(association)

            self.engine.add_migration_sql(
                f"INSERT INTO {ASSOCIATION_TABLE} (tstamp, category, parentTable, entity, categoryField) "
                f"VALUES ({association.get('tstamp')}, {category_id}, 'tl_news', {quote_sql(news_id)}, "
                f"{quote_sql(self.field)});"
            )

        logger.info(f"Migrated {len(self.associations)} category relations for field \"{self.field}\"")

    def migrate_primary_categories(self) -> None:
        target_field = f"{self.field}_primary"

        criteria: Dict[str, Any] = {}
        if self.news_archive_ids:
            news_ids = find_news_ids(self.store, self.news_archive_ids)
            if not news_ids:
                raise ValueError("No news found in the given news archives")
            criteria["id"] = news_ids

        for news in self.store.find_by("tl_news", criteria, order_by="id"):
            legacy_id = news.get(self.primary_category_field)
            if is_falsy(legacy_id):
                continue
            category_id = self.new_id(legacy_id)
            if category_id is None:
                continue

            news.set(target_field, category_id)
            self.engine.save(news)
            self.engine.add_migration_sql(
                f"UPDATE tl_news SET {target_field}={category_id} WHERE id={news.id};"
            )
            logger.debug(
                f"Migrated primary category of news {news.id} from {self.primary_category_field} to {target_field}"
            )
