"""Migration of legacy news tags to the tag configuration tables."""

import argparse
import logging
from typing import Any, Dict, List, Optional, Set

from ..models.record import Record
from ..services.field_mapper import is_falsy
from ..services.transforms import generate_alias, serialize
from .base import BaseMigrationCommand, parse_id_list, quote_sql
from .news_support import find_news_ids

logger = logging.getLogger(__name__)

LEGACY_TAG_TABLE = "tl_tag"
TAG_TABLE = "tl_cfg_tag"
TAG_RELATION_TABLE = "tl_cfg_tag_news"
TAG_SOURCE = "news_tag_manager"


class NewsTagsCommand(BaseMigrationCommand):
    """Moves news tags into ``tl_cfg_tag`` and links them to their news."""

    name = "migrate:db:news_tags"
    description = "Migrate news tags to the tag configuration tables."
    table = LEGACY_TAG_TABLE
    element_name = "tag"
    types: List[str] = []

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self.news_archive_ids = parse_id_list(self.option("news_archive_ids"))

        self.tags: Dict[str, Record] = {}
        self.aliases: Set[str] = set()
        # news id -> tag ids
        self.news_tags: Dict[Any, List[Any]] = {}

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--news-archive-ids",
            dest="news_archive_ids",
            default=None,
            help="Restrict to news of these comma separated archive ids",
        )

    def collect(self, ids: Optional[List[int]] = None, types: Optional[List[str]] = None) -> List[Record]:
        """Legacy tags of news; ``ids`` restricts the news ids."""
        criteria: Dict[str, Any] = {"from_table": "tl_news"}

        news_ids = list(ids or [])
        if self.news_archive_ids:
            archive_news = find_news_ids(self.store, self.news_archive_ids)
            if news_ids:
                news_ids = [i for i in news_ids if str(i) in {str(n) for n in archive_news}]
            else:
                news_ids = archive_news
            # an empty archive restricts to nothing
            criteria["tid"] = news_ids
        elif news_ids:
            criteria["tid"] = news_ids

        return self.store.find_by(self.table, criteria)

    def migrate(self, record: Record) -> bool:
        name = record.get("tag")
        news_id = record.get("tid")
        if is_falsy(name):
            return False

        tag = self.find_or_create_tag(name)

        self.engine.delete_by(TAG_RELATION_TABLE, {"news_id": news_id, "cfg_tag_id": tag.id})
        relation = self.store.new_record(TAG_RELATION_TABLE, news_id=news_id, cfg_tag_id=tag.id)
        self.engine.save(relation)

        self.engine.add_migration_sql(
            f"DELETE FROM {TAG_RELATION_TABLE} WHERE news_id={quote_sql(news_id)} AND cfg_tag_id={tag.id};"
        )
        self.engine.add_migration_sql(
            f"INSERT INTO {TAG_RELATION_TABLE} (news_id, cfg_tag_id) VALUES ({quote_sql(news_id)}, {tag.id});"
        )

        tag_ids = self.news_tags.setdefault(news_id, [])
        if tag.id not in tag_ids:
            tag_ids.append(tag.id)
        return True

    def find_or_create_tag(self, name: str) -> Record:
        if name in self.tags:
            return self.tags[name]

        tag = self.store.find_one_by(TAG_TABLE, {"name": name, "source": TAG_SOURCE})
        if tag is None:
            tag = self.store.new_record(TAG_TABLE, tstamp=self.now(), name=name, source=TAG_SOURCE)
            self.engine.save(tag)
            logger.debug(f"Created tag \"{name}\" ({tag.id})")

        if is_falsy(tag.get("alias")):
            tag.set("alias", self.unique_alias(name, tag))
            self.engine.save(tag)

        self.aliases.add(tag.get("alias"))
        self.tags[name] = tag
        return tag

    def unique_alias(self, name: str, tag: Record) -> str:
        """Alias of the tag name, suffixed with the tag id if already taken."""
        alias = generate_alias(name) or str(tag.id)

        taken = alias in self.aliases
        if not taken:
            existing = self.store.find_one_by(TAG_TABLE, {"alias": alias})
            taken = existing is not None and str(existing.id) != str(tag.id)

        return f"{alias}-{tag.id}" if taken else alias

    def finalize(self) -> None:
        for news_id, tag_ids in self.news_tags.items():
            tags = serialize(tag_ids)
            self.engine.add_migration_sql(f"UPDATE tl_news SET tags={quote_sql(tags)} WHERE id={quote_sql(news_id)};")

            news = self.store.find_by_pk("tl_news", news_id)
            if news is None:
                self.engine.add_upgrade_notice(self.element_name, f"News {news_id} does not exist, tags not written.")
                continue

            news.set("tags", tags)
            self.engine.save(news)
            logger.info(f"Migrated tags of news {news_id}")
