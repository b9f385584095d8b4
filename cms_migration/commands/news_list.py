"""Migration of news list modules to list modules."""

import argparse
import logging
from typing import Any, Dict

from ..models.record import Record
from .base import ModuleMigrationCommand
from .news_support import ListConfigBuilder, NewsFilterBuilder

logger = logging.getLogger(__name__)

LIST_MODULE_TYPE = "huhlist"


class NewsListModuleCommand(ModuleMigrationCommand):
    """
    Replaces news list modules by list modules.

    Every module gets its own filter config and list config. The news
    template of the module becomes the item template of the list config.
    """

    name = "migrate:module:newslist"
    description = (
        "Migrate newslist modules to huhlist and create list configurations "
        "from the module settings."
    )
    types = ["newslist", "newslist_plus"]

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self.filter_builder = NewsFilterBuilder(engine, category_field=self.option("category_field", ""))
        self.list_builder = ListConfigBuilder(engine)

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--category-field",
            dest="category_field",
            default=None,
            help="The new category field of tl_news (needed for category filters)",
        )

    def migrate(self, record: Record) -> bool:
        filter_data = self.filter_builder.create_news_filter(record)
        list_data = self.list_builder.create_list_config(record, filter_data["config"].id)
        list_config = list_data["config"]

        self.migrate_frontend_module(record, list_config.id)
        self.engine.move_template(record, "news_template", list_config, "itemTemplate")
        self.after_list_config(record, list_config, filter_data)

        self.engine.save(list_config)
        return True

    def after_list_config(self, module: Record, list_config: Record, filter_data: Dict[str, Any]) -> None:
        """Extend the list config of a module before it is saved the last time."""

    def migrate_frontend_module(self, module: Record, list_config_id: Any) -> Record:
        module.set("tstamp", self.now())
        module.set("type", LIST_MODULE_TYPE)
        module.set("listConfig", list_config_id)
        self.engine.save(module)

        self.engine.add_migration_sql(
            f"UPDATE tl_module SET type='{LIST_MODULE_TYPE}', listConfig={list_config_id} WHERE id={module.id};"
        )
        return module
