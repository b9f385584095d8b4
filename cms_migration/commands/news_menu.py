"""Migration of news archive menu modules to filter modules."""

import argparse
import logging
from typing import Any, List

from ..models.record import Record
from .base import ModuleMigrationCommand
from .news_support import NewsFilterBuilder

logger = logging.getLogger(__name__)

FILTER_MODULE_TYPE = "filter"
FILTER_TEMPLATE_PREFIX = "filter_form_"

# after the elements of the news filter
YEAR_ELEMENT_SORTINGS = (32, 64)


class NewsMenuModuleCommand(ModuleMigrationCommand):
    """
    Replaces news archive menus by filter modules.

    The filter gets the news selection of the menu plus year choices. The
    custom module template becomes the form template of the filter.
    """

    name = "migrate:module:newsmenu"
    description = "Migrate news archive menu modules to filter modules."
    types = ["newsmenu"]

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self.filter_builder = NewsFilterBuilder(engine, category_field=self.option("category_field", ""))

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
        filter_config = filter_data["config"]
        self.add_year_elements(filter_config.id)

        record.set("tstamp", self.now())
        record.set("type", FILTER_MODULE_TYPE)
        record.set("filter", filter_config.id)
        self.engine.save(record)

        self.engine.add_migration_sql(
            f"UPDATE tl_module SET type='{FILTER_MODULE_TYPE}', filter={filter_config.id} WHERE id={record.id};"
        )
        self.engine.add_upgrade_notice(
            "filter",
            f"Add the filter '{filter_config.get('title')}' [ID {filter_config.id}] to your list and reader "
            f"configs where the filter should be applied.",
        )

        self.engine.move_template(record, "customTpl", filter_config, "template", FILTER_TEMPLATE_PREFIX)
        record.set("customTpl", "")
        self.engine.save(record)
        logger.debug(f"Module {record.id} now uses filter config {filter_config.id}")
        return True

    def add_year_elements(self, filter_id: Any) -> List[Record]:
        return [self.filter_builder.build_year_element(filter_id, sorting) for sorting in YEAR_ELEMENT_SORTINGS]

