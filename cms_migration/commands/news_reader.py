"""Migration of news reader modules to reader modules."""

import argparse
import logging
from typing import Any, Dict, List, Optional

from ..models.record import Record
from ..services.field_mapper import is_falsy
from ..services.transforms import deserialize, serialize
from .base import ModuleMigrationCommand
from .news_support import SORTING_DIRECTION_DESC, NewsFilterBuilder

logger = logging.getLogger(__name__)

READER_MODULE_TYPE = "huhreader"
READER_CONFIG_TABLE = "tl_reader_config"
READER_ELEMENT_TABLE = "tl_reader_config_element"

FORMATTED_FIELDS = ["headline", "teaser", "singleSRC"]
HEAD_TAGS = [
    {"service": "huh.head.tag.title", "pattern": "%headline%"},
    {"service": "huh.head.tag.meta_description", "pattern": "%teaser%"},
    {"service": "huh.head.tag.og_image", "pattern": "%singleSRC%"},
    {"service": "huh.head.tag.og_type", "pattern": "article"},
    {"service": "huh.head.tag.og_description", "pattern": "%teaser%"},
]

# share button -> syndication flag of the reader element
SYNDICATIONS = {
    "pdfButton": "syndicationPdf",
    "printButton": "syndicationPrint",
    "facebook": "syndicationFacebook",
    "twitter": "syndicationTwitter",
    "gplus": "syndicationGooglePlus",
    "mailto": "syndicationMail",
}


class NewsReaderModuleCommand(ModuleMigrationCommand):
    """
    Replaces news reader modules by reader modules.

    Every module gets a reader config with image, navigation and syndication
    elements, and a filter config restricting the reader to the module's news
    archives.
    """

    name = "migrate:module:newsreader"
    description = (
        "Migrate newsreader modules to huhreader and create reader configurations "
        "from the module settings."
    )
    types = ["newsreader", "newsreader_plus"]

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self.add_navigation = bool(self.option("add_navigation", False))
        self.filter_builder = NewsFilterBuilder(engine)

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--add-navigation",
            dest="add_navigation",
            action="store_true",
            default=None,
            help="Add a previous/next navigation element to the reader configs",
        )

    def migrate(self, record: Record) -> bool:
        reader_config = self.create_reader_config(record)

        self.migrate_frontend_module(record, reader_config.id)
        self.engine.move_template(record, "news_template", reader_config, "itemTemplate")

        elements = self.attach_reader_elements(record, reader_config.id)
        created = [name for name, element in elements.items() if element is not None]
        logger.debug(f"Reader config {reader_config.id} has elements: {', '.join(created)}")

        self.attach_filter(record, reader_config)
        return True

    def create_reader_config(self, module: Record) -> Record:
        now = self.now()
        reader_config = self.store.new_record(
            READER_CONFIG_TABLE,
            tstamp=now,
            dateAdded=now,
            title=module.get("name"),
            dataContainer="tl_news",
            itemRetrievalMode="auto_item",
            itemRetrievalAutoItemField="alias",
            hideUnpublishedItems="1",
            item="news_default",
            limitFormattedFields="1",
            formattedFields=serialize(FORMATTED_FIELDS),
            publishedField="published",
            headTags=serialize(HEAD_TAGS),
        )
        self.engine.save(reader_config)
        logger.info(
            f"Migrated \"{module.get('name')}\" (module {module.id}) into reader config {reader_config.id}"
        )
        return reader_config

    def migrate_frontend_module(self, module: Record, reader_config_id: Any) -> Record:
        module.set("tstamp", self.now())
        module.set("type", READER_MODULE_TYPE)
        module.set("readerConfig", reader_config_id)
        self.engine.save(module)

        self.engine.add_migration_sql(
            f"UPDATE tl_module SET type='{READER_MODULE_TYPE}', readerConfig={reader_config_id} WHERE id={module.id};"
        )
        return module

    def attach_reader_elements(self, module: Record, reader_config_id: Any) -> Dict[str, Optional[Record]]:
        return {
            "image": self.add_image_element(module, reader_config_id),
            "navigation": self.add_navigation_element(module, reader_config_id),
            "syndication": self.add_syndication_element(module, reader_config_id),
        }

    def _new_element(self, reader_config_id: Any, **fields: Any) -> Record:
        now = self.now()
        return self.store.new_record(READER_ELEMENT_TABLE, tstamp=now, dateAdded=now, pid=reader_config_id, **fields)

    def add_image_element(self, module: Record, reader_config_id: Any) -> Record:
        element = self._new_element(
            reader_config_id,
            title="Image",
            type="image",
            imageSelectorField="addImage",
            imageField="singleSRC",
            imgSize=module.get("imgSize"),
        )
        self.engine.save(element)
        return element

    def add_navigation_element(self, module: Record, reader_config_id: Any) -> Optional[Record]:
        if not self.add_navigation:
            return None

        element = self._new_element(
            reader_config_id,
            title="Navigation",
            type="navigation",
            name="navigation",
            navigationTemplate="readernavigation_default",
            nextLabel="huh.reader.element.label.next.default",
            previousLabel="huh.reader.element.label.previous.default",
            sortingDirection=SORTING_DIRECTION_DESC,
            sortingField="date",
            nextTitle="huh.reader.element.title.next.default",
            previousTitle="huh.reader.element.title.previous.default",
            infiniteNavigation="" if is_falsy(module.get("news_navigation_infinite")) else "1",
        )
        self.engine.save(element)
        return element

    def add_syndication_element(self, module: Record, reader_config_id: Any) -> Optional[Record]:
        if is_falsy(module.get("addShare")):
            return None

        element = self._new_element(
            reader_config_id,
            title="Syndikation",
            type="syndication",
            name="syndications",
            syndicationTemplate="readersyndication_fontawesome_bootstrap4_button_group",
        )

        buttons: List[Any] = deserialize(module.get("share_buttons"), force_list=True)
        for button, flag in SYNDICATIONS.items():
            if button in buttons:
                element.set(flag, "1")
        if "printButton" in buttons:
            element.set("syndicationPrintTemplate", "readerprint_default")

        self.engine.save(element)
        return element

    def attach_filter(self, module: Record, reader_config: Record) -> Dict[str, Any]:
        """Create the filter restricting the reader to the news archives of the module."""
        filter_config = self.filter_builder.build_filter_config(module)
        reader_config.set("filter", filter_config.id)
        self.engine.save(reader_config)

        archives = deserialize(module.get("news_archives"), force_list=True)
        parent = self.filter_builder.build_parent_element(filter_config.id, 2, archives)
        published = self.filter_builder.build_published_element(
            filter_config.id, 4 if parent is not None else 2, element_type="visible"
        )
        logger.info(f"Created filter config {filter_config.id} for reader config {reader_config.id}")

        return {"config": filter_config, "elements": {"parent": parent, "published": published}}
