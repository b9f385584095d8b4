"""Builders for the filter and list configurations replacing news list modules."""

import logging
import time
from typing import Any, Dict, List, Optional

from ..models.record import Record
from ..services.engine import MigrationEngine
from ..services.field_mapper import is_falsy
from ..services.transforms import deserialize, generate_alias, serialize

logger = logging.getLogger(__name__)

FILTER_CONFIG_TABLE = "tl_filter_config"
FILTER_ELEMENT_TABLE = "tl_filter_config_element"
LIST_CONFIG_TABLE = "tl_list_config"
LIST_ELEMENT_TABLE = "tl_list_config_element"

OPERATOR_IN = "in"
OPERATOR_LIKE = "like"
OPERATOR_IS_EMPTY = "isempty"

SORTING_DIRECTION_DESC = "desc"


class NewsFilterBuilder:
    """
    Creates a filter configuration equivalent to the selection of a news list module.

    The filter consists of a config row and up to five elements: news archive
    parent, minimum date, categories, published state and featured state.
    """

    def __init__(self, engine: MigrationEngine, category_field: str = ""):
        self.engine = engine
        self.store = engine.store
        self.category_field = category_field

    def create_news_filter(self, module: Record) -> Dict[str, Any]:
        """
        Create filter config and elements for a module.

        Args:
            module: Legacy news list module

        Returns:
            Dict with the ``config`` record and ``elements`` by name (None if not created)
        """
        filter_config = self.build_filter_config(module)
        archives = deserialize(module.get("news_archives"), force_list=True)

        elements = {
            "parent": self.build_parent_element(filter_config.id, 2, archives),
            "date": self.build_date_element(filter_config.id, 4),
            "categories": self.build_categories_element(filter_config.id, 8, module),
            "published": self.build_published_element(filter_config.id, 16),
            "featured": self.build_featured_element(filter_config.id, 24, module.get("news_featured")),
        }
        created = [name for name, element in elements.items() if element is not None]
        logger.debug(f"Created filter config {filter_config.id} with elements: {', '.join(created)}")

        return {"config": filter_config, "elements": elements}

    def build_filter_config(self, module: Record) -> Record:
        now = int(time.time())
        filter_config = self.store.new_record(
            FILTER_CONFIG_TABLE,
            tstamp=now,
            dateAdded=now,
            title=module.get("name"),
            name=generate_alias(module.get("name")),
            dataContainer="tl_news",
            method="GET",
            template="form_div_layout",
            published="1",
        )
        self.engine.save(filter_config)
        return filter_config

    def _new_element(self, filter_id: Any, sorting: int, **fields: Any) -> Record:
        now = int(time.time())
        return self.store.new_record(
            FILTER_ELEMENT_TABLE,
            pid=filter_id,
            tstamp=now,
            dateAdded=now,
            sorting=sorting,
            published="1",
            **fields,
        )

    def build_parent_element(self, filter_id: Any, sorting: int, pids: List[Any]) -> Optional[Record]:
        if not pids:
            return None

        element = self._new_element(
            filter_id,
            sorting,
            title="Archiv",
            type="parent",
            isInitial="1",
            field="pid",
            operator=OPERATOR_IN,
            initialValueType="array",
            initialValueArray=serialize([{"value": pid} for pid in pids]),
        )
        self.engine.save(element)
        return element

    def build_date_element(self, filter_id: Any, sorting: int) -> Record:
        element = self._new_element(
            filter_id,
            sorting,
            title="Mindestdatum",
            type="sql",
            isInitial="1",
            field="date",
            whereSql="tl_news.date < {{date::U}}",
        )
        self.engine.save(element)
        return element

    def build_categories_element(self, filter_id: Any, sorting: int, module: Record) -> Optional[Record]:
        """Filter by the categories preselected in the module, needs the new category field."""
        if is_falsy(module.get("news_filterCategories")) or not self.category_field:
            return None

        filter_categories = deserialize(module.get("news_filterDefault"), force_list=True)
        if not filter_categories:
            return None

        # the new categories are matched by alias
        category_ids = []
        for legacy_id in filter_categories:
            legacy_category = self.store.find_by_pk("tl_news_category", legacy_id)
            if legacy_category is None:
                continue
            category = self.store.find_one_by("tl_category", {"alias": legacy_category.get("alias")})
            if category is None:
                continue
            category_ids.append({"value": category.id})

        element = self._new_element(
            filter_id,
            sorting,
            title="Kategorien",
            type="category_choice",
            isInitial="1",
            operator=OPERATOR_IN,
            initialValueType="array",
            field=self.category_field,
            initialValueArray=serialize(category_ids),
        )
        self.engine.save(element)
        return element

    def build_published_element(self, filter_id: Any, sorting: int, element_type: str = "published") -> Record:
        element = self._new_element(
            filter_id,
            sorting,
            title="Veröffentlicht",
            type=element_type,
            field="published",
            addStartAndStop="1",
            startField="start",
            stopField="stop",
        )
        self.engine.save(element)
        return element

    def build_year_element(self, filter_id: Any, sorting: int) -> Record:
        """Year choice on the news date, options limited to years with news."""
        element = self._new_element(
            filter_id,
            sorting,
            title="Year",
            type="year",
            field="date",
            expanded="1",
            submitOnChange="1",
            dynamicOptions="1",
            addOptionCount="1",
            optionCountLabel="huh.filter.option_count.default",
            hideLabel="1",
        )
        self.engine.save(element)
        return element

    def build_featured_element(self, filter_id: Any, sorting: int, featured: Optional[str]) -> Optional[Record]:
        if featured not in ("featured", "unfeatured"):
            return None

        element = self._new_element(
            filter_id,
            sorting,
            title="Hervorgehoben",
            type="checkbox",
            isInitial="1",
            field="featured",
            operator=OPERATOR_LIKE if featured == "featured" else OPERATOR_IS_EMPTY,
            initialValueType="scalar",
            initialValue="1",
        )
        self.engine.save(element)
        return element


class ListConfigBuilder:
    """Creates the list configuration replacing the list settings of a news module."""

    def __init__(self, engine: MigrationEngine):
        self.engine = engine
        self.store = engine.store

    def create_list_config(self, module: Record, filter_config_id: Any) -> Dict[str, Any]:
        """
        Create a list config (and its image element) for a module.

        Returns:
            Dict with the ``config`` record and ``elements`` by name (None if not created)
        """
        now = int(time.time())
        list_config = self.store.new_record(
            LIST_CONFIG_TABLE,
            filter=filter_config_id,
            tstamp=now,
            dateAdded=now,
            title=module.get("name"),
            numberOfItems=module.get("numberOfItems", 0),
            perPage=module.get("perPage", 0),
            skipFirst=module.get("skipFirst", 0),
            sortingField="date",
            sortingDirection=SORTING_DIRECTION_DESC,
            limitFormattedFields="1",
            useAlias="1",
            aliasField="alias",
        )

        if not is_falsy(module.get("jumpToDetails")):
            list_config.set("addDetails", "1")
            list_config.set("jumpToDetails", module.get("jumpToDetails"))

        self.engine.save(list_config)

        elements = {
            "imageSize": self.add_image_size_element(list_config.id, module.get("imgSize")),
        }
        return {"config": list_config, "elements": elements}

    def add_image_size_element(self, list_config_id: Any, img_size: Any) -> Optional[Record]:
        if is_falsy(img_size):
            return None

        size = deserialize(img_size, force_list=True)
        if not any(not is_falsy(part) for part in size):
            return None

        now = int(time.time())
        element = self.store.new_record(
            LIST_ELEMENT_TABLE,
            type="image",
            pid=list_config_id,
            tstamp=now,
            dateAdded=now,
            title="News Image",
            imageSelectorField="addImage",
            imageField="singleSRC",
            imgSize=serialize(size),
        )
        self.engine.save(element)
        return element


def find_news_ids(store, archive_ids: List[int]) -> List[Any]:
    """Ids of all news of the given archives."""
    if not archive_ids:
        return []
    return [news.id for news in store.find_by("tl_news", {"pid": list(archive_ids)}, order_by="id")]
