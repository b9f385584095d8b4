"""Migration of owl carousel news lists to list modules with tiny slider."""

import argparse
import logging
import os
from typing import Any, Dict, List, Optional

from ..models.mapping import FieldMapping, MappingFileError
from ..models.record import Record
from ..services.field_mapper import is_falsy
from ..services.transforms import deserialize, serialize
from .news_list import NewsListModuleCommand

logger = logging.getLogger(__name__)

SLIDER_CONFIG_TABLE = "tl_tiny_slider_config"
SLIDER_TYPE_BASE = "base"
SLIDER_TYPE_RESPONSIVE = "responsive"

SOURCE_PREFIX = "owl_"
TARGET_PREFIX = "tinySlider_"

DEFAULT_MAPPING_FILE = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "mappings",
    "owl_to_tiny_slider.json",
)


def parse_breakpoint_settings(value: Any) -> Dict[str, str]:
    """
    Parse the settings string of an owl breakpoint.

    The string holds comma separated ``key:value`` (or ``key=value``) pairs,
    e.g. ``"items:1, margin:0"``. Keys are returned with the owl prefix.
    """
    settings: Dict[str, str] = {}
    for part in str(value or "").split(","):
        part = part.strip()
        if not part:
            continue
        separator = ":" if ":" in part else "="
        if separator not in part:
            logger.debug(f"Ignoring breakpoint setting without value: {part}")
            continue
        key, raw = part.split(separator, 1)
        key = key.strip().strip("'\"")
        if not key:
            continue
        if not key.startswith(SOURCE_PREFIX):
            key = SOURCE_PREFIX + key
        settings[key] = raw.strip().strip("'\"")
    return settings


class OwlCarouselToTinySliderCommand(NewsListModuleCommand):
    """
    Replaces owl carousel news lists by list modules rendered with tiny slider.

    On top of the news list migration a tiny slider config is created from the
    ``owl_*`` settings of the module, including one config per responsive
    breakpoint.
    """

    name = "migrate:module:owlcarousel"
    description = "Migrate owl carousel news lists to list modules with tiny slider."
    types = ["owl_newslist"]

    def __init__(self, engine, options=None):
        super().__init__(engine, options)
        self._mapping: Optional[FieldMapping] = None

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        super().add_arguments(parser)
        parser.add_argument(
            "--mapping-file",
            dest="mapping_file",
            default=None,
            help="Mapping table of owl carousel to tiny slider settings",
        )

    def before_migration_check(self) -> bool:
        try:
            self.mapping
        except MappingFileError as e:
            logger.error(f"Invalid mapping file: {e}")
            return False
        return super().before_migration_check()

    @property
    def mapping(self) -> FieldMapping:
        if self._mapping is None:
            self._mapping = self.engine.load_mapping(self.option("mapping_file", DEFAULT_MAPPING_FILE))
        return self._mapping

    def after_list_config(self, module: Record, list_config: Record, filter_data: Dict[str, Any]) -> None:
        slider_config = self.create_tiny_slider_config(module)
        list_config.set("addTinySlider", "1")
        list_config.set("tinySliderConfig", slider_config.id)

    def create_tiny_slider_config(self, module: Record) -> Record:
        configuration = self.store.new_record(
            SLIDER_CONFIG_TABLE,
            tstamp=self.now(),
            title=module.get("name"),
            type=SLIDER_TYPE_BASE,
        )
        self.engine.map(module, configuration, self.mapping, SOURCE_PREFIX, TARGET_PREFIX)

        breakpoints = self.create_breakpoint_configs(module, configuration)
        if breakpoints:
            configuration.set("tinySlider_responsive", serialize(breakpoints))

        self.engine.save(configuration)
        self.check_nav_text(module, configuration)
        return configuration

    def create_breakpoint_configs(self, module: Record, configuration: Record) -> List[Dict[str, Any]]:
        responsive = deserialize(module.get("owl_responsive"))
        if isinstance(responsive, dict):
            responsive = list(responsive.values())
        if not isinstance(responsive, list):
            return []

        breakpoints = []
        for entry in responsive:
            if not isinstance(entry, dict):
                continue
            breakpoint = entry.get("owl_breakpoint")
            settings = parse_breakpoint_settings(entry.get("owl_config"))
            if breakpoint is None or breakpoint == "" or not settings:
                continue

            breakpoint_config = configuration.clone()
            breakpoint_config.set("title", f"{module.get('name')} - mobile ({breakpoint}px)")
            breakpoint_config.set("type", SLIDER_TYPE_RESPONSIVE)
            self.engine.map(settings, breakpoint_config, self.mapping, SOURCE_PREFIX, TARGET_PREFIX)
            self.engine.save(breakpoint_config)

            breakpoints.append({"breakpoint": breakpoint, "configuration": breakpoint_config.id})

        return breakpoints

    def check_nav_text(self, module: Record, configuration: Record) -> None:
        if is_falsy(module.get("owl_navText")):
            return

        nav_text = deserialize(module.get("owl_navText"), force_list=True)
        if len(nav_text) < 2:
            return
        if is_falsy(nav_text[0]) and is_falsy(nav_text[1]):
            return

        self.engine.add_upgrade_notice(
            self.element_name,
            f"You need to manually adjust slider navigation buttons text for Tiny Slider config "
            f"'{configuration.get('title')}' (ID: {configuration.id}): '{nav_text[0]}', '{nav_text[1]}'",
        )
