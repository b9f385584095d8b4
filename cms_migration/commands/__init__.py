"""Migration commands."""

from typing import Dict, Type

from .base import BaseMigrationCommand, ContentElementMigrationCommand, ModuleMigrationCommand
from .news_categories import NewsCategoriesCommand
from .news_list import NewsListModuleCommand
from .news_menu import NewsMenuModuleCommand
from .news_reader import NewsReaderModuleCommand
from .news_tags import NewsTagsCommand
from .owl_carousel import OwlCarouselToTinySliderCommand
from .tabs import TabsToTabControlCommand

COMMANDS: Dict[str, Type[BaseMigrationCommand]] = {
    command.name: command
    for command in (
        NewsListModuleCommand,
        NewsReaderModuleCommand,
        NewsMenuModuleCommand,
        OwlCarouselToTinySliderCommand,
        TabsToTabControlCommand,
        NewsCategoriesCommand,
        NewsTagsCommand,
    )
}

__all__ = [
    "COMMANDS",
    "BaseMigrationCommand",
    "ContentElementMigrationCommand",
    "ModuleMigrationCommand",
    "NewsCategoriesCommand",
    "NewsListModuleCommand",
    "NewsMenuModuleCommand",
    "NewsReaderModuleCommand",
    "NewsTagsCommand",
    "OwlCarouselToTinySliderCommand",
    "TabsToTabControlCommand",
]
