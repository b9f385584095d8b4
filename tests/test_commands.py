from cms_migration.commands import COMMANDS
from cms_migration.commands.news_categories import NewsCategoriesCommand
from cms_migration.commands.news_list import NewsListModuleCommand
from cms_migration.commands.news_menu import NewsMenuModuleCommand
from cms_migration.commands.news_reader import FORMATTED_FIELDS, NewsReaderModuleCommand
from cms_migration.commands.news_tags import NewsTagsCommand
from cms_migration.commands.owl_carousel import OwlCarouselToTinySliderCommand, parse_breakpoint_settings
from cms_migration.commands.tabs import TabsToTabControlCommand, group_tab_elements
from cms_migration.models.migration import MigrationStatus
from cms_migration.orchestrator import MigrationOrchestrator
from cms_migration.services.transforms import deserialize, serialize
from cms_migration.stores.memory_store import MemoryRecordStore


def _news_module(**fields):
    module = {
        "id": 1,
        "type": "newslist",
        "name": "News Übersicht",
        "news_archives": serialize(["1", "2"]),
        "news_template": "news_list_default",
        "news_featured": "featured",
        "numberOfItems": 10,
        "perPage": 5,
        "skipFirst": 0,
        "jumpToDetails": 42,
        "imgSize": serialize(["100", "", "crop"]),
    }
    module.update(fields)
    return module


def test_registry_names():
    assert sorted(COMMANDS) == [
        "migrate:ce:tabcontrol",
        "migrate:db:news_categories",
        "migrate:db:news_tags",
        "migrate:module:newslist",
        "migrate:module:newsmenu",
        "migrate:module:newsreader",
        "migrate:module:owlcarousel",
    ]


def test_news_list_migration(make_engine, project_dir):
    store = MemoryRecordStore({"tl_module": [_news_module(), {"id": 2, "type": "navigation"}]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(NewsListModuleCommand(engine)).run()

    assert run.status == MigrationStatus.COMPLETED
    assert run.records_found == 1
    assert run.records_succeeded == 1

    module = store.find_by_pk("tl_module", 1)
    assert module.get("type") == "huhlist"
    assert module.get("listConfig") == 1

    filter_config = store.rows("tl_filter_config")[0]
    assert filter_config["name"] == "news-uebersicht"
    elements = store.rows("tl_filter_config_element")
    assert [e["title"] for e in elements] == ["Archiv", "Mindestdatum", "Veröffentlicht", "Hervorgehoben"]
    assert [e["sorting"] for e in elements] == [2, 4, 16, 24]
    assert deserialize(elements[0]["initialValueArray"]) == [{"value": "1"}, {"value": "2"}]
    assert elements[3]["operator"] == "like"

    list_config = store.rows("tl_list_config")[0]
    assert list_config["filter"] == 1
    assert list_config["itemTemplate"] == "news_list_default.html.twig"
    assert list_config["jumpToDetails"] == 42
    assert store.rows("tl_list_config_element")[0]["type"] == "image"

    assert run.migration_sql == ["UPDATE tl_module SET type='huhlist', listConfig=1 WHERE id=1;"]
    assert (project_dir / "templates" / "news_list_default.html.twig").exists()
    assert run.templates == [{
        "source_name": "news_list_default",
        "target_name": "news_list_default.html.twig",
        "copied": True,
    }]


def test_news_list_dry_run_changes_nothing(make_engine, project_dir):
    store = MemoryRecordStore({"tl_module": [_news_module()]})
    engine = make_engine(dry_run=True, record_store=store)

    run = MigrationOrchestrator(NewsListModuleCommand(engine)).run()

    assert run.status == MigrationStatus.COMPLETED
    assert run.dry_run
    assert store.write_count == 0
    assert store.rows("tl_module")[0]["type"] == "newslist"
    assert run.migration_sql == ["UPDATE tl_module SET type='huhlist', listConfig=0 WHERE id=1;"]
    assert not (project_dir / "templates" / "news_list_default.html.twig").exists()


def test_news_list_category_filter(make_engine):
    store = MemoryRecordStore({
        "tl_module": [_news_module(news_filterCategories="1", news_filterDefault=serialize(["7"]))],
        "tl_news_category": [{"id": 7, "alias": "sport"}],
        "tl_category": [{"id": 3, "alias": "sport"}],
    })
    engine = make_engine(record_store=store)

    MigrationOrchestrator(NewsListModuleCommand(engine, {"category_field": "categories"})).run()

    category_element = [e for e in store.rows("tl_filter_config_element") if e["title"] == "Kategorien"][0]
    assert category_element["field"] == "categories"
    assert category_element["sorting"] == 8
    assert deserialize(category_element["initialValueArray"]) == [{"value": 3}]


def test_news_menu_migration(make_engine, project_dir):
    module = {
        "id": 1,
        "type": "newsmenu",
        "name": "Archiv",
        "news_archives": serialize(["1"]),
        "customTpl": "news_list_default",
    }
    store = MemoryRecordStore({"tl_module": [module]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(NewsMenuModuleCommand(engine)).run()

    assert run.status == MigrationStatus.COMPLETED
    module = store.find_by_pk("tl_module", 1)
    assert module.get("type") == "filter"
    assert module.get("filter") == 1
    assert module.get("customTpl") == ""

    filter_config = store.rows("tl_filter_config")[0]
    assert filter_config["template"] == "filter_form_news_list_default.html.twig"
    assert (project_dir / "templates" / "filter_form_news_list_default.html.twig").exists()

    elements = store.rows("tl_filter_config_element")
    assert [(e["type"], e["sorting"]) for e in elements] == [
        ("parent", 2), ("sql", 4), ("published", 16), ("year", 32), ("year", 64),
    ]

    assert run.migration_sql == ["UPDATE tl_module SET type='filter', filter=1 WHERE id=1;"]
    assert "[ID 1]" in run.upgrade_notices["filter"][0]


def test_news_menu_without_custom_template(make_engine):
    store = MemoryRecordStore({"tl_module": [{"id": 1, "type": "newsmenu", "name": "Archiv"}]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(NewsMenuModuleCommand(engine)).run()

    assert run.records_succeeded == 1
    assert store.rows("tl_filter_config")[0]["template"] == "form_div_layout"
    assert "No template set for source record (ID: 1)" in run.upgrade_notices["template"][0]


def _reader_module(**fields):
    module = {
        "id": 1,
        "type": "newsreader",
        "name": "News Reader",
        "news_archives": serialize(["3"]),
        "news_template": "news_list_default",
        "imgSize": serialize(["200", "", "proportional"]),
        "addShare": "1",
        "share_buttons": serialize(["facebook", "printButton"]),
        "news_navigation_infinite": "1",
    }
    module.update(fields)
    return module


def test_news_reader_migration(make_engine, project_dir):
    store = MemoryRecordStore({"tl_module": [_reader_module()]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(NewsReaderModuleCommand(engine, {"add_navigation": True})).run()

    assert run.status == MigrationStatus.COMPLETED
    module = store.find_by_pk("tl_module", 1)
    assert module.get("type") == "huhreader"
    assert module.get("readerConfig") == 1
    assert run.migration_sql == ["UPDATE tl_module SET type='huhreader', readerConfig=1 WHERE id=1;"]

    reader_config = store.rows("tl_reader_config")[0]
    assert reader_config["itemTemplate"] == "news_list_default.html.twig"
    assert reader_config["filter"] == 1
    assert deserialize(reader_config["formattedFields"]) == FORMATTED_FIELDS
    assert (project_dir / "templates" / "news_list_default.html.twig").exists()

    elements = store.rows("tl_reader_config_element")
    assert [e["type"] for e in elements] == ["image", "navigation", "syndication"]
    assert elements[0]["imgSize"] == serialize(["200", "", "proportional"])
    assert elements[1]["infiniteNavigation"] == "1"
    syndication = elements[2]
    assert syndication["syndicationFacebook"] == "1"
    assert syndication["syndicationPrint"] == "1"
    assert syndication["syndicationPrintTemplate"] == "readerprint_default"
    assert "syndicationTwitter" not in syndication

    filter_elements = store.rows("tl_filter_config_element")
    assert [(e["type"], e["sorting"]) for e in filter_elements] == [("parent", 2), ("visible", 4)]
    assert deserialize(filter_elements[0]["initialValueArray"]) == [{"value": "3"}]


def test_news_reader_minimal_module(make_engine):
    store = MemoryRecordStore({"tl_module": [_reader_module(news_archives="", addShare="")]})
    engine = make_engine(record_store=store)

    MigrationOrchestrator(NewsReaderModuleCommand(engine)).run()

    assert [e["type"] for e in store.rows("tl_reader_config_element")] == ["image"]
    filter_elements = store.rows("tl_filter_config_element")
    assert [(e["type"], e["sorting"]) for e in filter_elements] == [("visible", 2)]


def test_parse_breakpoint_settings():
    assert parse_breakpoint_settings("items:1, margin: 10 ,owl_loop=1") == {
        "owl_items": "1",
        "owl_margin": "10",
        "owl_loop": "1",
    }
    assert parse_breakpoint_settings("") == {}


def test_owl_carousel_migration(make_engine):
    module = _news_module(
        type="owl_newslist",
        name="Slider",
        owl_items="3",
        owl_margin="0",
        owl_startPosition="2",
        owl_responsive=serialize([
            {"owl_breakpoint": "768", "owl_config": "items:1, margin:10"},
            {"owl_breakpoint": "", "owl_config": "items:2"},
        ]),
        owl_navText=serialize(["prev", "next"]),
    )
    store = MemoryRecordStore({"tl_module": [module]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(OwlCarouselToTinySliderCommand(engine)).run()

    assert run.status == MigrationStatus.COMPLETED
    responsive, base = store.rows("tl_tiny_slider_config")

    assert base["type"] == "base"
    assert base["tinySlider_items"] == "3"
    assert "tinySlider_gutter" not in base
    assert base["tinySlider_startIndex"] == 2
    assert deserialize(base["tinySlider_responsive"]) == [{"breakpoint": "768", "configuration": responsive["id"]}]

    assert responsive["type"] == "responsive"
    assert responsive["title"] == "Slider - mobile (768px)"
    assert responsive["tinySlider_items"] == "1"
    assert responsive["tinySlider_gutter"] == "10"

    list_config = store.rows("tl_list_config")[0]
    assert list_config["addTinySlider"] == "1"
    assert list_config["tinySliderConfig"] == base["id"]
    assert store.find_by_pk("tl_module", 1).get("type") == "huhlist"

    assert "'prev', 'next'" in run.upgrade_notices["module"][0]


def test_owl_carousel_invalid_mapping_file(make_engine, tmp_path):
    mapping_file = tmp_path / "broken.json"
    mapping_file.write_text("{", encoding="utf-8")
    store = MemoryRecordStore({"tl_module": [_news_module(type="owl_newslist")]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(OwlCarouselToTinySliderCommand(engine, {"mapping_file": str(mapping_file)})).run()

    assert run.status == MigrationStatus.FAILED
    assert store.write_count == 0


def _tab_store(schema=None):
    rows = [
        {"id": 1, "pid": 10, "ptable": "tl_article", "sorting": 64, "type": "accessible_tabs_start",
         "accessible_tabs_save_state": "1"},
        {"id": 2, "pid": 10, "ptable": "tl_article", "sorting": 128, "type": "accessible_tabs_separator",
         "accessible_tabs_title": "Tab 1"},
        {"id": 3, "pid": 10, "ptable": "tl_article", "sorting": 192, "type": "text"},
        {"id": 4, "pid": 10, "ptable": "tl_article", "sorting": 256, "type": "accessible_tabs_separator",
         "accessible_tabs_title": "Tab 2"},
        {"id": 5, "pid": 10, "ptable": "tl_article", "sorting": 320, "type": "accessible_tabs_stop"},
    ]
    return MemoryRecordStore({"tl_content": rows}, schema=schema)


def test_tabs_migration(make_engine):
    store = _tab_store()
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(TabsToTabControlCommand(engine)).run()

    assert run.status == MigrationStatus.COMPLETED
    assert run.records_succeeded == 4

    rows = {row["id"]: row for row in store.rows("tl_content")}
    assert 2 not in rows
    assert rows[1]["type"] == "tabcontrol_start"
    assert rows[1]["tabControlHeadline"] == "Tab 1"
    assert rows[1]["tabControlRememberLastTab"] == "1"
    assert rows[3]["type"] == "text"
    assert rows[4]["type"] == "tabcontrol_separator"
    assert rows[4]["tabControlHeadline"] == "Tab 2"
    assert rows[5]["type"] == "tabcontrol_stop"

    assert "DELETE FROM tl_content WHERE id=2;" in run.migration_sql
    assert "UPDATE tl_content SET type='tabcontrol_stop' WHERE id=5;" in run.migration_sql


def test_tabs_migration_of_single_element_uses_whole_group(make_engine):
    store = _tab_store()
    engine = make_engine(record_store=store)

    MigrationOrchestrator(TabsToTabControlCommand(engine)).run(ids=[1])

    rows = {row["id"]: row for row in store.rows("tl_content")}
    assert rows[1]["tabControlHeadline"] == "Tab 1"
    assert rows[2]["type"] == "accessible_tabs_separator"


def test_tabs_migration_requires_columns(make_engine):
    store = _tab_store(schema={"tl_content": ["id", "type"]})
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(TabsToTabControlCommand(engine)).run()

    assert run.status == MigrationStatus.FAILED
    assert store.write_count == 0


def test_group_tab_elements_ignores_incomplete_groups():
    store = MemoryRecordStore({"tl_content": [
        {"id": 1, "type": "accessible_tabs_separator"},
        {"id": 2, "type": "accessible_tabs_start"},
        {"id": 3, "type": "accessible_tabs_stop"},
        {"id": 4, "type": "accessible_tabs_start"},
    ]})

    groups = group_tab_elements(store.find_by("tl_content", order_by="id"))

    assert [[member["id"] for member in group] for group in groups] == [[2, 3]]


def test_news_categories_migration(make_engine):
    store = MemoryRecordStore({
        "tl_news_category": [
            {"id": 5, "pid": 0, "title": "Sport", "alias": "sport", "tstamp": 100},
            {"id": 6, "pid": 5, "title": "Fußball", "alias": "fussball", "tstamp": 200, "jumpTo": 12},
        ],
        "tl_category": [{"id": 1, "title": "Existing"}],
        "tl_news_categories": [
            {"category_id": 5, "news_id": 20},
            {"category_id": 6, "news_id": 20},
            {"category_id": 5, "news_id": 20},
            {"category_id": 99, "news_id": 21},
        ],
        "tl_news": [
            {"id": 20, "pid": 1, "primaryCategory": 6},
            {"id": 21, "pid": 2, "primaryCategory": ""},
        ],
    })
    engine = make_engine(record_store=store)
    command = NewsCategoriesCommand(engine, {"primary_category_field": "primaryCategory"})

    run = MigrationOrchestrator(command).run()

    assert run.status == MigrationStatus.COMPLETED
    assert run.records_succeeded == 2

    categories = {row["id"]: row for row in store.rows("tl_category")}
    assert categories[2]["title"] == "Sport"
    assert categories[2]["pid"] == 0
    assert categories[2]["dateAdded"] == 100
    assert categories[3]["pid"] == 2
    assert categories[3]["overrideJumpTo"] == "1"

    associations = store.rows("tl_category_association")
    assert [(a["category"], a["entity"], a["categoryField"]) for a in associations] == [
        (2, 20, "categories"),
        (3, 20, "categories"),
    ]
    assert len(run.upgrade_notices["category"]) == 1
    assert store.find_by_pk("tl_news", 20).get("categories_primary") == 3
    assert "UPDATE tl_news SET categories_primary=3 WHERE id=20;" in run.migration_sql


def test_news_categories_restricted_to_subtree(make_engine):
    store = MemoryRecordStore({"tl_news_category": [
        {"id": 1, "pid": 0, "title": "A"},
        {"id": 2, "pid": 1, "title": "A.1"},
        {"id": 3, "pid": 2, "title": "A.1.1"},
        {"id": 4, "pid": 0, "title": "B"},
    ]})
    command = NewsCategoriesCommand(make_engine(record_store=store), {"category_ids": "1"})

    assert [r.id for r in command.collect()] == [1, 2, 3]


def test_news_tags_migration(make_engine):
    store = MemoryRecordStore({
        "tl_tag": [
            {"tid": 20, "tag": "Sport", "from_table": "tl_news"},
            {"tid": 20, "tag": "Fußball", "from_table": "tl_news"},
            {"tid": 21, "tag": "Sport", "from_table": "tl_news"},
            {"tid": 30, "tag": "Seite", "from_table": "tl_page"},
        ],
        "tl_cfg_tag": [
            {"id": 1, "name": "Sport", "source": "news_tag_manager", "alias": ""},
            {"id": 2, "name": "Other", "source": "other", "alias": "fussball"},
        ],
        "tl_cfg_tag_news": [{"news_id": 20, "cfg_tag_id": 1}],
        "tl_news": [{"id": 20, "pid": 1}, {"id": 21, "pid": 1}],
    })
    engine = make_engine(record_store=store)

    run = MigrationOrchestrator(NewsTagsCommand(engine)).run()

    assert run.status == MigrationStatus.COMPLETED
    assert run.records_found == 3

    tags = {row["name"]: row for row in store.rows("tl_cfg_tag")}
    assert tags["Sport"]["alias"] == "sport"
    assert tags["Fußball"]["id"] == 3
    assert tags["Fußball"]["alias"] == "fussball-3"
    assert tags["Fußball"]["source"] == "news_tag_manager"

    relations = sorted((r["news_id"], r["cfg_tag_id"]) for r in store.rows("tl_cfg_tag_news"))
    assert relations == [(20, 1), (20, 3), (21, 1)]

    assert deserialize(store.find_by_pk("tl_news", 20).get("tags")) == [1, 3]
    assert deserialize(store.find_by_pk("tl_news", 21).get("tags")) == [1]


def test_news_tags_restricted_to_archives(make_engine):
    store = MemoryRecordStore({
        "tl_tag": [
            {"tid": 20, "tag": "Sport", "from_table": "tl_news"},
            {"tid": 21, "tag": "Kultur", "from_table": "tl_news"},
        ],
        "tl_news": [{"id": 20, "pid": 1}, {"id": 21, "pid": 2}],
    })
    command = NewsTagsCommand(make_engine(record_store=store), {"news_archive_ids": "2"})

    assert [r.get("tag") for r in command.collect()] == ["Kultur"]
