"""Sitemap service tests: mutations, cache coherence and export/import."""

import json
from unittest.mock import patch

import pytest

from pagetree.config import Config
from pagetree.diagram import GraphMode, validate_mermaid
from pagetree.errors import (
    AlreadyExistsError,
    InvalidInputError,
    IOFailureError,
    MissingModuleError,
    NodeNotFoundError,
    UnknownSlugError,
)
from pagetree.service import SitemapService
from pagetree.tree.cache import SitemapCache
from pagetree.tree.models import SitemapExport
from pagetree.tree.repository import FileSystemRepository, MemoryRepository


def slugs(nodes):
    return [node.slug for node in nodes]


@pytest.fixture
def shop(service, shop_repo):
    return service


class TestCaching:
    def test_repeated_get_tree_scans_once(self, shop):
        with patch.object(shop.builder, "build", wraps=shop.builder.build) as build:
            shop.get_tree("shop")
            shop.get_tree("shop")

        assert build.call_count == 1

    def test_tree_rebuilt_after_ttl(self, shop, clock):
        first = shop.get_tree("shop")
        clock.advance(301)

        assert shop.get_tree("shop") is not first

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda s: s.create_node("shop", "archive"),
            lambda s: s.delete_node("shop/create"),
            lambda s: s.rename_node("shop/create", "new"),
            lambda s: s.set_order("shop", ["list"]),
            lambda s: s.update_metadata("shop/list", {"title": "Catalog"}),
            lambda s: s.apply_crud_subpages("shop", "list"),
        ],
    )
    def test_mutation_is_visible_to_next_read(self, shop, mutate):
        before = shop.get_tree("shop")
        shop.analyze()
        shop.list_modules()

        mutate(shop)

        assert shop.get_tree("shop") != before
        stats = shop.cache_stats()
        assert stats["analytics_cached"] is False
        assert stats["modules_cached"] is False

    def test_failed_mutation_still_invalidates(self, shop, shop_repo):
        shop.get_tree("shop")

        with patch.object(shop_repo, "remove", side_effect=IOFailureError("remove", "x")):
            with pytest.raises(IOFailureError):
                shop.delete_node("shop/create")

        assert "shop" not in shop.cache_stats()["cached_modules"]

    def test_external_edit_needs_invalidate(self, shop, shop_repo, make_node):
        shop.get_tree("shop")
        make_node(shop_repo, "shop", "external")

        assert "external" not in slugs(shop.get_tree("shop").pages)

        shop.invalidate_cache("shop")
        assert "external" in slugs(shop.get_tree("shop").pages)

    def test_invalidate_all(self, shop):
        shop.get_tree("shop")
        shop.analyze()

        shop.invalidate_cache()

        stats = shop.cache_stats()
        assert stats["tree_entries"] == 0
        assert stats["analytics_cached"] is False

    def test_preload_all(self, shop, shop_repo):
        shop_repo.create_dir("admin")

        assert shop.preload_all() == 2
        assert shop.cache_stats()["cached_modules"] == ["admin", "shop"]


class TestCreateNode:
    def test_create_page_seeds_metadata_and_assets(self, shop, shop_repo):
        ref = shop.create_node("shop", "archive")

        assert ref.path == "/shop/archive"
        assert ref.parent is None
        meta = json.loads(shop_repo.read_text("shop/pages/archive/page.json"))
        assert meta == {
            "title": "archive",
            "status": "draft",
            "route": "/shop/archive",
            "path": "/shop/archive",
        }
        for subdir in ("screenshots", "html", "css"):
            assert shop_repo.is_dir(f"shop/pages/archive/{subdir}")

    def test_create_subpage(self, shop):
        ref = shop.create_node("shop", "export", parent="list")

        assert ref.parent == "list"
        tree = shop.get_tree("shop")
        assert slugs(tree.pages[1].children) == ["export", "filters"]

    def test_duplicate_slug_rejected(self, shop):
        with pytest.raises(AlreadyExistsError):
            shop.create_node("shop", "list")

    @pytest.mark.parametrize("slug", ["", "  ", "a/b", "a\\b", ".."])
    def test_invalid_slug_rejected(self, shop, shop_repo, slug):
        with pytest.raises(InvalidInputError):
            shop.create_node("shop", slug)

        assert sorted(shop_repo.list_children("shop/pages")) == ["create", "list"]

    def test_page_in_missing_module_creates_module(self, service, memory_repo):
        ref = service.create_node("shop", "list")

        assert ref.path == "/shop/list"
        assert memory_repo.is_dir("shop/pages/list")
        assert memory_repo.is_dir("shop/screenshots")
        assert [m.name for m in service.list_modules()] == ["shop"]

    def test_subpage_in_missing_module(self, service):
        with pytest.raises(MissingModuleError):
            service.create_node("ghost", "page", parent="home")

    def test_missing_parent(self, shop):
        with pytest.raises(NodeNotFoundError):
            shop.create_node("shop", "x", parent="ghost")

    def test_partial_create_is_cleaned_up(self, shop, shop_repo):
        with patch.object(shop_repo, "write_text", side_effect=IOFailureError("write", "x")):
            with pytest.raises(IOFailureError):
                shop.create_node("shop", "archive")

        assert not shop_repo.exists("shop/pages/archive")


class TestDeleteAndRename:
    def test_delete_subtree(self, shop, shop_repo):
        shop.delete_node("shop/list")

        assert not shop_repo.exists("shop/pages/list/subpages/filters")
        assert slugs(shop.get_tree("shop").pages) == ["create"]

    def test_delete_missing_node(self, shop):
        with pytest.raises(NodeNotFoundError):
            shop.delete_node("shop/ghost")

    @pytest.mark.parametrize("raw", ["shop", "a/b/c/d", "shop//list"])
    def test_bad_paths_rejected(self, shop, raw):
        with pytest.raises(InvalidInputError):
            shop.delete_node(raw)

    def test_rename_reports_stale_references(self, shop):
        shop.set_order("shop", ["list", "create"])
        shop.update_metadata("shop/create", {"links": [{"to": "/shop/list/filters"}]})

        ref = shop.rename_node("shop/list", "catalog")

        assert ref.path == "/shop/catalog"
        assert "order: pages lists 'list'" in ref.stale_references
        assert "meta: route is '/shop/list'" in ref.stale_references
        assert "link: /shop/create -> /shop/list/filters" in ref.stale_references

    def test_rename_reports_subpages_naming_old_parent(self, shop):
        ref = shop.rename_node("shop/list", "items")

        assert ref.stale_references == [
            "meta: route is '/shop/list'",
            "meta: shop/items/filters route is '/shop/list/filters'",
        ]

    def test_rename_leaves_order_entry_stale(self, shop):
        shop.set_order("shop", ["list", "create"])

        shop.rename_node("shop/list", "catalog")

        assert shop.orders.load("shop").pages == ["list", "create"]
        assert slugs(shop.get_tree("shop").pages) == ["create", "catalog"]

    def test_rename_subpage(self, shop):
        ref = shop.rename_node("shop/list/filters", "facets")

        assert ref.parent == "list"
        assert slugs(shop.get_tree("shop").pages[1].children) == ["facets"]

    def test_rename_onto_sibling_rejected(self, shop):
        with pytest.raises(AlreadyExistsError):
            shop.rename_node("shop/list", "create")


class TestModules:
    def test_create_module_seeds_folders(self, service, memory_repo):
        summary = service.create_module("shop")

        assert summary.name == "shop"
        for subdir in ("pages", "screenshots", "html", "css"):
            assert memory_repo.is_dir(f"shop/{subdir}")
        assert service.get_tree("shop").pages == []

    def test_create_existing_module_rejected(self, shop):
        with pytest.raises(AlreadyExistsError):
            shop.create_module("shop")

    def test_create_module_invalid_name(self, service):
        with pytest.raises(InvalidInputError):
            service.create_module("a/b")

    def test_create_module_refreshes_module_list(self, shop):
        assert [m.name for m in shop.list_modules()] == ["shop"]

        shop.create_module("admin")

        assert [m.name for m in shop.list_modules()] == ["admin", "shop"]

    def test_delete_module(self, shop, shop_repo):
        shop.get_tree("shop")

        shop.delete_module("shop")

        assert not shop_repo.exists("shop")
        assert shop.list_modules() == []
        with pytest.raises(MissingModuleError):
            shop.get_tree("shop")

    def test_delete_missing_module(self, service):
        with pytest.raises(MissingModuleError):
            service.delete_module("ghost")


class TestSetOrder:
    def test_page_order(self, shop):
        shop.set_order("shop", ["list"])

        assert slugs(shop.get_tree("shop").pages) == ["list", "create"]

    def test_duplicates_dropped_from_result(self, shop, shop_repo):
        order = shop.set_order("shop", ["list", "list", "create"])

        assert order.pages == ["list", "create"]
        assert json.loads(shop_repo.read_text("shop/pages/_order.json"))["pages"] == order.pages

    def test_unknown_slug_leaves_file_bytes_unchanged(self, shop, shop_repo):
        shop.set_order("shop", ["list"])
        before = shop_repo.read_text("shop/pages/_order.json")

        with pytest.raises(UnknownSlugError):
            shop.set_order("shop", ["ghost"])

        assert shop_repo.read_text("shop/pages/_order.json") == before

    def test_subpage_order(self, shop, make_node, shop_repo):
        make_node(shop_repo, "shop", "list", "bulk")

        shop.set_order("shop", ["filters"], parent="list")

        assert slugs(shop.get_tree("shop").pages[1].children) == ["filters", "bulk"]


class TestUpdateMetadata:
    def test_patch_overlays_present_fields(self, shop):
        meta = shop.update_metadata("shop/list", {"status": "review", "class": "hot"})

        assert meta.status == "review"
        assert meta.title == "Product list"
        page = shop.get_tree("shop").pages[1]
        assert (page.status, page.css_class) == ("review", "hot")

    def test_null_clears_field(self, shop):
        meta = shop.update_metadata("shop/list", {"title": None})

        assert meta.title is None
        assert "shop/list (missing title)" in shop.analyze().orphaned_pages

    def test_unknown_key_rejected(self, shop):
        with pytest.raises(InvalidInputError):
            shop.update_metadata("shop/list", {"colour": "red"})

    def test_wrong_type_rejected(self, shop):
        with pytest.raises(InvalidInputError):
            shop.update_metadata("shop/list", {"links": "nope"})

    def test_missing_node(self, shop):
        with pytest.raises(NodeNotFoundError):
            shop.update_metadata("shop/ghost", {"title": "x"})


class TestCrudSubpages:
    def test_creates_missing_subpages_with_actions(self, shop, shop_repo):
        created = shop.apply_crud_subpages("shop", "create")

        assert created == ["list", "create", "detail", "edit"]
        meta = json.loads(shop_repo.read_text("shop/pages/create/subpages/detail/page.json"))
        assert meta["action"] == "view"

    def test_existing_subpages_are_kept(self, shop, make_node, shop_repo):
        make_node(shop_repo, "shop", "list", "list", title="Mine")

        created = shop.apply_crud_subpages("shop", "list")

        assert created == ["create", "detail", "edit"]
        meta = json.loads(shop_repo.read_text("shop/pages/list/subpages/list/page.json"))
        assert meta["title"] == "Mine"

    def test_detailed_diagram_has_workflow(self, shop):
        shop.apply_crud_subpages("shop", "create")

        text = shop.render_graph("shop", GraphMode.DETAILED, page="create")

        assert "shop_create_list ==>|add| shop_create_create" in text
        assert "shop_create_detail ==>|edit| shop_create_edit" in text
        assert validate_mermaid(text).valid


class TestDiagramsAndAnalytics:
    def test_project_diagram_covers_every_module(self, shop, shop_repo, make_node):
        make_node(shop_repo, "blog", "posts")

        text = shop.render_graph()

        assert "    blog --> blog_posts" in text
        assert "    shop --> shop_list" in text

    def test_unknown_page_filter(self, shop):
        with pytest.raises(NodeNotFoundError):
            shop.render_graph("shop", page="ghost")

    def test_graph_data(self, shop):
        data = shop.graph_data("shop")

        assert [n["id"] for n in data["nodes"]] == [
            "shop",
            "shop_create",
            "shop_list",
            "shop_list_filters",
        ]

    def test_analyze_is_cached(self, shop):
        assert shop.analyze() is shop.analyze()


class TestExportImport:
    def test_export_follows_tree_order(self, shop):
        shop.set_order("shop", ["list"])

        export = shop.export_sitemap()

        assert export.project_name == "demo"
        [module] = export.modules
        assert [p.slug for p in module.pages] == ["list", "create"]
        assert module.pages[0].subpages[0].title == "Filters"

    def test_import_into_empty_repository(self, shop, service_factory):
        export = shop.export_sitemap()
        target = service_factory()

        result = target.import_sitemap(export)

        assert (result.modules_created, result.pages_created, result.subpages_created) == (1, 2, 1)
        copied = target.export_sitemap().modules[0]
        assert [(p.slug, p.title, [s.slug for s in p.subpages]) for p in copied.pages] == [
            ("create", "New product", []),
            ("list", "Product list", ["filters"]),
        ]

    def test_import_is_idempotent_for_node_set(self, shop):
        export = shop.export_sitemap()

        result = shop.import_sitemap(export)

        assert (result.modules_created, result.pages_created, result.subpages_created) == (0, 0, 0)

    def test_import_validates_before_writing(self, shop, shop_repo):
        data = SitemapExport.model_validate(
            {
                "project_name": "x",
                "export_timestamp": "2026-01-01T00:00:00Z",
                "modules": [{"name": "new", "pages": [{"slug": "ok"}, {"slug": "bad/slug"}]}],
            }
        )

        with pytest.raises(InvalidInputError):
            shop.import_sitemap(data)

        assert not shop_repo.exists("new")


@pytest.fixture
def service_factory(clock):
    def make():
        cache = SitemapCache(tree_ttl=300, analytics_ttl=900, modules_ttl=60, clock=clock)
        return SitemapService(MemoryRepository(), cache, project_name="copy")

    return make


def test_from_settings_uses_assets_dir(tmp_path):
    settings = Config(workspace_path=tmp_path, project_name="Storefront")

    service = SitemapService.from_settings(settings)

    assert isinstance(service._repo, FileSystemRepository)
    assert service._repo.root == tmp_path / "design-assets"
    assert service.cache_stats()["ttl_seconds"]["trees"] == 300
    assert service.export_sitemap().project_name == "Storefront"
