"""Analytics aggregator tests."""

from pagetree.analytics import AnalyticsAggregator


def test_missing_route_is_orphaned(memory_repo, make_node):
    make_node(memory_repo, "shop", "list", title="List", route="/shop/list", status="done")
    make_node(memory_repo, "shop", "create", title="Create")

    report = AnalyticsAggregator(memory_repo, "demo").analyze()

    assert report.project_name == "demo"
    assert report.total_pages == 2
    assert report.orphaned_pages == ["shop/create (missing route)"]


def test_orphan_reasons(memory_repo, make_node):
    make_node(memory_repo, "m", "a")
    make_node(memory_repo, "m", "b")
    memory_repo.write_text("m/pages/b/page.json", "oops")
    make_node(memory_repo, "m", "c", status="draft")

    report = AnalyticsAggregator(memory_repo, "demo").analyze()

    assert report.orphaned_pages == [
        "m/a (no meta)",
        "m/b (invalid meta)",
        "m/c (missing title, route)",
    ]


def test_totals_depth_and_status(shop_repo, make_node):
    make_node(shop_repo, "blog", "posts", title="Posts", route="/blog/posts")

    report = AnalyticsAggregator(shop_repo, "demo").analyze()

    assert report.total_modules == 2
    assert report.total_pages == 3
    assert report.total_subpages == 1
    assert report.average_pages_per_module == 1.5
    assert report.modules_with_deep_structure == ["shop"]
    assert report.deepest_module == "shop"
    assert report.max_depth == 3
    assert report.status_distribution == {"done": 1, "unknown": 3}


def test_coverage_metrics(shop_repo):
    shop_repo.write_text("shop/pages/list/screenshots/a.png", "x")
    shop_repo.write_text("shop/pages/list/html/a.html", "x")
    shop_repo.write_text("shop/pages/list/css/a.css", "x")
    shop_repo.write_text("shop/pages/create/html/b.html", "x")

    coverage = AnalyticsAggregator(shop_repo, "demo").analyze().coverage_metrics

    assert coverage.pages_with_screenshots == 1
    assert coverage.pages_with_html == 2
    assert coverage.html_percentage == 66.67
    assert coverage.completion_percentage == 33.33
    shop = coverage.modules_completion["shop"]
    assert (shop.total_pages, shop.pages_with_assets) == (3, 2)


def test_empty_root(memory_repo):
    report = AnalyticsAggregator(memory_repo, "demo").analyze()

    assert report.total_modules == 0
    assert report.average_pages_per_module == 0.0
    assert report.deepest_module is None
