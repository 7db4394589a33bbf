"""Shared pytest fixtures for all tests."""

import json

import pytest

from pagetree.api.deps import _reset_service_instance, get_settings
from pagetree.config import load_settings
from pagetree.constants import META_FILENAME, PAGES_DIR, SUBPAGES_DIR
from pagetree.service import SitemapService
from pagetree.tree.cache import SitemapCache
from pagetree.tree.repository import MemoryRepository, join


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def add_node(repo, module: str, page: str, subpage: str | None = None, **meta) -> str:
    """Create a node directory (and page.json when meta is given). Returns its path."""
    node_dir = join(module, PAGES_DIR, page)
    if subpage is not None:
        node_dir = join(node_dir, SUBPAGES_DIR, subpage)
    repo.create_dir(node_dir)
    if meta:
        repo.write_text(join(node_dir, META_FILENAME), json.dumps(meta))
    return node_dir


@pytest.fixture
def memory_repo():
    return MemoryRepository()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return SitemapCache(tree_ttl=300, analytics_ttl=900, modules_ttl=60, clock=clock)


@pytest.fixture
def service(memory_repo, cache):
    """Service over an in-memory repository with a fake clock."""
    return SitemapService(memory_repo, cache, project_name="demo")


@pytest.fixture
def shop_repo(memory_repo):
    """Module "shop" with pages list and create, list holding subpage filters."""
    memory_repo.create_dir("shop")
    add_node(memory_repo, "shop", "list", title="Product list", route="/shop/list", status="done")
    add_node(memory_repo, "shop", "create", title="New product", route="/shop/create")
    add_node(memory_repo, "shop", "list", "filters", title="Filters", route="/shop/list/filters")
    return memory_repo


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Temporary workspace wired into load_settings() and the API dependencies."""
    ws = tmp_path / "workspace"
    (ws / "design-assets").mkdir(parents=True)
    monkeypatch.setenv("WORKSPACE_PATH", str(ws))
    monkeypatch.delenv("PAGETREE_PROJECT_NAME", raising=False)

    load_settings.cache_clear()
    get_settings.cache_clear()
    _reset_service_instance()

    yield ws

    load_settings.cache_clear()
    get_settings.cache_clear()
    _reset_service_instance()


@pytest.fixture
def make_node():
    """The add_node helper, for tests that build their own layouts."""
    return add_node
