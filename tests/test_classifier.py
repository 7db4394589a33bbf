"""Page-type classification tests."""

import pytest

from pagetree.diagram.classifier import PageType, classify_page


@pytest.mark.parametrize(
    "slug,expected",
    [
        ("product-list", PageType.LIST),
        ("index", PageType.LIST),
        ("order-detail", PageType.DETAIL),
        ("new-order", PageType.CREATE),
        ("edit-profile", PageType.EDIT),
        ("remove-user", PageType.DELETE),
        ("advanced-search", PageType.SEARCH),
        ("dashboard", PageType.DASHBOARD),
        ("settings", PageType.SETTINGS),
        ("about", PageType.GENERAL),
    ],
)
def test_classify_by_slug(slug, expected):
    assert classify_page(slug) is expected


def test_matching_is_case_insensitive():
    assert classify_page("UserList") is PageType.LIST


def test_earlier_rule_wins():
    # "overview" contains "view", and DETAIL is checked before DASHBOARD
    assert classify_page("overview") is PageType.DETAIL
    assert classify_page("list-and-edit") is PageType.LIST


def test_action_takes_precedence_over_slug():
    assert classify_page("orders", action="create") is PageType.CREATE
    assert classify_page("order-list", action="edit") is PageType.EDIT


def test_unrecognized_action_falls_back_to_slug():
    assert classify_page("order-list", action="publish") is PageType.LIST
