import pytest

from app.core.constants import Category
from app.dto.promotions import PromotionScopeEntry
from app.promotions.category_filter import CategoryFilter, normalize_category


@pytest.mark.parametrize("raw, expected", [
    ("drink", Category.DRINK),
    ("  Drinks ", Category.DRINK),
    ("DRK", Category.DRINK),
    ("Đồ uống", Category.DRINK),
    ("do_uong", Category.DRINK),
    ("Bánh", Category.CAKE),
    ("cake_slice", Category.CAKE),
    ("top", Category.TOPPING),
    ("Toppings", Category.TOPPING),
    ("merch", Category.MERCHANDISE),
    ("pctc-set", Category.PCTC),
    ("seasonal", "SEASONAL"),
    ("", Category.UNKNOWN),
    ("   ", Category.UNKNOWN),
    (None, Category.UNKNOWN),
])
def test_normalize_category(raw, expected):
    assert normalize_category(raw) == expected


def scopes(*entries):
    return [PromotionScopeEntry(category=category, is_included=included) for category, included in entries]


def test_empty_scope_matches_everything():
    assert CategoryFilter.is_eligible("MERCH", []) is True
    assert CategoryFilter.is_eligible(None, []) is True


def test_included_entry_matches_after_normalization():
    scope = scopes(("Drinks", True))

    assert CategoryFilter.is_eligible("Đồ uống", scope) is True
    assert CategoryFilter.is_eligible("CAKE", scope) is False


def test_excluded_entries_do_not_grant_eligibility():
    scope = scopes(("DRINK", False), ("CAKE", True))

    assert CategoryFilter.is_eligible("DRINK", scope) is False
    assert CategoryFilter.is_eligible("cake", scope) is True


def test_scope_categories_keep_order_without_duplicates():
    scope = scopes(("topping", True), ("DRINK", False), ("Drinks", True), ("DRK", True))

    assert CategoryFilter.scope_categories(scope) == [Category.TOPPING, Category.DRINK]


def test_matches_category():
    assert CategoryFilter.matches_category("drk", "DRINK") is True
    assert CategoryFilter.matches_category("cake", "DRINK") is False
