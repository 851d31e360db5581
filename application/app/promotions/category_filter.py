import unicodedata
from typing import FrozenSet, Iterable, List, Optional

# Constants
from app.core.constants import Category

# DTOs
from app.dto.promotions import PromotionScopeEntry

# Logging
from app.logging.utils import get_app_logger
logger = get_app_logger("app.promotions.category_filter")


def _strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    # Vietnamese D-stroke does not decompose
    decomposed = decomposed.replace("Đ", "D").replace("đ", "d")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_category(value: Optional[str]) -> str:
    """
    Canonical category code used everywhere categories are compared.

    Trims, upper-cases and strips diacritics, then folds known aliases
    (``DRK``, ``DO UONG`` ...) and prefixed variants (``DRINKS``) onto the
    canonical codes in ``Category``. Missing or blank input is ``UNKNOWN``.
    """
    if value is None:
        return Category.UNKNOWN

    cleaned = _strip_diacritics(str(value).strip()).upper()
    if not cleaned:
        return Category.UNKNOWN

    if cleaned in Category.ALIASES:
        return Category.ALIASES[cleaned]

    for canonical in Category.PREFIXES:
        if cleaned.startswith(canonical):
            return canonical

    return cleaned


class CategoryFilter:
    """Scope matching for category-restricted promotions"""

    @staticmethod
    def included_categories(scopes: Iterable[PromotionScopeEntry]) -> FrozenSet[str]:
        return frozenset(normalize_category(scope.category) for scope in scopes if scope.is_included)

    @staticmethod
    def scope_categories(scopes: Iterable[PromotionScopeEntry]) -> List[str]:
        """Included categories in scope order, without duplicates"""
        ordered = []
        for scope in scopes:
            if not scope.is_included:
                continue
            category = normalize_category(scope.category)
            if category not in ordered:
                ordered.append(category)
        return ordered

    @staticmethod
    def is_eligible(category: Optional[str], scopes: Iterable[PromotionScopeEntry]) -> bool:
        """
        Check whether a line category falls inside a promotion scope

        Args:
            category: Raw or normalized line category
            scopes: Scope entries of the promotion

        Returns:
            True when the scope is empty or an included entry matches the category
        """
        scopes = list(scopes)
        if not scopes:
            return True  # No scope means all categories match

        normalized = normalize_category(category)
        eligible = normalized in CategoryFilter.included_categories(scopes)
        if not eligible:
            logger.debug(f"category_out_of_scope | category={normalized} scopes={[s.category for s in scopes]}")
        return eligible

    @staticmethod
    def matches_category(category: Optional[str], target: str) -> bool:
        return normalize_category(category) == normalize_category(target)
