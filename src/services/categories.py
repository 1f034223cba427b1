"""Keyword-based category derivation for listings.

Home-stays, experiences and services store only their broad kind; the finer
category shown in filters is inferred from title and description keywords.
Rules are checked in order and the first match wins, so a listing that
mentions both "apartment" and "villa" is an apartment.
"""

from typing import Iterable, NamedTuple

from src.models.listing import Listing, ListingCategory

OTHER_CATEGORY = "other"


class CategoryRule(NamedTuple):
    """Category assigned when any keyword appears in the title or description."""
    name: str
    title_keywords: tuple[str, ...]
    description_keywords: tuple[str, ...]

    def matches(self, title: str, description: str) -> bool:
        return (
            any(keyword in title for keyword in self.title_keywords)
            or any(keyword in description for keyword in self.description_keywords)
        )


HOME_CATEGORY_RULES = (
    CategoryRule("apartment", ("apartment",), ("apartment",)),
    CategoryRule("villa", ("villa",), ("villa",)),
    CategoryRule("condo", ("condo",), ("condo",)),
    CategoryRule("studio", ("studio",), ("studio",)),
    CategoryRule("house", ("house",), ("house", "home")),
)

EXPERIENCE_CATEGORY_RULES = (
    CategoryRule("tours", ("tour",), ("tour",)),
    CategoryRule("workshops", ("workshop",), ("workshop",)),
    CategoryRule("adventure", ("adventure",), ("adventure", "outdoor")),
    CategoryRule("cultural", ("culture",), ("culture", "cultural")),
)

SERVICE_CATEGORY_RULES = (
    CategoryRule("food", ("chef",), ("chef",)),
    CategoryRule("wellness", (), ("spa", "massage", "wellness")),
    CategoryRule("photography", ("photo",), ("photo",)),
    CategoryRule("beauty", ("beauty",), ("beauty",)),
)

CATEGORY_RULES = {
    ListingCategory.HOME: HOME_CATEGORY_RULES,
    ListingCategory.EXPERIENCE: EXPERIENCE_CATEGORY_RULES,
    ListingCategory.SERVICE: SERVICE_CATEGORY_RULES,
}


def classify(title: str, description: str, rules: Iterable[CategoryRule]) -> str:
    """Return the first matching rule's category, or 'other'."""
    title = (title or "").lower()
    description = (description or "").lower()
    for rule in rules:
        if rule.matches(title, description):
            return rule.name
    return OTHER_CATEGORY


def derive_category(listing: Listing) -> str:
    """Derived filter category for a listing, using the rules for its kind."""
    return classify(listing.title, listing.description, CATEGORY_RULES[listing.category])


def category_names(kind: ListingCategory) -> list[str]:
    """All categories a listing of this kind can derive to, in precedence order."""
    return [rule.name for rule in CATEGORY_RULES[kind]] + [OTHER_CATEGORY]


def available_categories(listings: Iterable[Listing]) -> set[str]:
    """Derived categories present in a collection."""
    return {derive_category(listing) for listing in listings}
