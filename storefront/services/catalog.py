"""
Catalog filtering and sorting.

Pure functions over normalized products. Nothing here performs I/O or mutates
its inputs; the catalog routes call apply_filters_and_sort() on whatever the
commerce backend returned.

Matching rules:
- OR within a filter group, AND across groups with at least one selection.
- An attribute group is decided by the product attribute of that name when
  the product has one. Otherwise tag names are tried, then (style and
  occasion only) category names. No source present means no match.
- Price matches when the effective price lies in any selected bucket.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..models.catalog import FILTER_GROUPS, FilterState, PriceRange, SortOption
from ..models.product import Product


@dataclass(frozen=True)
class GroupRule:
    """How one attribute filter group finds its match source"""
    attribute_names: tuple[str, ...]
    exact: bool = False
    use_tags: bool = True
    use_categories: bool = False


GROUP_RULES: dict[str, GroupRule] = {
    # Exact comparison keeps "S" from matching "XS" or "XXL"
    "size": GroupRule(("size",), exact=True, use_tags=False),
    "colors": GroupRule(("color", "colour")),
    "category": GroupRule(("category",)),
    "fabric": GroupRule(("fabric",)),
    "occasion": GroupRule(("occasion",), use_categories=True),
    "pattern": GroupRule(("pattern",)),
    "style": GroupRule(("style",), use_categories=True),
}


def _matches_values(candidates: Iterable[str], selected: list[str], exact: bool) -> bool:
    values = [candidate.lower() for candidate in candidates]
    for wanted in selected:
        wanted = wanted.lower()
        if exact:
            if wanted in values:
                return True
        elif any(wanted in value for value in values):
            return True
    return False


def _match_source(product: Product, rule: GroupRule) -> Optional[tuple[list[str], bool]]:
    """Return (values, exact) from the first source present on the product"""
    attribute = product.get_attribute(*rule.attribute_names)
    if attribute is not None and attribute.options:
        return attribute.options, rule.exact
    if rule.use_tags and product.tags:
        return product.tags, False
    if rule.use_categories:
        names = [category.name for category in product.categories if category.name]
        if names:
            return names, False
    return None


def matches_group(product: Product, group: str, selected: list[str]) -> bool:
    """Check one attribute group; an empty selection always matches"""
    if not selected:
        return True
    source = _match_source(product, GROUP_RULES[group])
    if source is None:
        return False
    values, exact = source
    return _matches_values(values, selected, exact)


def matches_price(product: Product, selected: list[str], price_ranges: list[PriceRange]) -> bool:
    if not selected:
        return True
    price = product.effective_price
    ranges = {price_range.label: price_range for price_range in price_ranges}
    return any(
        label in ranges and ranges[label].contains(price)
        for label in selected
    )


def matches_filters(product: Product, criteria: FilterState, price_ranges: list[PriceRange]) -> bool:
    for group in GROUP_RULES:
        if not matches_group(product, group, getattr(criteria, group)):
            return False
    return matches_price(product, criteria.price, price_ranges)


def filter_products(
    products: list[Product],
    criteria: FilterState,
    price_ranges: list[PriceRange],
) -> list[Product]:
    """Products satisfying every non-empty filter group, in input order"""
    return [
        product for product in products
        if matches_filters(product, criteria, price_ranges)
    ]


def _featured_key(product: Product):
    return (-int(product.featured), -product.created_timestamp)


SORT_KEYS = {
    SortOption.PRICE_LOW: lambda p: p.effective_price,
    SortOption.PRICE_HIGH: lambda p: -p.effective_price,
    SortOption.DISCOUNT: lambda p: -p.discount_percent,
    SortOption.NEWEST: lambda p: -p.created_timestamp,
    SortOption.POPULARITY: lambda p: (-p.total_sales, -int(p.featured)),
    SortOption.FEATURED: _featured_key,
}


def sort_products(products: list[Product], sort_by: SortOption) -> list[Product]:
    """
    Return a new list ordered by sort_by.

    sorted() is stable, so products comparing equal keep their input order.
    Unknown sort values fall back to the featured order.
    """
    try:
        key = SORT_KEYS[SortOption(sort_by)]
    except ValueError:
        key = _featured_key
    return sorted(products, key=key)


def apply_filters_and_sort(
    products: list[Product],
    criteria: FilterState,
    sort_by: SortOption,
    price_ranges: list[PriceRange],
) -> list[Product]:
    """Filter then sort; the entry point used by listing pages"""
    return sort_products(filter_products(products, criteria, price_ranges), sort_by)


def count_selected(criteria: FilterState) -> int:
    """Total number of selected values across all groups"""
    return sum(len(getattr(criteria, group)) for group in FILTER_GROUPS)


def clear_all_filters() -> FilterState:
    return FilterState()
