"""
Unit Tests: Catalog filtering and sorting

Tests for services/catalog.py and models/product.py covering:
- Product normalization (prices, dates, sale price sanity)
- filter_products() - AND across groups, OR within a group, fallbacks
- sort_products() - every sort key, stability, no mutation
- count_selected() / clear_all_filters()
"""

import pytest

from storefront.models.catalog import PRICE_RANGES, FilterState, SortOption
from storefront.models.product import EPOCH, Product
from storefront.services.catalog import (
    apply_filters_and_sort,
    clear_all_filters,
    count_selected,
    filter_products,
    sort_products,
)


def product(product_id: int, **fields) -> Product:
    raw = {"id": product_id, "name": f"Kurti {product_id}", "regular_price": "1000"}
    raw.update(fields)
    return Product.from_backend(raw)


def sized(product_id: int, *sizes: str, **fields) -> Product:
    return product(product_id, attributes=[{"name": "Size", "options": list(sizes)}], **fields)


class TestProductNormalization:
    """Backend records become explicit product models"""

    def test_string_prices_are_parsed(self):
        p = product(1, regular_price="1200", sale_price="900")
        assert p.regular_price == 1200.0
        assert p.sale_price == 900.0
        assert p.effective_price == 900.0

    def test_empty_sale_price_means_no_sale(self):
        p = product(1, regular_price="500", sale_price="")
        assert p.sale_price is None
        assert p.effective_price == 500.0
        assert p.discount_percent == 0

    def test_sale_price_not_below_regular_is_dropped(self):
        assert product(1, regular_price="500", sale_price="600").sale_price is None
        assert product(2, regular_price="500", sale_price="500").sale_price is None
        assert product(3, regular_price="500", sale_price="0").sale_price is None

    def test_unparseable_regular_price_is_zero(self):
        p = product(1, regular_price="n/a")
        assert p.regular_price == 0.0
        assert p.discount_percent == 0

    def test_discount_percent_rounds_half_up(self):
        # 12.5% off
        assert product(1, regular_price="800", sale_price="700").discount_percent == 13
        assert product(2, regular_price="1200", sale_price="900").discount_percent == 25

    def test_invalid_date_sorts_as_epoch(self):
        assert product(1, date_created="not a date").date_created == EPOCH
        assert product(2, date_created=None).date_created == EPOCH

    def test_gmt_date_used_when_local_date_missing(self):
        p = product(1, date_created_gmt="2024-03-01T08:00:00")
        assert p.date_created.year == 2024
        assert p.date_created.month == 3

    def test_tags_images_and_categories_flattened(self):
        p = product(
            1,
            tags=[{"id": 3, "name": "Festive"}],
            images=[{"src": "https://cdn.test/a.jpg"}],
            categories=[{"id": 1, "name": "Kurtis", "slug": "kurtis"}],
        )
        assert p.tags == ["Festive"]
        assert p.images == ["https://cdn.test/a.jpg"]
        assert p.categories[0].name == "Kurtis"

    def test_out_of_stock(self):
        assert product(1, stock_status="outofstock").in_stock is False
        assert product(2, stock_status="onbackorder").in_stock is True

    def test_pa_attribute_name_resolves(self):
        p = product(1, attributes=[{"name": "pa_size", "options": ["M"]}])
        assert p.sizes == ["M"]


class TestFilterProducts:
    """filter_products() semantics"""

    def test_size_filter_selects_only_matching_product(self):
        products = [sized(1, "S", "L"), sized(2, "M", "L"), sized(3, "XL")]
        result = filter_products(products, FilterState(size=["M"], colors=[]), PRICE_RANGES)
        assert [p.id for p in result] == [2]

    def test_size_is_exact_not_substring(self):
        products = [sized(1, "XS"), sized(2, "XXL"), sized(3, "S")]
        result = filter_products(products, FilterState(size=["S"]), PRICE_RANGES)
        assert [p.id for p in result] == [3]

    def test_size_is_case_insensitive(self):
        result = filter_products([sized(1, "m")], FilterState(size=["M"]), PRICE_RANGES)
        assert len(result) == 1

    def test_or_within_group(self):
        products = [sized(1, "S"), sized(2, "M"), sized(3, "L")]
        result = filter_products(products, FilterState(size=["S", "L"]), PRICE_RANGES)
        assert [p.id for p in result] == [1, 3]

    def test_and_across_groups(self):
        products = [
            product(1, attributes=[
                {"name": "Size", "options": ["M"]},
                {"name": "Color", "options": ["Red"]},
            ]),
            product(2, attributes=[
                {"name": "Size", "options": ["M"]},
                {"name": "Color", "options": ["Blue"]},
            ]),
        ]
        result = filter_products(products, FilterState(size=["M"], colors=["red"]), PRICE_RANGES)
        assert [p.id for p in result] == [1]

    def test_color_uses_substring_match(self):
        p = product(1, attributes=[{"name": "Colour", "options": ["Dark Green"]}])
        assert filter_products([p], FilterState(colors=["green"]), PRICE_RANGES) == [p]

    def test_tags_used_when_attribute_missing(self):
        p = product(1, tags=[{"name": "Cotton Blend"}])
        assert filter_products([p], FilterState(fabric=["Cotton"]), PRICE_RANGES) == [p]

    def test_attribute_wins_over_tags(self):
        p = product(
            1,
            attributes=[{"name": "Fabric", "options": ["Silk"]}],
            tags=[{"name": "Cotton"}],
        )
        assert filter_products([p], FilterState(fabric=["Cotton"]), PRICE_RANGES) == []

    def test_size_never_falls_back_to_tags(self):
        p = product(1, tags=[{"name": "M"}])
        assert filter_products([p], FilterState(size=["M"]), PRICE_RANGES) == []

    def test_style_falls_back_to_category_names(self):
        p = product(1, categories=[{"id": 4, "name": "A-Line Kurtis"}])
        assert filter_products([p], FilterState(style=["a-line"]), PRICE_RANGES) == [p]

    def test_fabric_does_not_fall_back_to_categories(self):
        p = product(1, categories=[{"id": 4, "name": "Cotton Kurtis"}])
        assert filter_products([p], FilterState(fabric=["Cotton"]), PRICE_RANGES) == []

    def test_no_source_means_no_match(self):
        assert filter_products([product(1)], FilterState(pattern=["Floral"]), PRICE_RANGES) == []

    def test_price_bucket_upper_bound_is_inclusive(self):
        p = product(1, regular_price="500")
        result = filter_products([p], FilterState(price=["Under ₹500"]), PRICE_RANGES)
        assert result == [p]

    def test_price_uses_effective_price(self):
        p = product(1, regular_price="1200", sale_price="450")
        assert filter_products([p], FilterState(price=["Under ₹500"]), PRICE_RANGES) == [p]

    def test_unknown_price_label_never_matches(self):
        assert filter_products([product(1)], FilterState(price=["Cheap"]), PRICE_RANGES) == []

    def test_empty_criteria_keeps_everything_in_order(self):
        products = [product(3), product(1), product(2)]
        assert filter_products(products, FilterState(), PRICE_RANGES) == products

    def test_adding_a_value_never_shrinks_the_result(self):
        products = [sized(1, "S"), sized(2, "M"), sized(3, "L")]
        narrow = filter_products(products, FilterState(size=["S"]), PRICE_RANGES)
        wide = filter_products(products, FilterState(size=["S", "M"]), PRICE_RANGES)
        assert set(p.id for p in narrow) <= set(p.id for p in wide)

    def test_adding_a_group_never_grows_the_result(self):
        products = [sized(1, "M", regular_price="400"), sized(2, "M", regular_price="1800")]
        one_group = filter_products(products, FilterState(size=["M"]), PRICE_RANGES)
        two_groups = filter_products(products, FilterState(size=["M"], price=["Under ₹500"]), PRICE_RANGES)
        assert set(p.id for p in two_groups) <= set(p.id for p in one_group)
        assert [p.id for p in two_groups] == [1]


class TestSortProducts:
    """sort_products() ordering"""

    @pytest.fixture
    def priced(self):
        return [
            product(1, regular_price="1200", sale_price="900"),
            product(2, regular_price="500"),
            product(3, regular_price="2000", sale_price="1500"),
        ]

    def test_price_low(self, priced):
        result = sort_products(priced, SortOption.PRICE_LOW)
        assert [p.effective_price for p in result] == [500, 900, 1500]

    def test_price_high(self, priced):
        result = sort_products(priced, SortOption.PRICE_HIGH)
        assert [p.id for p in result] == [3, 1, 2]

    def test_discount(self, priced):
        result = sort_products(priced, SortOption.DISCOUNT)
        assert [p.id for p in result] == [1, 3, 2]

    def test_newest(self):
        products = [
            product(1, date_created="2023-01-01T00:00:00"),
            product(2, date_created="2024-06-01T00:00:00"),
            product(3, date_created="garbage"),
        ]
        assert [p.id for p in sort_products(products, SortOption.NEWEST)] == [2, 1, 3]

    def test_popularity_breaks_ties_by_featured(self):
        products = [
            product(1, total_sales=5),
            product(2, total_sales=9),
            product(3, total_sales=5, featured=True),
        ]
        assert [p.id for p in sort_products(products, SortOption.POPULARITY)] == [2, 3, 1]

    def test_featured_then_newest(self):
        products = [
            product(1, featured=False, date_created="2024-05-01T00:00:00"),
            product(2, featured=True, date_created="2023-01-01T00:00:00"),
            product(3, featured=True, date_created="2024-01-01T00:00:00"),
        ]
        assert [p.id for p in sort_products(products, SortOption.FEATURED)] == [3, 2, 1]

    def test_equal_keys_keep_input_order(self):
        products = [product(i, regular_price="999") for i in (4, 2, 9, 1)]
        assert [p.id for p in sort_products(products, SortOption.PRICE_LOW)] == [4, 2, 9, 1]

    def test_input_is_not_mutated(self, priced):
        before = [p.id for p in priced]
        sort_products(priced, SortOption.PRICE_HIGH)
        assert [p.id for p in priced] == before

    def test_unknown_sort_falls_back_to_featured(self):
        products = [product(1), product(2, featured=True)]
        assert [p.id for p in sort_products(products, "bogus")] == [2, 1]

    def test_apply_filters_and_sort(self):
        products = [sized(1, "M", regular_price="900"), sized(2, "S"), sized(3, "M", regular_price="300")]
        result = apply_filters_and_sort(products, FilterState(size=["M"]), SortOption.PRICE_LOW, PRICE_RANGES)
        assert [p.id for p in result] == [3, 1]


class TestSelectedFilters:
    """count_selected() and clear_all_filters()"""

    def test_count_across_groups(self):
        criteria = FilterState(size=["S", "M"], colors=["Red"], price=["Under ₹500"])
        assert count_selected(criteria) == 4

    def test_duplicates_are_collapsed(self):
        assert count_selected(FilterState(size=["M", "M", " M "])) == 1

    def test_cleared_state_counts_zero(self):
        assert count_selected(clear_all_filters()) == 0
