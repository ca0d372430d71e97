"""Catalog API routes"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, Depends

from ..models.catalog import FILTER_OPTIONS, PRICE_RANGES, FilterOptions, FilterState, SortOption
from ..models.product import Category, Product, ProductListResponse
from ..services.catalog import apply_filters_and_sort, count_selected
from ..services.woocommerce import WooCommerceClient, get_woocommerce_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


def normalize_products(raw_products) -> list[Product]:
    if isinstance(raw_products, dict):
        raw_products = [raw_products]
    return [Product.from_backend(raw) for raw in raw_products or [] if isinstance(raw, dict)]


async def resolve_category_id(client: WooCommerceClient, category: str) -> int:
    """Category ID from an ID or slug"""
    if category.isdigit():
        return int(category)
    categories = await client.get_categories({"slug": category})
    if not categories:
        raise HTTPException(status_code=404, detail=f"Category '{category}' not found")
    return categories[0]["id"]


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = Query(None, description="Category ID or slug"),
    search: Optional[str] = Query(None, description="Search query"),
    featured: Optional[bool] = Query(None, description="Only featured products"),
    page: int = Query(1, ge=1),
    per_page: int = Query(100, ge=1, le=100),
    size: list[str] = Query(default=[]),
    colors: list[str] = Query(default=[]),
    subcategory: list[str] = Query(default=[], description="Category filter group"),
    fabric: list[str] = Query(default=[]),
    occasion: list[str] = Query(default=[]),
    pattern: list[str] = Query(default=[]),
    price: list[str] = Query(default=[], description="Price bucket labels"),
    style: list[str] = Query(default=[]),
    sort: SortOption = Query(SortOption.FEATURED),
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """
    List products with filters and sorting applied.

    Paging and category/search narrowing happen at the commerce backend;
    facet filters and sorting are applied to the returned page.
    """
    params = {
        "page": page,
        "per_page": per_page,
        "search": search,
        "featured": None if featured is None else str(featured).lower(),
    }
    if category:
        params["category"] = await resolve_category_id(client, category)

    products = normalize_products(await client.get_products(params))

    criteria = FilterState(
        size=size,
        colors=colors,
        category=subcategory,
        fabric=fabric,
        occasion=occasion,
        pattern=pattern,
        price=price,
        style=style,
    )
    results = apply_filters_and_sort(products, criteria, sort, PRICE_RANGES)
    logger.debug(f"Catalog: {len(results)} of {len(products)} products after filters, sort={sort.value}")

    return ProductListResponse(
        products=results,
        total=len(results),
        sort=sort.value,
        selected_filters=count_selected(criteria),
    )


@router.get("/filters", response_model=FilterOptions)
async def get_filter_options():
    """Facet values and price buckets for listing pages"""
    return FILTER_OPTIONS


@router.get("/categories", response_model=list[Category])
async def list_categories(
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """List product categories"""
    categories = await client.get_categories({"per_page": 100})
    return [Category.model_validate(category) for category in categories]


@router.get("/slug/{slug}", response_model=Product)
async def get_product_by_slug(
    slug: str,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Get a product by slug"""
    raw = await client.get_product_by_slug(slug)
    if not raw:
        raise HTTPException(status_code=404, detail="Product not found")
    return Product.from_backend(raw)


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: int,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Get a product by ID"""
    return Product.from_backend(await client.get_product(product_id))


@router.get("/{product_id}/related", response_model=list[Product])
async def get_related_products(
    product_id: int,
    limit: int = Query(8, ge=1, le=20),
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Products listed as related to product_id"""
    product = Product.from_backend(await client.get_product(product_id))
    related_ids = product.related_ids[:limit]
    if not related_ids:
        return []
    raw = await client.get_products({
        "include": ",".join(str(pid) for pid in related_ids),
        "per_page": len(related_ids),
    })
    return normalize_products(raw)
