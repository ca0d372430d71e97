"""
Pass-through proxy to the commerce backend

GET /api/woocommerce/products/123       -> wc/v3/products/123
POST /api/woocommerce/orders            -> wc/v3/orders (201)
DELETE /api/woocommerce/coupons/5?force=true
GET /api/woocommerce/cart               -> wc/store/v1/cart (no credentials)

Credentials are added server-side and never accepted from the caller.
"""

import logging
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..services.woocommerce import WooCommerceClient, get_woocommerce_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/woocommerce", tags=["WooCommerce"])

# Short names used by the storefront client for backend collections
PATH_ALIASES = {
    "categories": "products/categories",
    "payment-gateways": "payment_gateways",
    "shipping": "shipping/zones",
}


class StockUpdateRequest(BaseModel):
    product_id: int
    stock_quantity: int


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return {}


def resolve_path(path: str, query: list[tuple[str, str]]) -> tuple[str, list[tuple[str, str]]]:
    """Backend endpoint and remaining query pairs for a proxied path"""
    path = path.strip("/")
    path = PATH_ALIASES.get(path, path)
    product_id = next((value for key, value in query if key == "id" and value), None)
    if path == "products" and product_id:
        path = f"products/{product_id}"
        query = [(key, value) for key, value in query if key != "id"]
    return path, query


@router.put("/inventory")
async def update_inventory(
    request: StockUpdateRequest,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Set the stock quantity of one product"""
    return await client.update_stock(request.product_id, request.stock_quantity)


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def proxy(
    path: str,
    request: Request,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Forward the call; upstream errors come back with the upstream status"""
    endpoint, query = resolve_path(path, request.query_params.multi_items())
    method = request.method
    body = None

    if method in ("POST", "PUT"):
        body = await _json_body(request)

    if method == "POST" and endpoint in ("cart", "cart/add-item"):
        if not isinstance(body, dict) or not body.get("product_id"):
            raise HTTPException(status_code=400, detail="product_id is required")
        endpoint = "cart/add-item"
        body = {"id": body["product_id"], "quantity": body.get("quantity") or 1}

    if method == "DELETE":
        force = ("force", "true") in query
        query = [(key, value) for key, value in query if key != "force"]
        if force:
            query.append(("force", "true"))

    logger.debug(f"Proxy {method} {path} -> {endpoint}")
    data = await client.request(method, endpoint, params=query, body=body)

    if method == "POST":
        return JSONResponse(status_code=201, content=data)
    if method == "DELETE" and data == {}:
        return {"success": True}
    return data
