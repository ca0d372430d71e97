"""
Pytest configuration and fixtures for tests.

The commerce backend is replaced by FakeWooCommerce, served through
httpx.MockTransport, so the real WooCommerceClient runs end to end.
"""

import os
import json
import time

import httpx
import jwt
import pytest

# Settings are read at import time; configure before importing the app
os.environ["DEBUG"] = "true"
os.environ.setdefault("API_BASE_URL", "https://shop.test")
os.environ.setdefault("WORDPRESS_CONSUMER_KEY", "ck_test")
os.environ.setdefault("WORDPRESS_CONSUMER_SECRET", "cs_test")

from fastapi.testclient import TestClient

from storefront.core.session import SESSION_HEADER, session_manager
from storefront.main import app
from storefront.services.woocommerce import WooCommerceClient, get_woocommerce_client


def make_raw_product(product_id: int = 101, **overrides) -> dict:
    """Backend-shaped product record"""
    raw = {
        "id": product_id,
        "name": f"Cotton Kurti {product_id}",
        "slug": f"cotton-kurti-{product_id}",
        "regular_price": "700",
        "sale_price": "500",
        "stock_status": "instock",
        "stock_quantity": 10,
        "attributes": [
            {"name": "Size", "options": ["S", "M", "L"]},
            {"name": "Color", "options": ["Red"]},
        ],
        "categories": [{"id": 1, "name": "Kurtis", "slug": "kurtis"}],
        "tags": [],
        "images": [{"src": f"https://cdn.test/{product_id}.jpg"}],
        "featured": False,
        "date_created": "2024-01-01T10:00:00",
        "total_sales": 0,
        "related_ids": [],
    }
    raw.update(overrides)
    return raw


def make_token(exp_offset: int = 3600) -> str:
    return jwt.encode({"exp": int(time.time()) + exp_offset, "sub": "7"}, "test-secret", algorithm="HS256")


def json_response(status_code: int, data) -> httpx.Response:
    return httpx.Response(status_code, json=data)


class FakeWooCommerce:
    """In-memory stand-in for the WooCommerce REST and Store APIs"""

    def __init__(self):
        self.products: dict[int, dict] = {}
        self.categories: list[dict] = [
            {"id": 1, "name": "Kurtis", "slug": "kurtis", "count": 3, "image": None},
            {"id": 2, "name": "Woolen Kurti", "slug": "woolen-kurti", "count": 1, "image": {"src": "https://cdn.test/w.jpg"}},
        ]
        self.customers: list[dict] = []
        self.orders: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []
        self.token_response: tuple[int, dict] = (200, {"token": make_token(), "user_email": "asha@example.com"})
        self.order_failure: tuple[int, dict] | None = None
        self.next_order_id = 5001

    def add_product(self, product_id: int = 101, **overrides) -> dict:
        raw = make_raw_product(product_id, **overrides)
        self.products[product_id] = raw
        return raw

    def add_customer(self, customer_id: int = 7, email: str = "asha@example.com") -> dict:
        customer = {"id": customer_id, "email": email, "first_name": "Asha", "last_name": "Rao"}
        self.customers.append(customer)
        return customer

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        method = request.method
        params = request.url.params

        if path == "/wp-json/jwt-auth/v1/token":
            return json_response(*self.token_response)

        if path.startswith("/wp-json/wc/store/v1/"):
            if path.endswith("cart/add-item"):
                return json_response(201, {"items": [json.loads(request.content)]})
            return json_response(200, {"items": [], "items_count": 0})

        endpoint = path.removeprefix("/wp-json/wc/v3/")

        if endpoint == "products/categories":
            slug = params.get("slug")
            return json_response(200, [c for c in self.categories if not slug or c["slug"] == slug])

        if endpoint == "products":
            products = list(self.products.values())
            if params.get("slug"):
                products = [p for p in products if p["slug"] == params["slug"]]
            if params.get("include"):
                wanted = {int(pid) for pid in params["include"].split(",")}
                products = [p for p in products if p["id"] in wanted]
            return json_response(200, products)

        if endpoint.startswith("products/"):
            product_id = int(endpoint.split("/")[1])
            if product_id not in self.products:
                return json_response(404, {"code": "woocommerce_rest_product_invalid_id", "message": "Invalid ID."})
            if method == "PUT":
                self.products[product_id].update(json.loads(request.content))
            return json_response(200, self.products[product_id])

        if endpoint == "customers":
            if method == "POST":
                data = json.loads(request.content)
                if any(c["email"] == data["email"] for c in self.customers):
                    return json_response(400, {
                        "code": "registration-error-email-exists",
                        "message": "An account is already registered with your email address.",
                    })
                return json_response(201, self.add_customer(len(self.customers) + 10, data["email"]))
            email = params.get("email")
            return json_response(200, [c for c in self.customers if c["email"] == email])

        if endpoint == "orders":
            if method == "POST":
                if self.order_failure:
                    return json_response(*self.order_failure)
                order = json.loads(request.content)
                order.update({
                    "id": self.next_order_id,
                    "number": str(self.next_order_id),
                    "status": "processing",
                    "total": "1099.00",
                    "currency": "INR",
                    "date_created": "2024-05-01T12:00:00",
                })
                self.orders[self.next_order_id] = order
                self.next_order_id += 1
                return json_response(201, order)
            return json_response(200, list(self.orders.values()))

        if endpoint.startswith("orders/"):
            order_id = int(endpoint.split("/")[1])
            if order_id not in self.orders:
                return json_response(404, {"code": "woocommerce_rest_shop_order_invalid_id", "message": "Invalid ID."})
            if method == "DELETE":
                return json_response(200, self.orders.pop(order_id))
            return json_response(200, self.orders[order_id])

        return json_response(404, {"code": "rest_no_route", "message": "No route was found matching the URL and request method."})

    def last_request(self, method: str, path_suffix: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path.endswith(path_suffix):
                return request
        raise AssertionError(f"No {method} request to {path_suffix}")


@pytest.fixture
def backend():
    return FakeWooCommerce()


@pytest.fixture
def wc_client(backend):
    return WooCommerceClient(
        base_url="https://shop.test/",
        consumer_key="ck_test",
        consumer_secret="cs_test",
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def client(wc_client):
    """TestClient with the backend dependency overridden"""
    app.dependency_overrides[get_woocommerce_client] = lambda: wc_client
    session_manager.sessions.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    session_manager.sessions.clear()


@pytest.fixture
def session_headers(client):
    """X-Session-Id header of a fresh shopper session"""
    response = client.delete("/api/cart")
    return {SESSION_HEADER: response.headers[SESSION_HEADER]}
