"""
WooCommerce API Client

HTTP client for the commerce backend. Every REST v3 request carries the
consumer key/secret as query parameters; the Store API (cart) is called
without them.
"""

import re
import logging
from typing import Any, Optional, Union

import httpx

from ..core.config import Settings, settings
from ..core.exceptions import WooCommerceError

logger = logging.getLogger(__name__)

REST_API = "wc/v3"
STORE_API = "wc/store/v1"
JWT_TOKEN_PATH = "jwt-auth/v1/token"

CREDENTIAL_PARAMS = ("consumer_key", "consumer_secret")

_SECRET_RE = re.compile(r"consumer_secret=[^&]*")

QueryParams = Union[dict[str, Any], list[tuple[str, Any]]]


def mask_secret(url: str) -> str:
    """Hide the consumer secret before a URL reaches the logs"""
    return _SECRET_RE.sub("consumer_secret=***", url)


def api_for(endpoint: str) -> str:
    """Cart endpoints live on the Store API, everything else on REST v3"""
    if endpoint == "cart" or endpoint.startswith("cart/") or "store" in endpoint:
        return STORE_API
    return REST_API


def error_message(response: httpx.Response) -> str:
    """Best human-readable message from an upstream error response"""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return str(message)
    if response.text:
        return response.text
    return f"HTTP error! status: {response.status_code}"


class WooCommerceClient:
    """
    Client for the WooCommerce REST API.

    Raises WooCommerceError for non-2xx responses (upstream status kept)
    and for transport failures (502).
    """

    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize WooCommerce client.

        Args:
            base_url: Site URL, without the /wp-json suffix
            consumer_key: REST API consumer key
            consumer_secret: REST API consumer secret
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.strip().rstrip("/")
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, config: Settings) -> "WooCommerceClient":
        """Create client from settings; raises ConfigurationError if incomplete"""
        base_url, consumer_key, consumer_secret = config.require_woocommerce()
        return cls(
            base_url=base_url,
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
            timeout=config.woocommerce_timeout,
        )

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip("/")
        return f"{self.base_url}/wp-json/{api_for(endpoint)}/{endpoint}"

    def build_params(self, endpoint: str, params: Optional[QueryParams] = None) -> QueryParams:
        """
        Caller params plus credentials; caller-supplied credentials are dropped.

        A list of (key, value) pairs keeps repeated keys and comes back as
        a list; a dict comes back as a dict.
        """
        endpoint = endpoint.strip("/")
        pairs = params.items() if isinstance(params, dict) else (params or [])
        final = [
            (key, value)
            for key, value in pairs
            if key not in CREDENTIAL_PARAMS and value is not None
        ]
        if api_for(endpoint) == REST_API:
            final.append(("consumer_key", self._consumer_key))
            final.append(("consumer_secret", self._consumer_secret))
        return final if isinstance(params, list) else dict(final)

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[QueryParams] = None,
        body: Optional[Any] = None,
    ) -> Any:
        request = self._http_client.build_request(
            method,
            url,
            params=params,
            json=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        safe_url = mask_secret(str(request.url))
        logger.debug(f"WooCommerce API Request: {method} {safe_url}")

        try:
            response = await self._http_client.send(request)
        except httpx.HTTPError as e:
            logger.error(f"WooCommerce API unreachable: {method} {safe_url} - {e}")
            raise WooCommerceError(f"Failed to reach commerce backend: {e}", status_code=502) from e

        if response.status_code >= 400:
            message = error_message(response)
            logger.error(
                f"WooCommerce API Error: {response.status_code} {method} {safe_url} - {message}"
            )
            code = None
            try:
                data = response.json()
                code = data.get("code") if isinstance(data, dict) else None
            except ValueError:
                pass
            raise WooCommerceError(
                message,
                status_code=response.status_code,
                details={"code": code} if code else None,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise WooCommerceError("Invalid JSON from commerce backend", status_code=502) from e

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[QueryParams] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Call an endpoint relative to /wp-json/<api>/"""
        endpoint = endpoint.strip("/")
        return await self._send(
            method,
            self.build_url(endpoint),
            params=self.build_params(endpoint, params),
            body=body,
        )

    # ==================== Product APIs ====================

    async def get_products(self, params: Optional[dict] = None) -> list[dict]:
        return await self.request("GET", "products", params)

    async def get_product(self, product_id: int | str, params: Optional[dict] = None) -> dict:
        return await self.request("GET", f"products/{product_id}", params)

    async def get_product_by_slug(self, slug: str) -> Optional[dict]:
        products = await self.request("GET", "products", {"slug": slug})
        return products[0] if products else None

    async def update_stock(self, product_id: int | str, stock_quantity: int) -> dict:
        return await self.request(
            "PUT", f"products/{product_id}", body={"stock_quantity": stock_quantity}
        )

    async def get_categories(self, params: Optional[dict] = None) -> list[dict]:
        return await self.request("GET", "products/categories", params)

    # ==================== Order APIs ====================

    async def get_orders(self, params: Optional[dict] = None) -> list[dict]:
        return await self.request("GET", "orders", params)

    async def get_order(self, order_id: int | str) -> dict:
        return await self.request("GET", f"orders/{order_id}")

    async def create_order(self, order_data: dict) -> dict:
        return await self.request("POST", "orders", body=order_data)

    # ==================== Customer APIs ====================

    async def get_customers(self, params: Optional[dict] = None) -> list[dict]:
        return await self.request("GET", "customers", params)

    async def find_customer_by_email(self, email: str) -> Optional[dict]:
        customers = await self.get_customers({"email": email})
        return customers[0] if customers else None

    async def create_customer(self, customer_data: dict) -> dict:
        return await self.request("POST", "customers", body=customer_data)

    # ==================== JWT authentication ====================

    async def create_token(self, username: str, password: str) -> dict:
        """Exchange credentials for a JWT from the JWT Authentication plugin"""
        return await self._send(
            "POST",
            f"{self.base_url}/wp-json/{JWT_TOKEN_PATH}",
            body={"username": username, "password": password},
        )


# Created on first use
woocommerce_client: Optional[WooCommerceClient] = None


def get_woocommerce_client() -> WooCommerceClient:
    """Get or create the shared WooCommerce client"""
    global woocommerce_client
    if woocommerce_client is None:
        woocommerce_client = WooCommerceClient.from_settings(settings)
    return woocommerce_client


async def close_woocommerce_client() -> None:
    global woocommerce_client
    if woocommerce_client is not None:
        await woocommerce_client.close()
        woocommerce_client = None
