"""Product models for the storefront

Backend product records are loosely typed JSON (prices as strings, optional
fields, tags as objects). They are normalized into these models once, at the
proxy boundary, so the catalog engine never checks whether a field exists.
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        text = str(value).strip()
        return float(text) if text else None
    except ValueError:
        return None


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
    else:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _names(values: Any, key: str) -> list[str]:
    """Flatten a list of strings or {key: ...} objects into strings"""
    if not isinstance(values, list):
        return []
    names = []
    for value in values:
        if isinstance(value, dict):
            value = value.get(key)
        if value is not None and str(value) != "":
            names.append(str(value))
    return names


class ProductAttribute(BaseModel):
    """Named attribute with its ordered options, e.g. Size -> [S, M, L]"""
    name: str = ""
    options: list[str] = Field(default_factory=list)

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(option) for option in value if option is not None]

    def matches_name(self, name: str) -> bool:
        own = self.name.strip().lower()
        wanted = name.lower()
        return own == wanted or own == f"pa_{wanted}"


class CategoryRef(BaseModel):
    """Category reference embedded in a product"""
    id: Optional[int] = None
    name: str = ""
    slug: str = ""


class Category(BaseModel):
    """Product category"""
    id: int
    name: str
    slug: str = ""
    description: str = ""
    image: Optional[str] = None
    count: int = 0
    parent: int = 0

    @field_validator("image", mode="before")
    @classmethod
    def _image_src(cls, value: Any) -> Optional[str]:
        if isinstance(value, dict):
            return value.get("src")
        return value or None

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return value or ""


class Product(BaseModel):
    """Normalized catalog product (read-only to the storefront)"""
    id: int
    name: str = ""
    slug: str = ""
    sku: str = ""
    permalink: Optional[str] = None
    description: str = ""
    short_description: str = ""
    regular_price: float = 0.0
    sale_price: Optional[float] = None
    stock_status: str = "instock"
    stock_quantity: Optional[int] = None
    attributes: list[ProductAttribute] = Field(default_factory=list)
    categories: list[CategoryRef] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    featured: bool = False
    date_created: datetime = EPOCH
    total_sales: int = 0
    related_ids: list[int] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fallback_gmt_date(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("date_created"):
            data = {**data, "date_created": data.get("date_created_gmt")}
        return data

    @field_validator("regular_price", mode="before")
    @classmethod
    def _regular_price(cls, value: Any) -> float:
        price = _parse_price(value)
        return price if price is not None else 0.0

    @field_validator("sale_price", mode="before")
    @classmethod
    def _sale_price(cls, value: Any) -> Optional[float]:
        return _parse_price(value)

    @field_validator("name", "slug", "sku", "description", "short_description", "stock_status", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_names(cls, value: Any) -> list[str]:
        return _names(value, "name")

    @field_validator("images", mode="before")
    @classmethod
    def _image_sources(cls, value: Any) -> list[str]:
        return _names(value, "src")

    @field_validator("attributes", "categories", mode="before")
    @classmethod
    def _list_of_objects(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, BaseModel))]

    @field_validator("related_ids", mode="before")
    @classmethod
    def _related_ids(cls, value: Any) -> list[int]:
        if not isinstance(value, list):
            return []
        return [int(v) for v in value if str(v).isdigit()]

    @field_validator("date_created", mode="before")
    @classmethod
    def _date_created(cls, value: Any) -> datetime:
        return _parse_datetime(value)

    @field_validator("total_sales", mode="before")
    @classmethod
    def _total_sales(cls, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @field_validator("featured", mode="before")
    @classmethod
    def _featured(cls, value: Any) -> bool:
        return bool(value)

    @model_validator(mode="after")
    def _drop_invalid_sale_price(self) -> "Product":
        # A sale price must be positive and below the regular price
        if self.sale_price is not None and not (0 < self.sale_price < self.regular_price):
            self.sale_price = None
        return self

    @classmethod
    def from_backend(cls, raw: dict) -> "Product":
        """Normalize a raw commerce backend product record"""
        return cls.model_validate(raw)

    @computed_field
    @property
    def effective_price(self) -> float:
        return self.sale_price if self.sale_price is not None else self.regular_price

    @computed_field
    @property
    def discount_percent(self) -> int:
        if self.sale_price is None or self.regular_price == 0:
            return 0
        ratio = (self.regular_price - self.sale_price) / self.regular_price
        # Half-up rounding to the nearest percent
        return int(math.floor(ratio * 100 + 0.5))

    @property
    def in_stock(self) -> bool:
        return self.stock_status != "outofstock"

    @property
    def created_timestamp(self) -> float:
        return self.date_created.timestamp()

    def get_attribute(self, *names: str) -> Optional[ProductAttribute]:
        """First attribute whose name matches any of names, case-insensitive"""
        for attribute in self.attributes:
            if any(attribute.matches_name(name) for name in names):
                return attribute
        return None

    @property
    def sizes(self) -> list[str]:
        attribute = self.get_attribute("size")
        return list(attribute.options) if attribute else []


class ProductListResponse(BaseModel):
    """Filtered and sorted catalog page"""
    products: list[Product]
    total: int
    sort: str
    selected_filters: int
