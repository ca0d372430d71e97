"""Catalog filter and sort models"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class SortOption(str, Enum):
    FEATURED = "featured"
    NEWEST = "newest"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    DISCOUNT = "discount"
    POPULARITY = "popularity"


class PriceRange(BaseModel):
    """Named price bucket; both bounds are inclusive"""
    label: str
    min: float
    max: float

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


class FilterState(BaseModel):
    """Selected values per filter group"""
    size: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    category: list[str] = Field(default_factory=list)
    fabric: list[str] = Field(default_factory=list)
    occasion: list[str] = Field(default_factory=list)
    pattern: list[str] = Field(default_factory=list)
    price: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def _unique_values(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        seen = []
        for item in value:
            item = str(item).strip()
            if item and item not in seen:
                seen.append(item)
        return seen


FILTER_GROUPS = tuple(FilterState.model_fields)

PRICE_RANGES: list[PriceRange] = [
    PriceRange(label="Under ₹500", min=0, max=500),
    PriceRange(label="₹500 - ₹1000", min=500, max=1000),
    PriceRange(label="₹1000 - ₹1500", min=1000, max=1500),
    PriceRange(label="₹1500 - ₹2000", min=1500, max=2000),
    PriceRange(label="Above ₹2000", min=2000, max=99999),
]


class ColorOption(BaseModel):
    name: str
    hex: str


class FilterOptions(BaseModel):
    """Facet values offered on listing pages"""
    size: list[str]
    colors: list[ColorOption]
    category: list[str]
    fabric: list[str]
    occasion: list[str]
    pattern: list[str]
    price: list[PriceRange]
    style: list[str]


FILTER_OPTIONS = FilterOptions(
    size=["XS", "S", "M", "L", "XL", "XXL", "3XL", "4XL"],
    colors=[
        ColorOption(name="Red", hex="#DC2626"),
        ColorOption(name="Blue", hex="#2563EB"),
        ColorOption(name="Green", hex="#16A34A"),
        ColorOption(name="Yellow", hex="#EAB308"),
        ColorOption(name="Pink", hex="#EC4899"),
        ColorOption(name="Purple", hex="#9333EA"),
        ColorOption(name="Orange", hex="#EA580C"),
        ColorOption(name="Black", hex="#171717"),
        ColorOption(name="White", hex="#FFFFFF"),
        ColorOption(name="Maroon", hex="#7F1D1D"),
    ],
    category=[
        "Straight Kurti",
        "A-Line Kurti",
        "Anarkali Kurti",
        "Kaftan Kurti",
        "Shirt Style Kurti",
        "Asymmetric Kurti",
    ],
    fabric=["Cotton", "Rayon", "Silk", "Georgette", "Crepe", "Chanderi", "Linen", "Viscose"],
    occasion=["Casual", "Festive", "Party Wear", "Office Wear", "Wedding", "Daily Wear"],
    pattern=["Solid", "Printed", "Embroidered", "Floral", "Geometric", "Abstract", "Checks", "Stripes"],
    price=PRICE_RANGES,
    style=["Casual", "Ethnic", "Indo-Western", "Contemporary", "Traditional"],
)
