"""Kurti Storefront: apparel storefront API backed by WooCommerce."""

__version__ = "1.0.0"
