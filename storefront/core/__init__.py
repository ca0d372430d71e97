# Core modules: settings, exceptions and shopper sessions (storefront.core.session)

from .config import settings

__all__ = ["settings"]
