"""
BIM Portal catalog access.

The normalizer only depends on the CatalogResolver protocol;
BIMPortalClient is the HTTP implementation.
"""

from ifc_normalizer.catalog.client import BIMPortalClient, CatalogResolver
from ifc_normalizer.catalog.retry import retry_async
from ifc_normalizer.catalog.settings import CatalogSettings

__all__ = ["BIMPortalClient", "CatalogResolver", "CatalogSettings", "retry_async"]
