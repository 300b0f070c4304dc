"""
Catalog loading.

Fetches app id partitions from a local directory or over HTTP
and caches them for the lifetime of the loader.
"""

from review_guesser.catalog.loader import (
    AppId,
    CatalogLoader,
    CatalogPartition,
    parse_catalog_text,
)
from review_guesser.catalog.sources import (
    CatalogSource,
    FileCatalogSource,
    HttpCatalogSource,
)

__all__ = [
    "AppId",
    "CatalogLoader",
    "CatalogPartition",
    "CatalogSource",
    "FileCatalogSource",
    "HttpCatalogSource",
    "parse_catalog_text",
]
