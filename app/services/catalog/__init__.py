"""Catalog read service module."""

from .catalog_service import CatalogService, get_catalog_service

__all__ = ["CatalogService", "get_catalog_service"]
