"""Application services."""

from .site import SiteService

__all__ = ["SiteService"]
