"""Domain models for the site scheduler."""

from .models import (
    CreateSiteRequest,
    Schedule,
    Site,
    SitesListOptions,
    UpdateSiteRequest,
)

__all__ = [
    "Site",
    "Schedule",
    "CreateSiteRequest",
    "UpdateSiteRequest",
    "SitesListOptions",
]
