"""Core domain models for sites and their schedules.

- Site: a monitored resource whose recurring run is controlled by
  enabled/run_every_minutes
- SiteAlertMode: whether alerts for a site are delivered (active) or muted
- Schedule: the persisted recurring-job row derived from an enabled site
- CreateSiteRequest / UpdateSiteRequest: validated mutation requests
- SitesListOptions: paging, filtering and sorting for site listings
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from site_scheduler.utils.timestamps import ensure_utc

MAX_SITE_NAME_LENGTH = 255
DEFAULT_LIST_LIMIT = 50
SORTABLE_COLUMNS = ("created_at", "name")
SORT_DIRECTIONS = ("asc", "desc")


class SiteAlertMode(str, Enum):
    """How alerts raised for a site are delivered."""

    ACTIVE = "active"
    MUTED = "muted"


def _validate_site_name(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("name is required and cannot be empty")
    if len(stripped) > MAX_SITE_NAME_LENGTH:
        raise ValueError(f"name cannot exceed {MAX_SITE_NAME_LENGTH} characters")
    return stripped


def _normalize_alert_mode(v: Any) -> Optional[str]:
    """Trim and lowercase an alert mode; empty means active."""
    if v is None:
        return None
    if isinstance(v, SiteAlertMode):
        return v.value
    normalized = str(v).strip().lower()
    if not normalized:
        return SiteAlertMode.ACTIVE.value
    if normalized not in {mode.value for mode in SiteAlertMode}:
        raise ValueError(f"invalid alert_mode {v!r}, expected active or muted")
    return normalized


def _strip_optional(v: Optional[str]) -> Optional[str]:
    return v.strip() if v is not None else None


class Site(BaseModel):
    """A monitored site as stored by the site repository."""

    id: str = Field(..., description="Site identifier (UUID4)")
    name: str = Field(..., description="Unique display name")
    enabled: bool = Field(..., description="Whether the site runs on its schedule")
    run_every_minutes: int = Field(..., description="Minutes between runs")
    source_id: str = Field(..., description="Source the scheduled run executes")
    alert_mode: str = Field(SiteAlertMode.ACTIVE.value, description="active or muted")
    scope: Optional[str] = Field(None, description="Grouping label shared by related sites")
    http_alert_sink_id: Optional[str] = Field(None, description="HTTP sink receiving alerts")
    last_enabled: Optional[datetime] = Field(None, description="When the site was last enabled (UTC)")
    last_run: Optional[datetime] = Field(None, description="When the site last ran (UTC)")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    updated_at: datetime = Field(..., description="Last modification time (UTC)")

    @field_validator("last_enabled", "last_run", "created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class Schedule(BaseModel):
    """A recurring-job row in the schedule store, keyed by task name."""

    task_name: str = Field(..., description="Unique task name")
    interval_seconds: int = Field(..., description="Seconds between runs")
    payload: Optional[Dict[str, Any]] = Field(None, description="Executor payload")
    last_queued_at: Optional[datetime] = Field(None, description="Executor bookkeeping (UTC)")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    updated_at: datetime = Field(..., description="Last modification time (UTC)")

    @field_validator("last_queued_at", "created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class CreateSiteRequest(BaseModel):
    """Parameters for creating a site.

    enabled defaults to True and alert_mode to active when omitted. Blank
    scope and http_alert_sink_id values are stored as NULL.
    """

    name: str
    enabled: bool = True
    run_every_minutes: int = Field(..., gt=0)
    source_id: str
    alert_mode: str = SiteAlertMode.ACTIVE.value
    scope: Optional[str] = None
    http_alert_sink_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_site_name(v)

    @field_validator("source_id")
    @classmethod
    def validate_source_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("source_id is required")
        return stripped

    @field_validator("alert_mode", mode="before")
    @classmethod
    def validate_alert_mode(cls, v: Any) -> str:
        return _normalize_alert_mode(v) or SiteAlertMode.ACTIVE.value

    @field_validator("scope", "http_alert_sink_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v) or None


class UpdateSiteRequest(BaseModel):
    """Partial update of a site; unset fields are left unchanged.

    An empty string for scope or http_alert_sink_id clears that field.
    """

    name: Optional[str] = None
    enabled: Optional[bool] = None
    run_every_minutes: Optional[int] = Field(None, gt=0)
    source_id: Optional[str] = None
    alert_mode: Optional[str] = None
    scope: Optional[str] = None
    http_alert_sink_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _validate_site_name(v)

    @field_validator("source_id")
    @classmethod
    def validate_source_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        if not stripped:
            raise ValueError("source_id cannot be empty")
        return stripped

    @field_validator("alert_mode", mode="before")
    @classmethod
    def validate_alert_mode(cls, v: Any) -> Optional[str]:
        return _normalize_alert_mode(v)

    @field_validator("scope", "http_alert_sink_id")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)

    @model_validator(mode="after")
    def require_updates(self):
        if not self.has_updates():
            raise ValueError("at least one field must be updated")
        return self

    def has_updates(self) -> bool:
        """Report whether any field is set."""
        return bool(self.changes())

    def changes(self) -> Dict[str, Any]:
        """Return the fields that were explicitly set to a value.

        Cleared scope or http_alert_sink_id values are returned as None.
        """
        changes = self.model_dump(exclude_none=True)
        for field in ("scope", "http_alert_sink_id"):
            if changes.get(field) == "":
                changes[field] = None
        return changes


class SitesListOptions(BaseModel):
    """Paging, filtering and sorting for site listings.

    Out-of-range values are normalized rather than rejected: limit <= 0
    becomes 50, negative offsets become 0, and unknown sort columns or
    directions fall back to created_at/desc. q is a case-insensitive substring
    match on name; scope matches exactly.
    """

    limit: int = DEFAULT_LIST_LIMIT
    offset: int = 0
    q: Optional[str] = Field(None, description="Case-insensitive substring match on name")
    enabled: Optional[bool] = None
    scope: Optional[str] = Field(None, description="Exact match on scope")
    sort: str = "created_at"
    dir: str = "desc"

    @field_validator("limit")
    @classmethod
    def normalize_limit(cls, v: int) -> int:
        return v if v > 0 else DEFAULT_LIST_LIMIT

    @field_validator("offset")
    @classmethod
    def normalize_offset(cls, v: int) -> int:
        return max(v, 0)

    @field_validator("q", "scope")
    @classmethod
    def normalize_filter(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("sort")
    @classmethod
    def normalize_sort(cls, v: str) -> str:
        normalized = v.strip().lower()
        return normalized if normalized in SORTABLE_COLUMNS else "created_at"

    @field_validator("dir")
    @classmethod
    def normalize_dir(cls, v: str) -> str:
        normalized = v.strip().lower()
        return normalized if normalized in SORT_DIRECTIONS else "desc"
