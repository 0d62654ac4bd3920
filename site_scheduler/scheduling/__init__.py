"""Keeping each site's recurring-job schedule in step with the site."""

from .exceptions import InvalidIntervalError, ScheduleReconcileError
from .gateway import ScheduleAdminGateway, UpsertTaskParams
from .interval import interval_seconds_to_minutes, minutes_to_interval_seconds
from .naming import site_id_from_task_name, task_name_for_site
from .reconciler import SiteReconciler, desired_schedule, schedule_payload

__all__ = [
    "task_name_for_site",
    "site_id_from_task_name",
    "minutes_to_interval_seconds",
    "interval_seconds_to_minutes",
    "ScheduleAdminGateway",
    "UpsertTaskParams",
    "SiteReconciler",
    "desired_schedule",
    "schedule_payload",
    "InvalidIntervalError",
    "ScheduleReconcileError",
]
