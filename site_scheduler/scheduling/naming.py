"""Task names for site schedules.

A site's schedule row is keyed by a name computed from the site id alone, so
it is recomputed wherever needed and never stored alongside the site.
"""

from typing import Optional

SITE_TASK_PREFIX = "site:"


def task_name_for_site(site_id: str) -> str:
    """Return the schedule task name for a site.

    Args:
        site_id: Site identifier

    Returns:
        Task name of the form "site:<site_id>"

    Example:
        >>> task_name_for_site("3f1c2a9e-8b7d-4c1a-9e2f-0a1b2c3d4e5f")
        'site:3f1c2a9e-8b7d-4c1a-9e2f-0a1b2c3d4e5f'
    """
    return f"{SITE_TASK_PREFIX}{site_id}"


def site_id_from_task_name(task_name: str) -> Optional[str]:
    """Return the site id encoded in a task name, or None for non-site tasks."""
    if not task_name.startswith(SITE_TASK_PREFIX):
        return None
    site_id = task_name[len(SITE_TASK_PREFIX):]
    return site_id or None
