"""Integration tests: site lifecycle and the schedule store it drives.

Each step is a separate committed unit of work, and the schedule store is
inspected with raw SQL so the assertions do not depend on the repositories
under test.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from site_scheduler.domain.models import CreateSiteRequest, UpdateSiteRequest
from site_scheduler.persistence import get_session
from site_scheduler.services import SiteService


class SteppingClock:
    """Clock that advances a fixed step on every read."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


def schedule_rows(task_name=None):
    query = "SELECT task_name, scheduled_interval, payload, last_queued_at FROM scheduled_jobs"
    params = {}
    if task_name is not None:
        query += " WHERE task_name = :task_name"
        params["task_name"] = task_name
    with get_session() as session:
        return session.execute(text(query + " ORDER BY task_name"), params).all()


@pytest.fixture
def service(database):
    return SiteService(clock=SteppingClock(datetime(2026, 5, 1, tzinfo=timezone.utc)))


def test_full_site_lifecycle(service, source_id):
    """Create, retune, disable, re-enable and delete a site."""
    site = service.create(
        CreateSiteRequest(name="storefront", enabled=True, run_every_minutes=2, source_id=source_id)
    )
    task_name = f"site:{site.id}"

    rows = schedule_rows(task_name)
    assert len(rows) == 1
    assert rows[0].scheduled_interval == 120

    service.update(site.id, UpdateSiteRequest(run_every_minutes=1))
    rows = schedule_rows()
    assert [(r.task_name, r.scheduled_interval) for r in rows] == [(task_name, 60)]

    service.update(site.id, UpdateSiteRequest(enabled=False))
    assert schedule_rows(task_name) == []

    service.update(site.id, UpdateSiteRequest(run_every_minutes=30))
    assert schedule_rows(task_name) == []

    reenabled = service.update(site.id, UpdateSiteRequest(enabled=True))
    assert reenabled.last_enabled > site.last_enabled
    rows = schedule_rows(task_name)
    assert len(rows) == 1
    assert rows[0].scheduled_interval == 1800

    assert service.delete(site.id) is True
    assert schedule_rows() == []


def test_executor_bookkeeping_survives_interval_change(service, source_id):
    """last_queued_at written by the executor is preserved across upserts."""
    site = service.create(
        CreateSiteRequest(name="storefront", run_every_minutes=10, source_id=source_id)
    )
    task_name = f"site:{site.id}"
    with get_session() as session:
        session.execute(
            text(
                "UPDATE scheduled_jobs SET last_queued_at = '2026-05-01 00:30:00' "
                "WHERE task_name = :task_name"
            ),
            {"task_name": task_name},
        )

    service.update(site.id, UpdateSiteRequest(run_every_minutes=20))

    rows = schedule_rows(task_name)
    assert rows[0].scheduled_interval == 1200
    assert rows[0].last_queued_at is not None


def test_schedule_rows_track_many_sites(service, make_source):
    """Only enabled sites hold rows, one per site."""
    source = make_source("search-flow")
    sites = [
        service.create(
            CreateSiteRequest(
                name=f"site-{i}",
                enabled=i % 2 == 0,
                run_every_minutes=i + 1,
                source_id=source,
            )
        )
        for i in range(6)
    ]

    rows = schedule_rows()
    expected = sorted(
        (f"site:{s.id}", s.run_every_minutes * 60) for s in sites if s.enabled
    )
    assert [(r.task_name, r.scheduled_interval) for r in rows] == expected

    for site in sites:
        service.update(site.id, UpdateSiteRequest(enabled=not site.enabled))

    rows = schedule_rows()
    expected = sorted(
        (f"site:{s.id}", s.run_every_minutes * 60) for s in sites if not s.enabled
    )
    assert [(r.task_name, r.scheduled_interval) for r in rows] == expected


def test_unrelated_schedule_rows_are_untouched(service, source_id):
    """Rows for other task families are never modified."""
    with get_session() as session:
        session.execute(
            text(
                "INSERT INTO scheduled_jobs "
                "(id, task_name, payload, scheduled_interval, created_at, updated_at) "
                "VALUES ('job-secret-refresh', 'secret-refresh:all', NULL, 3600, "
                "'2026-01-01 00:00:00', '2026-01-01 00:00:00')"
            )
        )

    site = service.create(
        CreateSiteRequest(name="storefront", run_every_minutes=5, source_id=source_id)
    )
    service.update(site.id, UpdateSiteRequest(enabled=False))
    service.delete(site.id)

    rows = schedule_rows()
    assert [(r.task_name, r.scheduled_interval) for r in rows] == [("secret-refresh:all", 3600)]
