from datetime import datetime
from typing import Callable, Optional

from shortlink_app.audit.strategies import AuditLog, utc_now
from shortlink_app.models.context import ClientContext
from shortlink_app.models.log import AuditAction
from shortlink_app.schemas.url import StatisticsResponse
from shortlink_app.storage.strategies import RecordStore


class StatisticsAggregator:
    """
    Derived counts over the whole record store.

    Expiry flags are refreshed before counting, so the numbers reflect the
    time of the request rather than the time of the last redirect.
    """

    def __init__(
        self,
        store: RecordStore,
        audit: AuditLog,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.audit = audit
        self.clock = clock or utc_now

    def snapshot(self) -> StatisticsResponse:
        """Counts plus a deep copy of every record, in insertion order"""
        now = self.clock()
        for record in self.store.all():
            self.store.mark_expired_if_due(record, now)

        records = self.store.all()
        return StatisticsResponse(
            urls=records,
            total_urls=len(records),
            total_clicks=sum(record.total_clicks for record in records),
            active_urls=sum(1 for record in records if not record.is_expired),
        )

    def report(self, context: ClientContext) -> StatisticsResponse:
        """snapshot() with request/success/error entries in the audit log"""
        self.audit.record(AuditAction.STATISTICS_REQUEST, context)

        try:
            stats = self.snapshot()
        except Exception as exc:
            error = self.audit.record_failure(AuditAction.STATISTICS_ERROR, context, exc)
            if error is exc:
                raise
            raise error from exc

        self.audit.record(
            AuditAction.STATISTICS_SUCCESS,
            context,
            totalUrls=stats.total_urls,
            totalClicks=stats.total_clicks,
            activeUrls=stats.active_urls,
        )
        return stats
