from typing import Optional

from fastapi import APIRouter, Depends, Query

from shortlink_app.audit.strategies import AuditLog
from shortlink_app.dependencies import get_audit_log, get_client_context, get_statistics
from shortlink_app.models.context import ClientContext
from shortlink_app.schemas.url import LogsResponse, StatisticsResponse
from shortlink_app.services.statistics import StatisticsAggregator

router = APIRouter(tags=["statistics"])


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics_report(
    context: ClientContext = Depends(get_client_context),
    statistics: StatisticsAggregator = Depends(get_statistics),
):
    """All records with total/active URL and click counts"""
    return statistics.report(context)


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """Non-numeric limits fall back to the default instead of failing the query"""
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@router.get("/logs", response_model=LogsResponse)
def get_logs(
    limit: Optional[str] = Query(None, description="Number of most recent entries (default 100)"),
    audit: AuditLog = Depends(get_audit_log),
):
    """Recent audit log entries, oldest first"""
    return LogsResponse(logs=audit.recent(parse_limit(limit)), total=audit.total())
