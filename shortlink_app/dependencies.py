"""
Service wiring and FastAPI dependencies.

The record store and audit log are process-wide state, so they are built
once by a ServiceContainer during the app lifespan, kept on ``app.state``
and handed to routes through ``Depends``. Tests build their own container
and pass it to ``create_app``.
"""

from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, Request

from shortlink_app.audit.factory import AuditLogFactory, AuditLogBackend
from shortlink_app.audit.strategies import AuditLog
from shortlink_app.config import Settings, settings as default_settings
from shortlink_app.logging_config import get_logger
from shortlink_app.models.context import ClientContext
from shortlink_app.models.url import UNKNOWN_CLIENT
from shortlink_app.services.location import LocationLookup, TimedLocationLookup, classify_address
from shortlink_app.services.redirect_resolver import RedirectResolver
from shortlink_app.services.shortcode_allocator import ShortcodeAllocator
from shortlink_app.services.statistics import StatisticsAggregator
from shortlink_app.services.url_service import UrlService
from shortlink_app.storage.factory import RecordStoreFactory, RecordStoreBackend
from shortlink_app.storage.strategies import RecordStore


logger = get_logger("app")


class ServiceContainer:
    """
    Owns the store, the audit log and the services built on top of them.

    Construct once at startup, close() once at shutdown.
    """

    def __init__(
        self,
        store: RecordStore,
        audit: AuditLog,
        location_lookup: Optional[LocationLookup] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.settings = settings
        self.store = store
        self.audit = audit
        self.location_lookup = location_lookup or classify_address

        self.allocator = ShortcodeAllocator(
            store,
            length=settings.shortcode_length,
            max_attempts=settings.max_shortcode_attempts,
        )
        self.url_service = UrlService(
            self.allocator,
            audit,
            clock=clock,
            max_validity_minutes=settings.max_validity_minutes,
        )
        self.resolver = RedirectResolver(store, audit, self.location_lookup, clock=clock)
        self.statistics = StatisticsAggregator(store, audit, clock=clock)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "ServiceContainer":
        """Build backends as configured (see Settings.*_backend)"""
        settings = settings or default_settings
        store = RecordStoreFactory.create(
            RecordStoreBackend(settings.record_store_backend), settings
        )
        audit = AuditLogFactory.create(
            AuditLogBackend(settings.audit_log_backend), settings, clock=clock
        )
        location_lookup = TimedLocationLookup(
            classify_address, timeout=settings.location_lookup_timeout
        )
        return cls(store, audit, location_lookup, clock=clock, settings=settings)

    def close(self) -> None:
        self.store.close()
        self.audit.close()
        if isinstance(self.location_lookup, TimedLocationLookup):
            self.location_lookup.close()
        logger.info("Services shut down")


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_url_service(container: ServiceContainer = Depends(get_container)) -> UrlService:
    return container.url_service


def get_resolver(container: ServiceContainer = Depends(get_container)) -> RedirectResolver:
    return container.resolver


def get_statistics(container: ServiceContainer = Depends(get_container)) -> StatisticsAggregator:
    return container.statistics


def get_audit_log(container: ServiceContainer = Depends(get_container)) -> AuditLog:
    return container.audit


def get_client_context(request: Request) -> ClientContext:
    """Client address, agent and referrer, captured verbatim"""
    return ClientContext(
        ip=request.client.host if request.client else UNKNOWN_CLIENT,
        user_agent=request.headers.get("user-agent") or UNKNOWN_CLIENT,
        referrer=request.headers.get("referer") or None,
    )
