"""
Redirect resolution with click accounting.

Per request, in order:
1. Missing shortcode  -> ValidationError (400)
2. Unknown shortcode  -> NotFoundError (404)
3. Past expiry        -> mark expired, ExpiredError (410), no click recorded
4. Otherwise          -> record a click, return the original URL
"""

from datetime import datetime
from typing import Callable, Optional

from shortlink_app.audit.strategies import AuditLog, utc_now
from shortlink_app.exceptions import ExpiredError, NotFoundError, ValidationError
from shortlink_app.logging_config import get_logger
from shortlink_app.models.context import ClientContext
from shortlink_app.models.log import AuditAction
from shortlink_app.models.url import ClickEvent, UrlRecord, DIRECT_SOURCE
from shortlink_app.schemas.url import RedirectResult
from shortlink_app.services.location import LocationLookup, classify_address, LOCATION_UNAVAILABLE
from shortlink_app.storage.strategies import RecordStore, URL_EXPIRED, URL_NOT_FOUND


logger = get_logger("redirect")


class RedirectResolver:
    """Resolves shortcodes to their destination and records the click"""

    def __init__(
        self,
        store: RecordStore,
        audit: AuditLog,
        location_lookup: Optional[LocationLookup] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.audit = audit
        self.location_lookup = location_lookup or classify_address
        self.clock = clock or utc_now

    def resolve(self, shortcode: str, context: ClientContext) -> RedirectResult:
        """
        Resolve a shortcode for redirection.

        The caller issues the actual HTTP redirect (or returns the JSON result).

        Raises:
            ValidationError, NotFoundError, ExpiredError, InternalError
        """
        self.audit.record(AuditAction.REDIRECT_ATTEMPT, context, shortcode=shortcode)

        try:
            record = self._record_click(shortcode, context)
        except Exception as exc:
            error = self.audit.record_failure(
                AuditAction.REDIRECT_ERROR, context, exc, shortcode=shortcode
            )
            if error is exc:
                raise
            raise error from exc

        self.audit.record(
            AuditAction.REDIRECT_SUCCESS,
            context,
            shortcode=shortcode,
            originalUrl=record.original_url,
            totalClicks=record.total_clicks,
        )
        return RedirectResult(original_url=record.original_url, success=True)

    def _record_click(self, shortcode: str, context: ClientContext) -> UrlRecord:
        if not shortcode:
            raise ValidationError("Shortcode is required")

        record = self.store.find_by_shortcode(shortcode)
        if record is None:
            raise NotFoundError(URL_NOT_FOUND)

        # Expiry is checked before anything is appended
        now = self.clock()
        if record.is_expired or record.is_past_expiry(now):
            self.store.mark_expired_if_due(record, now)
            raise ExpiredError(URL_EXPIRED)

        event = ClickEvent(
            timestamp=now,
            source=context.referrer or DIRECT_SOURCE,
            location=self._locate(context.ip),
            user_agent=context.user_agent,
            ip=context.ip,
        )
        return self.store.append_click(shortcode, event)

    def _locate(self, ip: str) -> str:
        try:
            return self.location_lookup(ip)
        except Exception as e:
            logger.warning("Location lookup failed for %s: %s", ip, e)
            return LOCATION_UNAVAILABLE
