from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError as PydanticValidationError

from shortlink_app.audit.strategies import AuditLog, utc_now
from shortlink_app.config import settings
from shortlink_app.exceptions import ValidationError
from shortlink_app.models.context import ClientContext
from shortlink_app.models.log import AuditAction
from shortlink_app.models.url import UrlRecord
from shortlink_app.schemas.url import ShortenRequest
from shortlink_app.services.shortcode_allocator import ShortcodeAllocator


_url_adapter = TypeAdapter(AnyUrl)


def validate_original_url(value: Any) -> str:
    """
    Check that value is an absolute URL.

    The URL is stored exactly as given; pydantic only validates it.
    """
    if value is None or value == "":
        raise ValidationError("Original URL is required")
    if not isinstance(value, str):
        raise ValidationError("Invalid URL format")

    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValidationError("Invalid URL format")
    return value


def validate_validity_minutes(value: Any, max_minutes: Optional[int] = None) -> int:
    # bool is an int subclass, and JSON numbers like 5.0 count as integers
    if isinstance(value, bool):
        raise ValidationError("Validity must be a positive integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError("Validity must be a positive integer")
    if max_minutes is not None and value > max_minutes:
        raise ValidationError("Validity must be a positive integer")
    return value


def validate_custom_shortcode(value: Any) -> Optional[str]:
    """Empty means "generate one"; the allocator checks the format"""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("Shortcode must be alphanumeric")
    return value


class UrlService:
    """
    Creates shortened URLs.

    Validation, allocation and insertion happen in that order; nothing
    touches the store until every input has been validated. Each request
    produces an attempt entry plus exactly one success or error entry
    in the audit log.
    """

    def __init__(
        self,
        allocator: ShortcodeAllocator,
        audit: AuditLog,
        clock: Optional[Callable[[], datetime]] = None,
        max_validity_minutes: Optional[int] = None,
    ):
        self.allocator = allocator
        self.audit = audit
        self.clock = clock or utc_now
        self.max_validity_minutes = max_validity_minutes or settings.max_validity_minutes

    def create_short_url(
        self,
        payload: ShortenRequest,
        context: ClientContext,
        base_url: Optional[str] = None,
    ) -> UrlRecord:
        """
        Create a new short URL.

        Args:
            payload: The create request as received
            context: Client making the request
            base_url: Scheme and host the short link is served from

        Returns:
            The stored record

        Raises:
            ValidationError: Missing/malformed URL, validity or shortcode
            ConflictError: Requested shortcode is taken
            InternalError: Anything unexpected (already audited)
        """
        self.audit.record(
            AuditAction.SHORTEN_ATTEMPT,
            context,
            originalUrl=payload.original_url,
            validityMinutes=payload.validity_minutes,
            customShortcode=payload.custom_shortcode,
        )

        try:
            original_url = validate_original_url(payload.original_url)
            validity_minutes = validate_validity_minutes(
                payload.validity_minutes, self.max_validity_minutes
            )
            requested = validate_custom_shortcode(payload.custom_shortcode)
            created_at = self.clock()

            def build_record(shortcode: str) -> UrlRecord:
                return UrlRecord.create(
                    original_url=original_url,
                    shortcode=shortcode,
                    base_url=base_url or settings.base_url,
                    created_at=created_at,
                    validity_minutes=validity_minutes,
                )

            record = self.allocator.claim(build_record, requested)

        except Exception as exc:
            error = self.audit.record_failure(AuditAction.SHORTEN_ERROR, context, exc)
            if error is exc:
                raise
            raise error from exc

        self.audit.record(
            AuditAction.SHORTEN_SUCCESS,
            context,
            shortcode=record.shortcode,
            originalUrl=record.original_url,
            expiryTime=record.expiry_time.isoformat(),
        )
        return record
