"""
Shortcode allocation.

Either validates a caller-supplied shortcode or generates a random one,
and makes sure it's not already taken in the record store.
"""

import re
import secrets
import string
from typing import Callable, Optional

from shortlink_app.exceptions import (
    ConflictError,
    ShortcodeSpaceExhaustedError,
    ValidationError,
)
from shortlink_app.logging_config import get_logger
from shortlink_app.models.url import UrlRecord
from shortlink_app.storage.strategies import RecordStore, SHORTCODE_EXISTS


logger = get_logger("allocator")

SHORTCODE_PATTERN = re.compile(r"[A-Za-z0-9]+")
SHORTCODE_ALPHABET = string.ascii_letters + string.digits


def is_valid_shortcode(shortcode: str) -> bool:
    return bool(shortcode) and SHORTCODE_PATTERN.fullmatch(shortcode) is not None


class ShortcodeAllocator:
    """
    Random shortcode allocation with collision checking.

    62^6 (about 5.6e10) codes for the default length, so the retry loop
    almost never runs twice. It is still capped: running out of attempts
    means the namespace is nearly full.
    """

    def __init__(self, store: RecordStore, length: int = 6, max_attempts: int = 10):
        self.store = store
        self.length = length
        self.max_attempts = max_attempts

    def allocate(self, requested: Optional[str] = None) -> str:
        """
        Return a shortcode that is free at the time of the check.

        Args:
            requested: Custom shortcode asked for by the client, if any

        Raises:
            ValidationError: Requested code is not alphanumeric
            ConflictError: Requested code is already taken
            ShortcodeSpaceExhaustedError: No free code within max_attempts
        """
        if requested is not None:
            if not is_valid_shortcode(requested):
                raise ValidationError("Shortcode must be alphanumeric")
            # Expired records keep their code forever, so this covers reuse too
            if self.store.exists(requested):
                raise ConflictError(SHORTCODE_EXISTS)
            return requested

        for attempt in range(self.max_attempts):
            candidate = self._generate_random_string()
            # One membership check per candidate; the store lock is never held across the loop
            if not self.store.exists(candidate):
                return candidate
            logger.debug("Shortcode collision on attempt %d", attempt + 1)

        raise ShortcodeSpaceExhaustedError(
            f"Could not generate unique shortcode after {self.max_attempts} attempts"
        )

    def claim(
        self,
        build_record: Callable[[str], UrlRecord],
        requested: Optional[str] = None,
    ) -> UrlRecord:
        """
        Allocate a shortcode and insert the record built for it.

        The store insert re-checks uniqueness under its lock. If a concurrent
        request took a generated code between the check and the insert, a new
        code is drawn; a requested code has no fallback, so the conflict
        propagates.

        Args:
            build_record: Builds the record for a given shortcode

        Returns:
            The inserted record
        """
        for attempt in range(self.max_attempts):
            shortcode = self.allocate(requested)
            record = build_record(shortcode)
            try:
                self.store.insert(record)
            except ConflictError:
                if requested is not None:
                    raise
                logger.warning("Lost race for shortcode %s, retrying", shortcode)
                continue
            return record

        raise ShortcodeSpaceExhaustedError(
            f"Could not insert a unique shortcode after {self.max_attempts} attempts"
        )

    def _generate_random_string(self) -> str:
        """Draw each character uniformly from the 62-character alphabet"""
        return ''.join(secrets.choice(SHORTCODE_ALPHABET) for _ in range(self.length))
