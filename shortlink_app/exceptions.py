"""
Error types raised by the shortener core.

Each error carries the HTTP status it maps to at the API boundary,
so routes never need to translate them by hand.
"""


class ShortenerError(Exception):
    """Base class for every error the core raises on purpose"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShortenerError):
    """Malformed input. Client error, never retried."""
    status_code = 400


class ConflictError(ShortenerError):
    """Shortcode collision. Caller may retry with another code or omit it."""
    status_code = 409


class NotFoundError(ShortenerError):
    status_code = 404


class ExpiredError(ShortenerError):
    """Shortcode is known but past its validity window."""
    status_code = 410


class InternalError(ShortenerError):
    status_code = 500


class ShortcodeSpaceExhaustedError(InternalError):
    """
    Raised when no free shortcode was found within the attempt cap.

    With 62^6 possible codes this only happens when the namespace is
    close to saturation, so it is treated as a programming error.
    """
