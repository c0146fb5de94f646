"""
Failure kinds raised by the link and analytics services.

Every class carries the HTTP status the boundary maps it to, so routes can
translate them without a lookup table of their own.
"""


class LinkPulseError(Exception):
    """Base class for all service-level failures"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LinkPulseError):
    """Malformed caller input"""

    status_code = 400


class InvalidLongUrl(ValidationError):
    pass


class InvalidAliasFormat(ValidationError):
    pass


class AliasConflict(LinkPulseError):
    """Alias already taken, or a concurrent creator won the insert"""

    status_code = 400


class AliasExhausted(LinkPulseError):
    """Alias generation ran out of attempts"""

    status_code = 500


class LinkNotFound(LinkPulseError):
    status_code = 404


class TransientStoreError(LinkPulseError):
    """Store timed out or was unreachable"""

    status_code = 500


class Unauthenticated(LinkPulseError):
    status_code = 401
