# ============================================================================
# Error Codes
# ============================================================================

from enum import StrEnum


class ErrorCodes(StrEnum):
    """Gateway error codes."""

    # Admission
    IP_NOT_ALLOWED = "E1001"

    # Sessions
    SESSION_WRITE_FAILED = "E2001"

    # Upstream feed
    FEED_CONNECT_FAILED = "E3001"
    FEED_SUBSCRIPTION_FAILED = "E3002"

    # Configuration
    INVALID_CONFIG = "E4001"


class GatewayError(Exception):
    """Gateway error carrying a stable error code."""

    def __init__(self, code: ErrorCodes | str, message: str) -> None:
        super().__init__(message)
        self.code = code.value if isinstance(code, ErrorCodes) else code
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"
