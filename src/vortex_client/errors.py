from typing import Optional


class VortexError(Exception):
    """Base class for every error raised by the Vortex client."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class VortexTokenError(VortexError, ValueError):
    """Raised when a token cannot be minted from the given key or claims."""

    pass


class InvalidKeyFormat(VortexTokenError):
    pass


class InvalidKeyPrefix(VortexTokenError):
    pass


class InvalidKeyIdLength(VortexTokenError):
    pass


class MissingRequiredClaim(VortexTokenError):
    def __init__(self, claim: str, message: Optional[str] = None):
        self.claim = claim
        super().__init__(message or f"Missing required claim: {claim}")


class VortexApiError(VortexError):
    """Raised when a call to the Vortex API fails.

    ``status_code`` is ``None`` when the request never got a response
    (connection refused, timeout, ...).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
