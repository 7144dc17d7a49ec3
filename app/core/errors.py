"""Errors raised by the LinkedIn login pipeline.

Every error carries a kind, an HTTP status and a generic message that is
safe to show to the browser. Diagnostic details never go into the message.
"""

from __future__ import annotations

from fastapi import status

from app.core.enums import AuthErrorKind


class LinkedInAuthError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_kind: AuthErrorKind = AuthErrorKind.PARAMS_MISSING
    default_message: str = "LinkedIn authentication failed"

    def __init__(self, message: str | None = None, *, kind: AuthErrorKind | None = None) -> None:
        self.kind = kind or self.default_kind
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(LinkedInAuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = AuthErrorKind.CONFIG_INVALID
    default_message = "Configuration error (invalid LinkedIn config)"


class ParamsMissing(LinkedInAuthError):
    default_kind = AuthErrorKind.PARAMS_MISSING
    default_message = "LinkedIn authentication failed (missing parameters)"


class MalformedPayload(LinkedInAuthError):
    default_kind = AuthErrorKind.MALFORMED_PAYLOAD
    default_message = "Bad payload"


class CsrfInvalid(LinkedInAuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_kind = AuthErrorKind.CSRF_INVALID
    default_message = "LinkedIn authentication failed (invalid csrf)"


class InvalidSignature(LinkedInAuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_kind = AuthErrorKind.INVALID_SIGNATURE
    default_message = "Invalid signature"


class TokenExpired(LinkedInAuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_kind = AuthErrorKind.TOKEN_EXPIRED
    default_message = "Token expired"


class ProviderCommunicationError(LinkedInAuthError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_kind = AuthErrorKind.TOKEN_EXCHANGE_FAILED
    default_message = "LinkedIn authentication failed (provider error)"


class AccountProvisioningError(LinkedInAuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = AuthErrorKind.USERNAME_UNAVAILABLE
    default_message = "Username not creatable"


class IntegrityGuard(LinkedInAuthError):
    status_code = status.HTTP_409_CONFLICT
    default_kind = AuthErrorKind.USER_HAS_ACTIVITY
    default_message = "User has activity; hard delete aborted"
