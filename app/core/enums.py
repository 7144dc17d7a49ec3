from enum import StrEnum


class AuthErrorKind(StrEnum):
    CONFIG_INVALID = "config_invalid"
    HMAC_MISSING = "hmac_missing"
    PARAMS_MISSING = "params_missing"
    BAD_TOKEN = "bad_token"
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_USER_DATA = "missing_user_data"
    CSRF_INVALID = "csrf_invalid"
    INVALID_SIGNATURE = "invalid_signature"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    USERINFO_FAILED = "userinfo_failed"
    USERINFO_MISSING = "userinfo_missing"
    USERNAME_UNAVAILABLE = "username_unavailable"
    ACCOUNT_CREATE_FAILED = "account_create_failed"
    USER_MISMATCH = "user_mismatch"
    USER_HAS_ACTIVITY = "user_has_activity"


class ActivityType(StrEnum):
    """Host activity attributable to an account."""

    EDIT = "edit"
    UPLOAD = "upload"
    ADMIN_ACTION = "admin_action"


APPROVED_GROUP = "approved"
