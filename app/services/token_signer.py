"""Compact HMAC-signed envelope for the LinkedIn handoff token.

A token is ``base64url(json) + "." + hex(hmac_sha256(key, base64url(json)))``.
Expiry is not checked here; callers decide how strict to be about ``exp``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from typing import Any

from app.core.enums import AuthErrorKind
from app.core.errors import ConfigurationError, InvalidSignature, MalformedPayload

SEPARATOR = "."


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(segment: str) -> bytes:
    padded = segment.rstrip("=")
    padded += "=" * (-len(padded) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _mac(key: str, segment: str) -> str:
    return hmac.new(key.encode("utf-8"), segment.encode("utf-8"), hashlib.sha256).hexdigest()


def _require_key(key: str | None) -> str:
    if not key:
        raise ConfigurationError("Keys missing", kind=AuthErrorKind.HMAC_MISSING)
    return key


def sign(payload: dict[str, Any], key: str | None) -> str:
    key = _require_key(key)
    raw = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    segment = _b64url_encode(raw)
    return f"{segment}{SEPARATOR}{_mac(key, segment)}"


def verify(token: str, key: str | None) -> dict[str, Any]:
    """Check the signature of ``token`` and return its decoded payload.

    Raises:
        ConfigurationError: No signing key is configured.
        MalformedPayload: The token has no separator, or the payload is not a JSON object.
        InvalidSignature: The MAC does not match the payload segment.
    """
    key = _require_key(key)
    if SEPARATOR not in token:
        raise MalformedPayload("Bad token", kind=AuthErrorKind.BAD_TOKEN)

    segment, signature = token.split(SEPARATOR, 1)
    expected = _mac(key, segment)
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        raise InvalidSignature()

    try:
        data = json.loads(_b64url_decode(segment))
    except (binascii.Error, ValueError):
        raise MalformedPayload() from None
    if not isinstance(data, dict):
        raise MalformedPayload()
    return data
