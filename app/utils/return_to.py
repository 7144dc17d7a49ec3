import re

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_CONTENT_PREFIX = "/wiki/"


def _is_off_site(value: str) -> bool:
    return (
        bool(_ABSOLUTE_URL.match(value))
        or value.startswith("//")
        or value.startswith("/\\")
    )


def normalize_return_to(value: str | None, default: str) -> str:
    """Turn a caller-supplied destination into a same-origin relative path.

    Absolute and protocol-relative URLs fall back to ``default``, as does
    anything holding control characters, which browsers drop from URLs. A
    leading ``/wiki/`` prefix is dropped and a leading slash is always
    present, so applying the function twice gives the same result.
    """
    if not value or _CONTROL_CHARS.search(value) or _is_off_site(value):
        return default

    if not value.startswith("/"):
        value = "/" + value
    while value.startswith(_CONTENT_PREFIX):
        value = value[len(_CONTENT_PREFIX) - 1 :]

    if _is_off_site(value):
        return default
    return value
