import json
from collections.abc import Mapping
from html import escape


def render_error_fragment(message: str) -> str:
    return f"<p>{escape(message)}</p>"


def _js_string(value: str) -> str:
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def render_auto_redirect(return_to: str) -> str:
    """HTML page that navigates to ``return_to`` once the response cookies are stored.

    A meta refresh and a script both redirect; the link covers browsers with
    neither enabled.
    """
    safe_url = escape(return_to, quote=True)
    return (
        '<!doctype html><html><head><meta charset="utf-8">'
        f'<meta http-equiv="refresh" content="0;url={safe_url}">'
        "</head><body>"
        f"<script>window.location.href={_js_string(return_to)};</script>"
        f'<noscript><a href="{safe_url}">Continue</a></noscript>'
        "</body></html>"
    )


def render_debug_dump(data: Mapping[str, object]) -> str:
    lines = ["LinkedInAuth auto-login debug"]
    lines.extend(f"{key}={value}" for key, value in data.items())
    return "\n".join(lines) + "\n"
