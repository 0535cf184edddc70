"""Human-readable formatting helpers shared by the server and the CLI."""

import math
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "!~*'()"


def format_bytes(size_bytes: int) -> str:
    """
    Format a byte count using base-1024 units.

    One decimal place is shown when the value is below 10 and the unit is
    past bytes; otherwise the value is rounded to an integer.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "0 B", "1 KB", "1.5 MB")
    """
    if size_bytes <= 0:
        return "0 B"

    index = min(int(math.floor(math.log(size_bytes, 1024))), len(SIZE_UNITS) - 1)
    # log() can land just below an exact power of 1024
    if index + 1 < len(SIZE_UNITS) and size_bytes >= 1024 ** (index + 1):
        index += 1
    value = size_bytes / (1024 ** index)

    if value < 10 and index > 0:
        text = f"{value:.1f}"
        if text.endswith(".0"):
            text = text[:-2]
    else:
        text = f"{value:.0f}"
    return f"{text} {SIZE_UNITS[index]}"


def format_utc_iso(moment: Optional[datetime] = None) -> str:
    """
    Format an instant as ISO-8601 UTC with millisecond precision and a 'Z'
    suffix (e.g. "2024-05-01T10:00:00.000Z"). Defaults to now.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def encode_uri_component(value: str) -> str:
    """
    Percent-encode a URL path segment exactly like JavaScript's
    encodeURIComponent, so browser-built and server-built links agree.
    """
    return quote(value, safe=_URI_COMPONENT_SAFE)


def encode_rfc5987_value(value: str) -> str:
    """
    Percent-encode a header parameter value for the RFC 5987 `filename*`
    form. Stricter than encode_uri_component: `'` delimits the charset in
    that form and `()*` are not attr-chars, so everything but unreserved
    characters is escaped.
    """
    return quote(value, safe="")
