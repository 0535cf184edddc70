"""Stored filename derivation: sanitization, uniqueness prefix, display name."""

import os
import random
import re
import time
from typing import Optional, Union

from common.constants import (
    FALLBACK_FILENAME,
    MAX_SAFE_NAME_BYTES,
    STORED_NAME_SEPARATOR,
    UNIQUE_KEY_RANDOM_MAX
)

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_RESERVED_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def decode_original_name(name: Union[str, bytes, None]) -> str:
    """
    Recover a client filename that arrived byte-mangled.

    Multipart parsers commonly read UTF-8 filenames as Latin-1, turning
    every multi-byte character into several bogus ones. Text is pushed back
    through Latin-1 and re-read as UTF-8; text that does not survive that
    round trip was decoded correctly in the first place and is kept.

    Args:
        name: Filename as received (str, raw bytes, or None)

    Returns:
        Decoded filename ("" for None)
    """
    if not name:
        return ""

    if isinstance(name, bytes):
        try:
            return name.decode("utf-8")
        except UnicodeDecodeError:
            return name.decode("latin-1")

    try:
        return name.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return name


def sanitize_filename(name: Union[str, bytes, None]) -> str:
    """
    Derive a filesystem-safe, non-empty filename from a client filename.

    Args:
        name: Raw client filename

    Returns:
        Sanitized filename, or FALLBACK_FILENAME when nothing usable remains
    """
    decoded = decode_original_name(name)
    cleaned = _CONTROL_CHARS.sub("", decoded)
    cleaned = _RESERVED_CHARS.sub("_", cleaned)
    cleaned = truncate_filename(cleaned.strip()).strip()
    return cleaned or FALLBACK_FILENAME


def _clip_utf8(text: str, max_bytes: int) -> str:
    return text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")


def truncate_filename(name: str, max_bytes: int = MAX_SAFE_NAME_BYTES) -> str:
    """
    Shorten a filename to at most max_bytes of UTF-8, keeping its extension.

    The stem is cut on a character boundary. An extension too long to keep
    alongside a non-empty stem is cut together with the stem.
    """
    if len(name.encode("utf-8")) <= max_bytes:
        return name

    stem, ext = os.path.splitext(name)
    ext_bytes = len(ext.encode("utf-8"))
    if not stem or ext_bytes >= max_bytes // 2:
        return _clip_utf8(name, max_bytes)
    return _clip_utf8(stem, max_bytes - ext_bytes) + ext


def generate_unique_key(now_ms: Optional[int] = None) -> str:
    """
    Build a uniqueness prefix of the form '<epoch millis>-<random integer>'.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{random.randint(0, UNIQUE_KEY_RANDOM_MAX)}"


def build_stored_name(safe_name: str, unique_key: Optional[str] = None) -> str:
    """
    Join a uniqueness prefix and an already sanitized name.

    Args:
        safe_name: Output of sanitize_filename
        unique_key: Prefix to use; generated when omitted

    Returns:
        Stored name '<unique key>__<safe name>'
    """
    if unique_key is None:
        unique_key = generate_unique_key()
    return f"{unique_key}{STORED_NAME_SEPARATOR}{safe_name}"


def display_name_from_stored(stored_name: str) -> str:
    """Return everything after the first separator, or the name itself."""
    if STORED_NAME_SEPARATOR not in stored_name:
        return stored_name
    return stored_name.split(STORED_NAME_SEPARATOR, 1)[1]
