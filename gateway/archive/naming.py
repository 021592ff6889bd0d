"""Artifact naming: derived client identifiers and sequence-stamped file names."""

import hashlib
import os
import re
from datetime import datetime, tzinfo
from typing import Final, Iterable

# 1-9, a-z, A-Z. Zero is left out so identifiers never read as numbers.
ALPHABET: Final[str] = "123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
IDENTIFIER_LENGTH: Final[int] = 8
MAX_SEQUENCE: Final[int] = 0xFFFF
TIMESTAMP_FORMAT: Final[str] = "%m%d%H%M"

DEFAULT_LANGUAGE: Final[str] = "javascript"

# language -> (extension, line comment marker)
LANGUAGES: Final[dict[str, tuple[str, str]]] = {
    "javascript": ("js", "//"),
    "typescript": ("ts", "//"),
    "python": ("py", "#"),
}
_LANGUAGE_ALIASES: Final[dict[str, str]] = {
    "js": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "py": "python",
}


def encode_base61(value: int, length: int = IDENTIFIER_LENGTH) -> str:
    """Render ``value`` in ALPHABET, most significant digit first.

    The result is left-padded with ``ALPHABET[0]`` and then cut to its
    leading ``length`` characters.
    """
    if value < 0:
        raise ValueError("value must be non-negative")
    base = len(ALPHABET)
    chars: list[str] = []
    while value > 0:
        value, rem = divmod(value, base)
        chars.append(ALPHABET[rem])
    while len(chars) < length:
        chars.append(ALPHABET[0])
    chars.reverse()
    return "".join(chars[:length])


def derive_identifier(client_seed: str) -> str:
    """Stable 8-character namespace for a client seed."""
    digest = hashlib.sha256(client_seed.encode("utf-8")).digest()
    return encode_base61(int.from_bytes(digest, "big"))


def resolve_language(language: str | None) -> tuple[str, str]:
    """Return ``(extension, comment_marker)``; unknown languages fall back to JavaScript."""
    key = (language or "").strip().lower()
    key = _LANGUAGE_ALIASES.get(key, key)
    return LANGUAGES.get(key, LANGUAGES[DEFAULT_LANGUAGE])


def artifact_pattern(identifier: str) -> re.Pattern[str]:
    return re.compile(
        r"^" + re.escape(identifier) + r"-([0-9a-fA-F]{4})-([0-9]{8})\.[A-Za-z0-9]+$"
    )


def max_sequence(identifier: str, names: Iterable[str]) -> int:
    """Highest sequence recorded for ``identifier`` among ``names``, or -1."""
    pattern = artifact_pattern(identifier)
    highest = -1
    for name in names:
        m = pattern.match(name)
        if not m:
            continue
        try:
            seq = int(m.group(1), 16)
        except ValueError:
            continue
        if seq > highest:
            highest = seq
    return highest


def format_artifact_name(identifier: str, sequence: int, captured_at: datetime, tz: tzinfo, extension: str) -> str:
    if not 0 <= sequence <= MAX_SEQUENCE:
        raise ValueError(f"sequence {sequence} outside 0..{MAX_SEQUENCE:#x}")
    stamp = captured_at.astimezone(tz).strftime(TIMESTAMP_FORMAT)
    return f"{identifier}-{sequence:04x}-{stamp}.{extension}"


def is_bare_filename(name: str) -> bool:
    """True when ``name`` is its own basename on every platform we serve from."""
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    return os.path.basename(name) == name
