"""Common git helpers.

This module provides small conversion helpers shared by the repository
modules: byte/string decoding, commit id handling, and git signature parsing.
"""

from datetime import datetime, timedelta, timezone
from typing import Final

SHA_HEX_LENGTH: Final = 40


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def sha_to_str(sha: bytes) -> str:
    """Convert a dulwich object id to a 40-character hex string.

    Dulwich hands out hex ids, but raw 20-byte digests show up in a few
    low-level APIs, so both forms are accepted.

    Args:
        sha: Object id as 40 hex bytes or a 20-byte binary digest.

    Returns:
        Lowercase 40-character hex string.
    """
    if len(sha) == SHA_HEX_LENGTH:
        return sha.decode("ascii").lower()
    return sha.hex()


def parse_identity(identity: bytes) -> tuple[str, str]:
    """Split a git signature into name and email.

    Args:
        identity: Signature bytes in "Name <email>" format.

    Returns:
        Tuple of (name, email). The email is empty if the signature has none.
    """
    text = identity.decode("utf-8", errors="replace")
    if "<" in text and text.endswith(">"):
        name, _, email = text.rpartition("<")
        return name.strip(), email[:-1]
    return text.strip(), ""


def parse_timestamp(seconds: int, tz_offset: int) -> datetime:
    """Build an aware datetime from a git timestamp.

    Dulwich reports the timezone offset in seconds east of UTC, the same
    sign convention as datetime.timezone.

    Args:
        seconds: Unix timestamp.
        tz_offset: Offset from UTC in seconds.

    Returns:
        Timestamp in the commit's own timezone.
    """
    return datetime.fromtimestamp(seconds, tz=timezone(timedelta(seconds=tz_offset)))
