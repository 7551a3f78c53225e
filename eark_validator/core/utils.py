import base64
import binascii
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Typographic quotes the test bed's report serialisation cannot round-trip
_BAD_CHARACTERS = str.maketrans({"“": '"', "”": '"'})


def replace_bad_characters(text: Optional[str]) -> Optional[str]:
    """
    Replace typographic double quotes with plain ones.

    Args:
        text: Text to normalise (None is passed through)

    Returns:
        Normalised text, or None
    """
    if text is None:
        return None
    return text.translate(_BAD_CHARACTERS)


def replace_bad_characters_deep(value: Any) -> Any:
    """Apply replace_bad_characters to every string in a JSON-like structure."""
    if isinstance(value, str):
        return replace_bad_characters(value)
    if isinstance(value, dict):
        return {key: replace_bad_characters_deep(item) for key, item in value.items()}
    if isinstance(value, list):
        return [replace_bad_characters_deep(item) for item in value]
    return value


def encode_archive_to_base64(archive_bytes: bytes) -> str:
    """Encode archive bytes for embedding in a report."""
    return base64.b64encode(archive_bytes).decode("ascii")


def decode_archive_from_base64(value: str) -> bytes:
    """
    Decode a base64-embedded archive.

    Whitespace (line-wrapped payloads) is tolerated.

    Raises:
        ValueError: If the value is not valid base64
    """
    compact = "".join(value.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Archive is not valid base64 content: {e}") from e


def force_secure_url(url: str) -> str:
    """Rewrite an http:// URL to https://, leaving anything else untouched."""
    if url.startswith("http://"):
        secure = "https://" + url[len("http://"):]
        logger.debug(f"Rewrote report URL to secure transport: {secure}")
        return secure
    return url
