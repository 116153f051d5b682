"""Input shape checks for paste IDs and URL pastes."""

import re
from typing import Optional

from pastebox.config import MAX_ID_LEN
from pastebox.id_generator import IDGenerator

# Any character outside the paste ID alphabet
_INVALID_ID_CHARS = re.compile(f"[^{IDGenerator.BASE62_ALPHABET}]")

_URL_PATTERN = re.compile(
    r"(http|ftp|https)://([\w_-]+(?:(?:\.[\w_-]+)+))"
    r"([\w.,@?^=%&:/~+#-]*[\w@?^=%&/~+#-])?"
)


def is_valid_paste_id(paste_id: str) -> bool:
    """Check paste ID length and scan it for unauthorized characters."""
    return len(paste_id) <= MAX_ID_LEN and not _INVALID_ID_CHARS.search(paste_id)


def looks_like_url(content: str) -> bool:
    """Return True if content contains a scheme://host.tld style URL."""
    return extract_url(content) is not None


def extract_url(content: str) -> Optional[str]:
    """Return the first scheme://host.tld style URL found in content."""
    match = _URL_PATTERN.search(content)
    return match.group(0) if match else None
