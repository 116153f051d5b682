"""Content fingerprints used for duplicate paste detection."""

import base64
import hashlib


def fingerprint(content: str) -> str:
    """Hash paste content for duplicate checks.

    Returns the SHA-1 digest of the UTF-8 encoded content as URL-safe base64,
    always 28 characters long. Not a security primitive.
    """
    digest = hashlib.sha1(content.encode("utf-8")).digest()  # nosec B324
    return base64.urlsafe_b64encode(digest).decode("ascii")
