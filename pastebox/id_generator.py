"""Paste ID generation using base62 encoding.

This module generates unique, URL-friendly paste IDs and delete keys using
base62 encoding (a-zA-Z0-9) with collision detection.
"""

import logging
import secrets
import string
from typing import Callable

from pastebox.config import ConfigurationError

logger = logging.getLogger(__name__)

# MAX_KEY_LEN sets delete key string length
MAX_KEY_LEN = 40


class IDGenerator:
    """Generates unique paste IDs using base62 encoding.

    Collision detection is performed by checking if an ID already exists
    before returning it. Retries are unbounded: the ID space is large relative
    to the number of stored pastes.
    """

    # Base62 alphabet: a-zA-Z0-9
    BASE62_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits

    def __init__(self, id_length: int = 6):
        """Initialize ID generator.

        Args:
            id_length: Length of generated IDs (default: 6)
        """
        self.id_length = id_length

    def generate(self, exists_check: Callable[[str], bool]) -> str:
        """Generate a unique paste ID with collision detection.

        Args:
            exists_check: Function that returns True if an ID already exists

        Returns:
            A paste ID string not known to exists_check

        Raises:
            ConfigurationError: If the configured ID length is not positive
        """
        if self.id_length <= 0:
            raise ConfigurationError("Paste ID is too short")

        while True:
            paste_id = self._random_string(self.id_length)

            if not exists_check(paste_id):
                return paste_id

            logger.debug(f"Paste ID collision, regenerating: {paste_id}")

    def generate_delete_key(self) -> str:
        """Generate a delete key drawn from the same alphabet."""
        return self._random_string(MAX_KEY_LEN)

    def _random_string(self, length: int) -> str:
        return "".join(secrets.choice(self.BASE62_ALPHABET) for _ in range(length))
