"""Paste creation, retrieval and deletion.

This module holds the core paste logic: duplicate detection by content
fingerprint, ID generation, expiry resolution, and lazy removal of expired
pastes when they are read.
"""

import html
import logging
import secrets
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from pastebox.expiry import Clock, ExpiryPolicy, utc_now
from pastebox.fingerprint import fingerprint
from pastebox.id_generator import IDGenerator
from pastebox.storage import DuplicateIdError, PasteRecord, PasteStorage
from pastebox.validation import is_valid_paste_id, looks_like_url

# Configure logging
logger = logging.getLogger(__name__)


class PasteStoreError(Exception):
    """Base class for paste errors reported back to clients."""

    pass


class InvalidPasteError(PasteStoreError):
    """Raised when a paste ID is malformed, unknown or expired."""

    def __init__(self, message: str = "Invalid paste"):
        super().__init__(message)


class InvalidURLError(PasteStoreError):
    """Raised when a "url" paste does not contain a URL."""

    def __init__(self, message: str = "Invalid URL"):
        super().__init__(message)


class AuthorizationError(PasteStoreError):
    """Raised when a delete key does not match the paste."""

    def __init__(self, message: str = "Invalid delete key"):
        super().__init__(message)


@dataclass(frozen=True)
class SaveResult:
    """Response returned to the uploader of a paste."""

    success: bool
    id: str
    sha1: str
    url: str
    size: int
    delkey: str

    def to_dict(self) -> dict:
        return asdict(self)


class PasteStore:
    """Coordinates ID generation, expiry and storage for pastes.

    All collaborators are passed in explicitly; the store keeps no global
    state and can be shared between request threads as long as its storage
    backend can.
    """

    def __init__(
        self,
        storage: PasteStorage,
        id_generator: IDGenerator,
        expiry_policy: Optional[ExpiryPolicy] = None,
        address: str = "",
        clock: Optional[Clock] = None,
    ):
        """Initialize paste store with dependencies.

        Args:
            storage: Backend persisting the pastes
            id_generator: Generator for paste IDs and delete keys
            expiry_policy: Policy resolving expiry durations (default policy
                sharing this store's clock if omitted)
            address: Prefix for the URLs returned to uploaders
            clock: Callable returning the current UTC time
        """
        self.storage = storage
        self.id_generator = id_generator
        self.clock = clock or utc_now
        self.expiry_policy = expiry_policy or ExpiryPolicy(clock=self.clock)
        self.address = address.rstrip("/")

    def save(self, content: str, expiry: str = "", language: str = "") -> SaveResult:
        """Save a paste, or return the existing one with identical content.

        Args:
            content: Raw paste content
            expiry: ISO 8601 duration after which the paste expires
            language: Content type hint; "url" pastes must contain a URL

        Returns:
            SaveResult describing the stored paste

        Raises:
            InvalidURLError: If language is "url" and content is not a URL
            StorageError: If the storage backend fails
        """
        if language == "url" and not looks_like_url(content):
            logger.info("Rejected url paste without a valid URL")
            raise InvalidURLError()

        # hash paste data and check whether the paste exists
        sha = fingerprint(content)
        existing = self.storage.find_by_fingerprint(sha)
        if existing is not None and existing.is_expired(self._now()):
            self.storage.delete(existing.id)
            logger.info(f"Paste expired and removed: {existing.id}")
            existing = None
        if existing is not None:
            logger.debug(f"Duplicate content, returning paste {existing.id}")
            return self._result(existing)

        expires_at = self.expiry_policy.resolve(expiry)
        escaped = html.escape(content)
        delete_key = self.id_generator.generate_delete_key()

        while True:
            paste_id = self.id_generator.generate(self.storage.exists)
            record = PasteRecord(
                id=paste_id,
                fingerprint=sha,
                content=escaped,
                expiry=expires_at,
                language=language,
                delete_key=delete_key,
            )
            try:
                self.storage.insert(record)
            except DuplicateIdError:
                # Another writer took the ID between generation and insert
                logger.warning(f"Paste ID {paste_id} taken at insert, regenerating")
                continue
            break

        logger.info(f"Paste saved: {paste_id} (expires {expires_at.isoformat()})")
        return self._result(record)

    def get(self, paste_id: str) -> tuple[str, str]:
        """Retrieve a paste's content and language.

        Expired pastes are deleted when they are read.

        Args:
            paste_id: Paste identifier supplied by the client

        Returns:
            Tuple of (content, language)

        Raises:
            InvalidPasteError: If the ID is malformed, unknown or expired
            StorageError: If the storage backend fails
        """
        record = self._load_active(paste_id)
        logger.debug(f"Paste retrieved: {paste_id}")
        return html.unescape(record.content), record.language

    def delete(self, paste_id: str, delete_key: str) -> None:
        """Delete a paste with the key handed out when it was saved.

        Raises:
            InvalidPasteError: If the ID is malformed, unknown or expired
            AuthorizationError: If the delete key does not match
            StorageError: If the storage backend fails
        """
        record = self._load_active(paste_id)

        if not record.delete_key or not secrets.compare_digest(
            record.delete_key.encode("utf-8"), delete_key.encode("utf-8")
        ):
            logger.warning(f"Rejected delete of paste {paste_id}: wrong delete key")
            raise AuthorizationError()

        self.storage.delete(paste_id)
        logger.info(f"Paste deleted: {paste_id}")

    def purge_expired(self) -> int:
        """Delete all expired pastes now instead of waiting for them to be read.

        Returns:
            Number of deleted pastes
        """
        count = self.storage.delete_expired(self._now())
        if count:
            logger.info(f"Purged {count} expired pastes")
        return count

    def url_for(self, paste_id: str) -> str:
        return f"{self.address}/{paste_id}"

    def _load_active(self, paste_id: str) -> PasteRecord:
        if not is_valid_paste_id(paste_id):
            logger.debug(f"Rejected malformed paste ID: {paste_id!r}")
            raise InvalidPasteError()

        record = self.storage.load(paste_id)
        if record is None:
            raise InvalidPasteError()

        if record.is_expired(self._now()):
            self.storage.delete(paste_id)
            logger.info(f"Paste expired and removed: {paste_id}")
            raise InvalidPasteError()

        return record

    def _now(self) -> datetime:
        return self.clock()

    def _result(self, record: PasteRecord) -> SaveResult:
        return SaveResult(
            success=True,
            id=record.id,
            sha1=record.fingerprint,
            url=self.url_for(record.id),
            size=len(record.content.encode("utf-8")),
            delkey=record.delete_key,
        )
