"""Storage abstraction layer.

Two capability interfaces sit between the services and persistence:
``CredentialStore`` for user accounts and session revocation, and
``RecordStore`` for the app catalogue. ``PortalStorage`` combines them and is
what the application factory selects once at startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from models.records import AppRecord, CategoryRecord, UserRecord
from utils.passwords import MIN_BCRYPT_ROUNDS, check_password, hash_password


class StorageError(Exception):
    """Base class for storage failures."""


class DuplicateRecordError(StorageError):
    """A uniqueness constraint (user email, category name) was violated."""


class StorageUnavailableError(StorageError):
    """The backing store could not be reached."""


class CredentialStore(ABC):
    """Interface for user account persistence."""

    bcrypt_rounds: int = MIN_BCRYPT_ROUNDS

    def verify_password(self, record: UserRecord, plaintext: str) -> bool:
        """Return whether ``plaintext`` matches the record's stored hash."""

        return check_password(plaintext, record.password_hash)

    def hash_password(self, plaintext: str) -> str:
        return hash_password(plaintext, self.bcrypt_rounds)

    def set_password(self, user_id: str, plaintext: str) -> bool:
        """Hash ``plaintext`` and overwrite the stored hash.

        Returns False when no such user exists.
        """

        return self.write_password_hash(user_id, self.hash_password(plaintext))

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Case-insensitive lookup by email."""

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Lookup by primary key."""

    @abstractmethod
    def create_user(self, record: UserRecord) -> UserRecord:
        """Insert a user, raising ``DuplicateRecordError`` if the email is taken."""

    @abstractmethod
    def write_password_hash(self, user_id: str, password_hash: str) -> bool:
        """Overwrite the stored hash."""

    @abstractmethod
    def redeem_verification_token(self, token: str) -> Optional[UserRecord]:
        """Mark the token's owner verified and clear the token.

        Returns the updated record, or None if no user holds the token. A token
        can be redeemed at most once.
        """

    @abstractmethod
    def set_status(self, user_id: str, status: str) -> bool:
        """Change a user's approval status."""

    @abstractmethod
    def delete_user(self, user_id: str) -> bool:
        """Remove a user."""

    @abstractmethod
    def list_users(self) -> list[UserRecord]:
        """Return all users, newest first."""

    @abstractmethod
    def ensure_root_admin(self, email: str, name: str, password: str) -> UserRecord:
        """Create the root admin if missing and force its admin invariants."""

    @abstractmethod
    def revoke_token(self, jti: str) -> None:
        """Record a session token as logged out."""

    @abstractmethod
    def is_token_revoked(self, jti: str) -> bool:
        """Return whether a session token has been logged out."""


class RecordStore(ABC):
    """Interface for the app catalogue."""

    @abstractmethod
    def list_apps(self) -> list[AppRecord]:
        """Return all apps, newest first."""

    @abstractmethod
    def find_app(self, app_id: str) -> Optional[AppRecord]:
        """Lookup an app by id."""

    @abstractmethod
    def create_app(self, record: AppRecord) -> AppRecord:
        """Insert an app."""

    @abstractmethod
    def update_app(self, app_id: str, **changes) -> Optional[AppRecord]:
        """Apply field changes; None if the app does not exist."""

    @abstractmethod
    def delete_app(self, app_id: str) -> bool:
        """Remove an app."""

    @abstractmethod
    def count_apps(self) -> int:
        """Return how many apps exist."""

    @abstractmethod
    def list_categories(self) -> list[CategoryRecord]:
        """Return all categories ordered by name."""

    @abstractmethod
    def create_category(self, name: str) -> CategoryRecord:
        """Insert a category, raising ``DuplicateRecordError`` on a taken name."""

    @abstractmethod
    def delete_category(self, name: str) -> bool:
        """Remove a category by name."""

    def ensure_category(self, name: str) -> None:
        """Create the category unless it already exists."""

        try:
            self.create_category(name)
        except DuplicateRecordError:
            pass

    def ensure_categories(self, names: Iterable[str]) -> None:
        for name in names:
            self.ensure_category(name)


class PortalStorage(CredentialStore, RecordStore):
    """A complete backend: accounts plus catalogue."""

    @abstractmethod
    def initialize(self) -> None:
        """Verify the backend is reachable and prepare its schema.

        Raises ``StorageUnavailableError`` when it is not reachable.
        """

    @abstractmethod
    def ping(self) -> None:
        """Raise ``StorageUnavailableError`` if the backend is unreachable."""
