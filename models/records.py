"""Backend-neutral record types shared by the storage backends and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

USER_STATUSES = ("pending", "approved", "rejected")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_ms(value: Optional[datetime]) -> Optional[int]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


@dataclass(frozen=True)
class PublicUser:
    """The projection of a user that may leave the server.

    It never carries the password hash or the verification token and is what
    sessions are established with.
    """

    id: str
    name: str
    email: str
    role: str
    status: str
    is_verified: bool
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "isVerified": self.is_verified,
            "createdAt": to_epoch_ms(self.created_at),
        }


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    role: str = "user"
    status: str = "pending"
    is_verified: bool = False
    verification_token: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            status=self.status,
            is_verified=self.is_verified,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class AppRecord:
    id: str
    name: str
    url: str
    category: str
    description: str = ""
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "description": self.description,
            "imageUrl": self.image_url,
            "category": self.category,
            "createdAt": to_epoch_ms(self.created_at),
            "updatedAt": to_epoch_ms(self.updated_at),
        }


@dataclass(frozen=True)
class CategoryRecord:
    id: str
    name: str
    created_at: datetime = field(default_factory=utcnow)
