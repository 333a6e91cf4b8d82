"""User model definition."""

from . import db
from .records import UserRecord, utcnow


class User(db.Model):
    """Represents a portal account."""

    __tablename__ = "users"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    # Stored lower-cased so the unique constraint is case-insensitive.
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="user")
    status = db.Column(
        db.String(16),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    verification_token = db.Column(db.String(128), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @classmethod
    def from_record(cls, record: UserRecord) -> "User":
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            password_hash=record.password_hash,
            role=record.role,
            status=record.status,
            is_verified=record.is_verified,
            verification_token=record.verification_token,
            created_at=record.created_at,
        )

    def to_record(self) -> UserRecord:
        return UserRecord(
            id=self.id,
            name=self.name,
            email=self.email,
            password_hash=self.password_hash,
            role=self.role,
            status=self.status,
            is_verified=bool(self.is_verified),
            verification_token=self.verification_token,
            created_at=self.created_at,
        )

    def mark_verified(self) -> None:
        """Mark the email as verified and consume the verification token."""

        self.is_verified = True
        self.verification_token = None

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
