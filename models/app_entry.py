"""App entry model."""

from . import db
from .records import AppRecord, utcnow


class AppEntry(db.Model):
    """A link to a web application shown on the dashboard."""

    __tablename__ = "apps"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    image_url = db.Column(db.Text, nullable=True)
    # Categories are referenced by name, not by foreign key.
    category = db.Column(db.String(255), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_record(self) -> AppRecord:
        return AppRecord(
            id=self.id,
            name=self.name,
            url=self.url,
            category=self.category,
            description=self.description or "",
            image_url=self.image_url,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
