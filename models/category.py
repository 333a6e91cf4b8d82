"""Category model."""

from . import db
from .records import CategoryRecord, utcnow


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_record(self) -> CategoryRecord:
        return CategoryRecord(id=self.id, name=self.name, created_at=self.created_at)
