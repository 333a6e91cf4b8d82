"""App and category management."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from models.records import AppRecord, PublicUser
from storage import DuplicateRecordError, RecordStore

from .authorization import AuthorizationGate
from .results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

REQUIRED_APP_FIELDS = ("name", "url", "category")


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


class CatalogService:
    def __init__(self, store: RecordStore, gate: AuthorizationGate):
        self.store = store
        self.gate = gate

    def list_apps(
        self, category: Optional[str] = None, query: Optional[str] = None
    ) -> Result[list[AppRecord]]:
        apps = self.store.list_apps()
        if category:
            apps = [app for app in apps if app.category == category]
        if query:
            needle = query.strip().lower()
            apps = [
                app
                for app in apps
                if needle in app.name.lower()
                or needle in (app.description or "").lower()
                or needle in app.url.lower()
            ]
        return Ok(apps)

    def create_app(self, caller: Optional[PublicUser], data: dict) -> Result[AppRecord]:
        allowed = self.gate.require_admin(caller)
        if not allowed.ok:
            return allowed

        values = {key: _clean(data.get(key)) for key in REQUIRED_APP_FIELDS}
        missing = [key for key, value in values.items() if not value]
        if missing:
            return Err(
                ErrorKind.VALIDATION_ERROR,
                "Missing required fields: {}.".format(", ".join(missing)),
            )

        self.store.ensure_category(values["category"])
        record = self.store.create_app(
            AppRecord(
                id=str(uuid.uuid4()),
                name=values["name"],
                url=values["url"],
                category=values["category"],
                description=_clean(data.get("description")) or "",
                image_url=_clean(data.get("imageUrl")) or None,
            )
        )
        logger.info("Admin %s added app %s", caller.id, record.id)
        return Ok(record)

    def update_app(
        self, caller: Optional[PublicUser], app_id: str, data: dict
    ) -> Result[AppRecord]:
        allowed = self.gate.require_admin(caller)
        if not allowed.ok:
            return allowed

        changes = {}
        for wire_key, field in (
            ("name", "name"),
            ("url", "url"),
            ("category", "category"),
            ("description", "description"),
            ("imageUrl", "image_url"),
        ):
            if wire_key in data:
                changes[field] = _clean(data[wire_key])

        for field in REQUIRED_APP_FIELDS:
            if field in changes and not changes[field]:
                return Err(ErrorKind.VALIDATION_ERROR, f"{field} must not be empty.")
        if "description" in changes:
            changes["description"] = changes["description"] or ""
        if "image_url" in changes:
            changes["image_url"] = changes["image_url"] or None

        if self.store.find_app(app_id) is None:
            return Err(ErrorKind.NOT_FOUND, "App not found.")
        if changes.get("category"):
            self.store.ensure_category(changes["category"])

        record = self.store.update_app(app_id, **changes)
        if record is None:
            return Err(ErrorKind.NOT_FOUND, "App not found.")
        return Ok(record)

    def delete_app(self, caller: Optional[PublicUser], app_id: str) -> Result[None]:
        allowed = self.gate.require_admin(caller)
        if not allowed.ok:
            return allowed
        if not self.store.delete_app(app_id):
            return Err(ErrorKind.NOT_FOUND, "App not found.")
        logger.info("Admin %s removed app %s", caller.id, app_id)
        return Ok()

    def list_categories(self) -> Result[list[str]]:
        return Ok([category.name for category in self.store.list_categories()])

    def create_category(self, caller: Optional[PublicUser], name: str) -> Result[str]:
        allowed = self.gate.require_admin(caller)
        if not allowed.ok:
            return allowed
        name = _clean(name)
        if not name:
            return Err(ErrorKind.VALIDATION_ERROR, "Category name is required.")
        try:
            self.store.create_category(name)
        except DuplicateRecordError:
            return Err(ErrorKind.CONFLICT, "Category already exists.")
        return Ok(name)

    def delete_category(self, caller: Optional[PublicUser], name: str) -> Result[None]:
        allowed = self.gate.require_admin(caller)
        if not allowed.ok:
            return allowed
        if not self.store.delete_category(name):
            return Err(ErrorKind.NOT_FOUND, "Category not found.")
        return Ok()
