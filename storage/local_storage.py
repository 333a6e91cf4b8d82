"""Local JSON-file storage implementation.

Used for offline and demo deployments. Everything lives in one JSON document
guarded by a process-wide lock; writes go through a temporary file and an
atomic rename.
"""

from __future__ import annotations

import json
import os
import threading
import uuid
from contextlib import contextmanager
from dataclasses import asdict, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from config import Config
from models.records import AppRecord, CategoryRecord, UserRecord, utcnow

from .abstract_storage import (
    DuplicateRecordError,
    PortalStorage,
    StorageUnavailableError,
)

_EMPTY_DOCUMENT = {"users": [], "apps": [], "categories": [], "revoked_tokens": []}
_TIMESTAMP_FIELDS = {"created_at", "updated_at"}
APP_FIELDS = ("name", "url", "description", "image_url", "category")


def _dump(record) -> dict:
    data = asdict(record)
    for key in _TIMESTAMP_FIELDS & data.keys():
        if isinstance(data[key], datetime):
            data[key] = data[key].isoformat()
    return data


def _load(record_type, data: dict):
    names = {f.name for f in fields(record_type)}
    values = {key: value for key, value in data.items() if key in names}
    for key in _TIMESTAMP_FIELDS & values.keys():
        if isinstance(values[key], str):
            values[key] = datetime.fromisoformat(values[key])
    return record_type(**values)


class LocalStorage(PortalStorage):
    """Persist the whole portal to a single JSON file."""

    _lock = threading.RLock()

    def __init__(self, path: str | None = None, bcrypt_rounds: int = 10):
        self.path = Path(path or Config.LOCAL_STORE_PATH)
        self.bcrypt_rounds = bcrypt_rounds

    # -- file handling -----------------------------------------------------

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            data = {}
        except (OSError, ValueError) as exc:
            raise StorageUnavailableError(f"Cannot read {self.path}.") from exc
        for key, empty in _EMPTY_DOCUMENT.items():
            data.setdefault(key, list(empty))
        return data

    def _write(self, data: dict) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {self.path}.") from exc

    @contextmanager
    def _document(self, *, write: bool = False) -> Iterator[dict]:
        with self._lock:
            data = self._read()
            yield data
            if write:
                self._write(data)

    def initialize(self) -> None:
        try:
            os.makedirs(self.path.parent, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot create {self.path.parent}.") from exc
        with self._document(write=True):
            pass

    def ping(self) -> None:
        with self._document():
            pass

    # -- users -------------------------------------------------------------

    @staticmethod
    def _find_user(data: dict, **criteria) -> Optional[dict]:
        for row in data["users"]:
            if all(row.get(key) == value for key, value in criteria.items()):
                return row
        return None

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        normalized = (email or "").strip().lower()
        with self._document() as data:
            for row in data["users"]:
                if row["email"].lower() == normalized:
                    return _load(UserRecord, row)
        return None

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        with self._document() as data:
            row = self._find_user(data, id=user_id)
            return _load(UserRecord, row) if row else None

    def create_user(self, record: UserRecord) -> UserRecord:
        with self._document(write=True) as data:
            if any(row["email"].lower() == record.email.lower() for row in data["users"]):
                raise DuplicateRecordError(f"users.email {record.email!r}")
            data["users"].append(_dump(record))
        return record

    def _update_user(self, user_id: str, **changes) -> Optional[UserRecord]:
        with self._document(write=True) as data:
            row = self._find_user(data, id=user_id)
            if row is None:
                return None
            row.update(changes)
            return _load(UserRecord, row)

    def write_password_hash(self, user_id: str, password_hash: str) -> bool:
        return self._update_user(user_id, password_hash=password_hash) is not None

    def redeem_verification_token(self, token: str) -> Optional[UserRecord]:
        if not token:
            return None
        with self._document(write=True) as data:
            row = self._find_user(data, verification_token=token)
            if row is None:
                return None
            row.update(is_verified=True, verification_token=None)
            return _load(UserRecord, row)

    def set_status(self, user_id: str, status: str) -> bool:
        return self._update_user(user_id, status=status) is not None

    def delete_user(self, user_id: str) -> bool:
        with self._document(write=True) as data:
            remaining = [row for row in data["users"] if row["id"] != user_id]
            removed = len(remaining) != len(data["users"])
            data["users"] = remaining
        return removed

    def list_users(self) -> list[UserRecord]:
        with self._document() as data:
            users = [_load(UserRecord, row) for row in data["users"]]
        return sorted(users, key=lambda user: user.created_at, reverse=True)

    def ensure_root_admin(self, email: str, name: str, password: str) -> UserRecord:
        normalized = email.strip().lower()
        existing = self.find_by_email(normalized)
        if existing is None:
            record = UserRecord(
                id=str(uuid.uuid4()),
                name=name,
                email=normalized,
                password_hash=self.hash_password(password),
            )
        else:
            record = existing
        record = replace(
            record,
            role="admin",
            status="approved",
            is_verified=True,
            verification_token=None,
        )
        with self._document(write=True) as data:
            data["users"] = [row for row in data["users"] if row["id"] != record.id]
            data["users"].append(_dump(record))
        return record

    def revoke_token(self, jti: str) -> None:
        with self._document(write=True) as data:
            if jti not in data["revoked_tokens"]:
                data["revoked_tokens"].append(jti)

    def is_token_revoked(self, jti: str) -> bool:
        with self._document() as data:
            return jti in data["revoked_tokens"]

    # -- apps --------------------------------------------------------------

    def list_apps(self) -> list[AppRecord]:
        with self._document() as data:
            apps = [_load(AppRecord, row) for row in data["apps"]]
        return sorted(apps, key=lambda app: app.created_at, reverse=True)

    def find_app(self, app_id: str) -> Optional[AppRecord]:
        with self._document() as data:
            for row in data["apps"]:
                if row["id"] == app_id:
                    return _load(AppRecord, row)
        return None

    def create_app(self, record: AppRecord) -> AppRecord:
        with self._document(write=True) as data:
            data["apps"].append(_dump(record))
        return record

    def update_app(self, app_id: str, **changes) -> Optional[AppRecord]:
        with self._document(write=True) as data:
            for index, row in enumerate(data["apps"]):
                if row["id"] != app_id:
                    continue
                allowed = {k: v for k, v in changes.items() if k in APP_FIELDS}
                updated = replace(_load(AppRecord, row), updated_at=utcnow(), **allowed)
                data["apps"][index] = _dump(updated)
                return updated
        return None

    def delete_app(self, app_id: str) -> bool:
        with self._document(write=True) as data:
            remaining = [row for row in data["apps"] if row["id"] != app_id]
            removed = len(remaining) != len(data["apps"])
            data["apps"] = remaining
        return removed

    def count_apps(self) -> int:
        with self._document() as data:
            return len(data["apps"])

    # -- categories --------------------------------------------------------

    def list_categories(self) -> list[CategoryRecord]:
        with self._document() as data:
            categories = [_load(CategoryRecord, row) for row in data["categories"]]
        return sorted(categories, key=lambda category: category.name)

    def create_category(self, name: str) -> CategoryRecord:
        record = CategoryRecord(id=str(uuid.uuid4()), name=name)
        with self._document(write=True) as data:
            if any(row["name"] == name for row in data["categories"]):
                raise DuplicateRecordError(f"categories.name {name!r}")
            data["categories"].append(_dump(record))
        return record

    def delete_category(self, name: str) -> bool:
        with self._document(write=True) as data:
            remaining = [row for row in data["categories"] if row["name"] != name]
            removed = len(remaining) != len(data["categories"])
            data["categories"] = remaining
        return removed
