"""Relational storage implementation backed by Flask-SQLAlchemy."""

from __future__ import annotations

import functools
import logging
import uuid
from typing import Optional

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from models import AppEntry, Category, RevokedToken, User, db
from models.records import AppRecord, CategoryRecord, UserRecord, utcnow

from .abstract_storage import (
    DuplicateRecordError,
    PortalStorage,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

APP_FIELDS = ("name", "url", "description", "image_url", "category")


def _guarded(method):
    """Translate driver errors into storage errors and roll back the session."""

    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateRecordError(str(exc.orig)) from exc
        except (OperationalError, InterfaceError) as exc:
            try:
                db.session.rollback()
            except (OperationalError, InterfaceError):
                pass
            logger.error("Database unreachable during %s: %s", method.__name__, exc.orig)
            raise StorageUnavailableError("The database is unreachable.") from exc

    return wrapper


class SQLStorage(PortalStorage):
    """Persist users, apps and categories through the request-scoped session.

    The session (and its pooled connection) is released by Flask-SQLAlchemy
    when the application context tears down.
    """

    def __init__(self, bcrypt_rounds: int = 10):
        self.bcrypt_rounds = bcrypt_rounds

    # -- lifecycle ---------------------------------------------------------

    @_guarded
    def initialize(self) -> None:
        db.session.execute(text("SELECT 1"))
        db.session.commit()
        db.create_all()

    @_guarded
    def ping(self) -> None:
        db.session.execute(text("SELECT 1"))

    # -- users -------------------------------------------------------------

    @_guarded
    def find_by_email(self, email: str) -> Optional[UserRecord]:
        normalized = (email or "").strip().lower()
        user = User.query.filter(func.lower(User.email) == normalized).first()
        return user.to_record() if user else None

    @_guarded
    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        user = db.session.get(User, user_id)
        return user.to_record() if user else None

    @_guarded
    def create_user(self, record: UserRecord) -> UserRecord:
        user = User.from_record(record)
        db.session.add(user)
        db.session.commit()
        return user.to_record()

    @_guarded
    def write_password_hash(self, user_id: str, password_hash: str) -> bool:
        user = db.session.get(User, user_id)
        if user is None:
            return False
        user.password_hash = password_hash
        db.session.commit()
        return True

    @_guarded
    def redeem_verification_token(self, token: str) -> Optional[UserRecord]:
        if not token:
            return None
        user = User.query.filter_by(verification_token=token).first()
        if user is None:
            return None

        # Conditional on the token so a concurrent redemption loses.
        result = db.session.execute(
            db.update(User)
            .where(User.id == user.id, User.verification_token == token)
            .values(is_verified=True, verification_token=None)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        if result.rowcount != 1:
            return None
        db.session.refresh(user)
        return user.to_record()

    @_guarded
    def set_status(self, user_id: str, status: str) -> bool:
        user = db.session.get(User, user_id)
        if user is None:
            return False
        user.status = status
        db.session.commit()
        return True

    @_guarded
    def delete_user(self, user_id: str) -> bool:
        user = db.session.get(User, user_id)
        if user is None:
            return False
        db.session.delete(user)
        db.session.commit()
        return True

    @_guarded
    def list_users(self) -> list[UserRecord]:
        users = User.query.order_by(User.created_at.desc()).all()
        return [user.to_record() for user in users]

    @_guarded
    def ensure_root_admin(self, email: str, name: str, password: str) -> UserRecord:
        normalized = email.strip().lower()
        admin = User.query.filter(func.lower(User.email) == normalized).first()
        if admin is None:
            admin = User(
                id=str(uuid.uuid4()),
                name=name,
                email=normalized,
                password_hash=self.hash_password(password),
                created_at=utcnow(),
            )
            db.session.add(admin)
            logger.info("Seeded root admin %s", normalized)
        admin.role = "admin"
        admin.status = "approved"
        admin.mark_verified()
        db.session.commit()
        return admin.to_record()

    @_guarded
    def revoke_token(self, jti: str) -> None:
        if db.session.get(RevokedToken, jti) is None:
            db.session.add(RevokedToken(jti=jti))
            db.session.commit()

    @_guarded
    def is_token_revoked(self, jti: str) -> bool:
        return db.session.get(RevokedToken, jti) is not None

    # -- apps --------------------------------------------------------------

    @_guarded
    def list_apps(self) -> list[AppRecord]:
        apps = AppEntry.query.order_by(AppEntry.created_at.desc()).all()
        return [app.to_record() for app in apps]

    @_guarded
    def find_app(self, app_id: str) -> Optional[AppRecord]:
        app = db.session.get(AppEntry, app_id)
        return app.to_record() if app else None

    @_guarded
    def create_app(self, record: AppRecord) -> AppRecord:
        app = AppEntry(
            id=record.id,
            name=record.name,
            url=record.url,
            description=record.description,
            image_url=record.image_url,
            category=record.category,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        db.session.add(app)
        db.session.commit()
        return app.to_record()

    @_guarded
    def update_app(self, app_id: str, **changes) -> Optional[AppRecord]:
        app = db.session.get(AppEntry, app_id)
        if app is None:
            return None
        for key, value in changes.items():
            if key in APP_FIELDS:
                setattr(app, key, value)
        app.updated_at = utcnow()
        db.session.commit()
        return app.to_record()

    @_guarded
    def delete_app(self, app_id: str) -> bool:
        app = db.session.get(AppEntry, app_id)
        if app is None:
            return False
        db.session.delete(app)
        db.session.commit()
        return True

    @_guarded
    def count_apps(self) -> int:
        return db.session.query(func.count(AppEntry.id)).scalar() or 0

    # -- categories --------------------------------------------------------

    @_guarded
    def list_categories(self) -> list[CategoryRecord]:
        categories = Category.query.order_by(Category.name.asc()).all()
        return [category.to_record() for category in categories]

    @_guarded
    def create_category(self, name: str) -> CategoryRecord:
        category = Category(id=str(uuid.uuid4()), name=name, created_at=utcnow())
        db.session.add(category)
        db.session.commit()
        return category.to_record()

    @_guarded
    def delete_category(self, name: str) -> bool:
        category = Category.query.filter_by(name=name).first()
        if category is None:
            return False
        db.session.delete(category)
        db.session.commit()
        return True
