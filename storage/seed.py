"""Initial data written when the portal boots."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from models.records import AppRecord, utcnow

from .abstract_storage import PortalStorage

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ("Work", "Social", "Development", "Media", "Other")

DEFAULT_APPS = (
    {
        "name": "GitHub",
        "url": "https://github.com",
        "description": "Where the world builds software.",
        "category": "Development",
        "image_url": "https://picsum.photos/seed/github/400/200",
    },
    {
        "name": "YouTube",
        "url": "https://youtube.com",
        "description": "Enjoy the videos and music you love.",
        "category": "Media",
        "image_url": "https://picsum.photos/seed/youtube/400/200",
    },
    {
        "name": "Gmail",
        "url": "https://mail.google.com",
        "description": "Secure, smart, and easy to use email.",
        "category": "Work",
        "image_url": "https://picsum.photos/seed/gmail/400/200",
    },
)


def bootstrap_storage(storage: PortalStorage, config) -> None:
    """Prepare the backend and seed the root admin, categories and demo apps.

    Raises ``StorageUnavailableError`` if the backend cannot be reached, which
    aborts application startup.
    """

    storage.initialize()
    storage.ensure_root_admin(
        config["ROOT_ADMIN_EMAIL"],
        config["ROOT_ADMIN_NAME"],
        config["ROOT_ADMIN_PASSWORD"],
    )
    storage.ensure_categories(DEFAULT_CATEGORIES)

    if storage.count_apps() == 0:
        seeded_at = utcnow()
        for offset, app in enumerate(DEFAULT_APPS):
            created_at = seeded_at - timedelta(seconds=offset)
            storage.create_app(
                AppRecord(
                    id=str(uuid.uuid4()),
                    created_at=created_at,
                    updated_at=created_at,
                    **app,
                )
            )
        logger.info("Seeded %d default apps", len(DEFAULT_APPS))
