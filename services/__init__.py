"""Service layer wiring."""

from __future__ import annotations

from dataclasses import dataclass

from storage import PortalStorage

from .accounts import AccountService
from .authorization import AuthorizationGate
from .catalog import CatalogService
from .mailer import Mailer
from .recovery import PasswordRecovery
from .sessions import SessionManager


@dataclass
class Portal:
    """Everything a request handler needs, built once per application."""

    storage: PortalStorage
    mailer: Mailer
    gate: AuthorizationGate
    accounts: AccountService
    recovery: PasswordRecovery
    sessions: SessionManager
    catalog: CatalogService


def build_portal(storage: PortalStorage, config) -> Portal:
    mailer = Mailer(config)
    gate = AuthorizationGate(storage, config["ROOT_ADMIN_EMAIL"])
    return Portal(
        storage=storage,
        mailer=mailer,
        gate=gate,
        accounts=AccountService(storage, gate, mailer, config["API_PUBLIC_URL"]),
        recovery=PasswordRecovery(
            storage,
            gate,
            mailer,
            expose_temp_password=bool(config.get("EXPOSE_TEMP_PASSWORD")),
        ),
        sessions=SessionManager(storage),
        catalog=CatalogService(storage, gate),
    )


__all__ = ["Portal", "build_portal"]
