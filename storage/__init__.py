"""Storage backends."""

from .abstract_storage import (
    CredentialStore,
    DuplicateRecordError,
    PortalStorage,
    RecordStore,
    StorageError,
    StorageUnavailableError,
)
from .local_storage import LocalStorage
from .sql_storage import SQLStorage

BACKENDS = {"sql": SQLStorage, "local": LocalStorage}


def build_storage(config) -> PortalStorage:
    """Instantiate the backend named by ``STORAGE_BACKEND``."""

    backend = (config.get("STORAGE_BACKEND") or "sql").lower()
    rounds = int(config.get("BCRYPT_ROUNDS", 10))
    if backend == "sql":
        return SQLStorage(bcrypt_rounds=rounds)
    if backend == "local":
        return LocalStorage(config.get("LOCAL_STORE_PATH"), bcrypt_rounds=rounds)
    raise ValueError(
        f"Unknown STORAGE_BACKEND {backend!r}; expected one of: {', '.join(BACKENDS)}."
    )


__all__ = [
    "BACKENDS",
    "CredentialStore",
    "DuplicateRecordError",
    "LocalStorage",
    "PortalStorage",
    "RecordStore",
    "SQLStorage",
    "StorageError",
    "StorageUnavailableError",
    "build_storage",
]
