"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header

from lessonbook.cache import TableCache, TableReader
from lessonbook.clock import Clock, IdGenerator, SystemClock, UuidGenerator
from lessonbook.config import Settings
from lessonbook.data_store import DataStore, SqlDataStore
from lessonbook.directory import StoreDirectory
from lessonbook.registrations import AuditTrail, RegistrationLifecycleManager
from lessonbook.trimesters import TrimesterRouter

ADMIN_ROLE = "admin"


@dataclass
class Services:
    """Wired components of the registration service."""

    settings: Settings
    store: DataStore
    cache: TableCache
    reader: TableReader
    router: TrimesterRouter
    audit: AuditTrail
    manager: RegistrationLifecycleManager


def build_services(
    settings: Settings,
    store: DataStore | None = None,
    clock: Clock | None = None,
    id_generator: IdGenerator | None = None,
) -> Services:
    """Wire the registration core on top of a store."""
    store = store if store is not None else SqlDataStore(settings.db_path)
    clock = clock or SystemClock()
    id_generator = id_generator or UuidGenerator()

    cache = TableCache(ttl_seconds=settings.cache_ttl_seconds)
    reader = TableReader(store, cache)
    router = TrimesterRouter(reader, clock)
    directory = StoreDirectory(reader)
    audit = AuditTrail(store, reader, clock, id_generator)
    manager = RegistrationLifecycleManager(
        store=store,
        reader=reader,
        router=router,
        directory=directory,
        catalog=directory,
        audit=audit,
        clock=clock,
        id_generator=id_generator,
        settings=settings,
    )
    return Services(
        settings=settings,
        store=store,
        cache=cache,
        reader=reader,
        router=router,
        audit=audit,
        manager=manager,
    )


# Global Services instance (initialized on app startup)
_services: Services | None = None


def init_services(settings: Settings, store: DataStore | None = None) -> Services:
    """Initialize the global Services instance."""
    global _services  # noqa: PLW0603
    _services = build_services(settings, store=store)
    return _services


def close_services() -> None:
    """Close the global Services instance."""
    global _services  # noqa: PLW0603
    if _services is not None:
        close = getattr(_services.store, "close", None)
        if close is not None:
            close()
        _services = None


def get_services() -> Generator[Services, None, None]:
    """Dependency that provides the Services instance."""
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    yield _services


def get_manager(
    services: Annotated[Services, Depends(get_services)],
) -> RegistrationLifecycleManager:
    return services.manager


def get_router(services: Annotated[Services, Depends(get_services)]) -> TrimesterRouter:
    return services.router


def get_audit(services: Annotated[Services, Depends(get_services)]) -> AuditTrail:
    return services.audit


# Type aliases for dependency injection
ManagerDep = Annotated[RegistrationLifecycleManager, Depends(get_manager)]
RouterDep = Annotated[TrimesterRouter, Depends(get_router)]
AuditDep = Annotated[AuditTrail, Depends(get_audit)]


@dataclass
class Identity:
    """Caller identity forwarded by the authenticating proxy."""

    user_id: str
    role: str | None = None

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == ADMIN_ROLE


def get_identity(
    x_user_id: Annotated[str, Header(min_length=1)],
    x_user_role: Annotated[str | None, Header()] = None,
) -> Identity:
    """Dependency that reads the caller identity from request headers."""
    return Identity(user_id=x_user_id, role=x_user_role)


IdentityDep = Annotated[Identity, Depends(get_identity)]
