"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from pathlib import Path

from fastapi import Request
from psycopg_pool import ConnectionPool

from src.adapters.assets.local import LocalAssetStore
from src.adapters.notify.console import ConsoleViewNotifier
from src.adapters.repository.postgres import PostgresSubscriberRepository
from src.config.settings import get_settings
from src.domain.acceptance import AcceptanceService
from src.domain.eligibility import EligibilityGate
from src.domain.events import EventService
from src.domain.export import ExportService
from src.domain.registration import RegistrationService
from src.domain.requirements import RequirementService

# Module-level singleton - ConsoleViewNotifier is stateless
_notifier = ConsoleViewNotifier(get_settings().locales)


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresSubscriberRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresSubscriberRepository(pool)


def get_asset_store() -> LocalAssetStore:
    settings = get_settings()
    return LocalAssetStore(
        root=Path(settings.asset_root),
        base_url=settings.asset_base_url,
        base_folder=settings.asset_base_folder,
    )


def get_notifier() -> ConsoleViewNotifier:
    """Get console view notifier (singleton)."""
    return _notifier


def get_eligibility_gate(request: Request) -> EligibilityGate:
    return EligibilityGate(repository=get_repository(request))


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the repository, asset store and notifier.
    """
    settings = get_settings()
    return RegistrationService(
        repository=get_repository(request),
        asset_store=get_asset_store(),
        notifier=get_notifier(),
        id_image_folder=settings.id_image_folder,
        personal_image_folder=settings.personal_image_folder,
        upload_timeout=settings.upload_timeout_seconds,
        max_image_bytes=settings.max_image_bytes,
    )


def get_event_service(request: Request) -> EventService:
    return EventService(repository=get_repository(request), notifier=get_notifier())


def get_acceptance_service(request: Request) -> AcceptanceService:
    return AcceptanceService(repository=get_repository(request), notifier=get_notifier())


def get_requirement_service(request: Request) -> RequirementService:
    return RequirementService(repository=get_repository(request), notifier=get_notifier())


def get_export_service(request: Request) -> ExportService:
    return ExportService(repository=get_repository(request))
