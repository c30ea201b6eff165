"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from quiz_backend.adapters.supabase_result_repository import SupabaseResultRepository
from quiz_backend.config import Settings, parse_batch_definitions
from quiz_backend.services.admission import AdmissionController, NameScope
from quiz_backend.services.batches import BatchCatalog
from quiz_backend.services.clock import Clock, SystemClock
from quiz_backend.services.results import LeaderboardService
from quiz_backend.services.sessions import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    clock: Clock
    batch_catalog: BatchCatalog
    session_store: SessionStore
    admission_controller: AdmissionController
    leaderboard_service: LeaderboardService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    result_repository = SupabaseResultRepository(supabase_client)
    clock = SystemClock.for_timezone(resolved_settings.quiz_timezone)
    batch_catalog = BatchCatalog.from_definitions(
        parse_batch_definitions(resolved_settings.quiz_batches), clock.timezone
    )
    session_store = InMemorySessionStore()
    admission_controller = AdmissionController(
        catalog=batch_catalog,
        session_store=session_store,
        result_repository=result_repository,
        clock=clock,
        name_scope=NameScope(resolved_settings.name_scope),
        session_grace_minutes=resolved_settings.session_grace_minutes,
    )
    leaderboard_service = LeaderboardService(
        repository=result_repository,
        default_limit=resolved_settings.leaderboard_limit,
    )

    async def close_resources() -> None:
        unfinished = len(session_store.list_sessions())
        if unfinished:
            logger.warning("Dropping %d unfinished sessions on shutdown", unfinished)

    return AppContainer(
        settings=resolved_settings,
        clock=clock,
        batch_catalog=batch_catalog,
        session_store=session_store,
        admission_controller=admission_controller,
        leaderboard_service=leaderboard_service,
        close_resources=close_resources,
    )
