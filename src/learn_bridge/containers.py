"""Dependency container wiring for the bridge."""

from dataclasses import dataclass

from learn_bridge.adapters.learn_client import (
    HttpxLearnClient,
    LearnClient,
    LearnClientFactory,
)
from learn_bridge.config import Settings, normalize_host
from learn_bridge.services.data_sources import DataSourceCache
from learn_bridge.services.sessions import SessionManager


@dataclass
class AppContainer:
    """Holds the dependencies of one bridge invocation."""

    settings: Settings
    session_manager: SessionManager
    data_sources: DataSourceCache


def learn_client_factory(settings: Settings) -> LearnClientFactory:
    """Return a factory that opens an httpx-backed client for a host."""

    def create(host: str) -> LearnClient:
        return HttpxLearnClient.create(
            normalize_host(host),
            vendor_id=settings.vendor_id,
            program_id=settings.program_id,
            services_path=settings.services_path,
            timeout=settings.request_timeout_seconds,
            verify=settings.verify_tls,
        )

    return create


def build_container(
    settings: Settings | None = None,
    client_factory: LearnClientFactory | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    session_manager = SessionManager(
        client_factory=client_factory or learn_client_factory(resolved_settings),
        session_lifetime_seconds=resolved_settings.session_lifetime_seconds,
        emulate_user=resolved_settings.emulate_user or None,
    )
    return AppContainer(
        settings=resolved_settings,
        session_manager=session_manager,
        data_sources=DataSourceCache(session_manager),
    )
