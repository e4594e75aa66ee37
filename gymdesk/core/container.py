"""Dependency Injection Container for gymdesk."""
from dependency_injector import containers, providers

from gymdesk.core.settings import StoreSettings
from gymdesk.repositories import AppSettingsRepository, ApplicationRepository, MemberRepository
from gymdesk.services.diagnostics import TableDiagnostics
from gymdesk.services.monitoring import ConnectionMonitor


class ApplicationContainer(containers.DeclarativeContainer):
    """DI Container for application-wide dependencies."""

    # ═══════════════════════════════════════════════════════════
    # SINGLETONS - Process-lifetime configuration and monitor
    # ═══════════════════════════════════════════════════════════

    settings = providers.Singleton(StoreSettings.from_env)

    connection_monitor = providers.Singleton(
        ConnectionMonitor.from_settings,
        settings=settings,
    )

    # ═══════════════════════════════════════════════════════════
    # FACTORIES - Bound to whatever client the monitor holds now
    # ═══════════════════════════════════════════════════════════

    store_gateway = connection_monitor.provided.gateway

    member_repository = providers.Factory(
        MemberRepository,
        gateway=store_gateway,
    )

    app_settings_repository = providers.Factory(
        AppSettingsRepository,
        gateway=store_gateway,
    )

    application_repository = providers.Factory(
        ApplicationRepository,
        gateway=store_gateway,
        members=member_repository,
    )

    table_diagnostics = providers.Factory(
        TableDiagnostics,
        gateway=store_gateway,
    )


def bootstrap(container: ApplicationContainer) -> ConnectionMonitor:
    """Build the store client from settings. Offline configuration is not an error."""
    settings = container.settings()
    monitor = container.connection_monitor()
    monitor.initialize(settings.url, settings.key)
    return monitor
