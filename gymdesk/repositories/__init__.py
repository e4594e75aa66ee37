"""Store Repositories Package - Thin wrappers over the StoreGateway."""
from gymdesk.repositories.app_settings_repository import AppSettingsRepository
from gymdesk.repositories.application_repository import ApplicationRepository
from gymdesk.repositories.member_repository import MemberRepository

__all__ = [
    "AppSettingsRepository",
    "ApplicationRepository",
    "MemberRepository",
]
