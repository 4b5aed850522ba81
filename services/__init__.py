"""
Services package for the voice auto creation bot.

This package contains the service classes that hold the bot's business logic
and data access. The VAC service depends only on the registry and the gateway
contract, never on discord.py objects directly.
"""

from .base import BaseService
from .config_service import ConfigService
from .service_container import ServiceContainer
from .vac_gateway import DiscordVacGateway, VacGateway
from .vac_registry import VacRegistry
from .vac_service import VacService

__all__ = [
    "BaseService",
    "ConfigService",
    "DiscordVacGateway",
    "ServiceContainer",
    "VacGateway",
    "VacRegistry",
    "VacService",
]
