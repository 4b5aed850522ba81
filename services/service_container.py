"""
Service Container

Central registry for all bot services providing dependency injection and service lifecycle management.
"""

from typing import TYPE_CHECKING, Any, Optional

from utils.logging import get_logger

from .base import BaseService
from .config_service import CONFIG_DB_PATH, ConfigService
from .vac_gateway import DiscordVacGateway, VacGateway
from .vac_registry import VacRegistry
from .vac_service import VacService

if TYPE_CHECKING:
    from discord.ext.commands import Bot


class ServiceContainer:
    """
    Central container for managing all bot services.

    Provides a centralized access point for services throughout the bot,
    handles initialization order, and manages service dependencies.
    """

    def __init__(
        self,
        bot: Optional["Bot"] = None,
        *,
        gateway: VacGateway | None = None,
    ) -> None:
        self.logger = get_logger("services.container")
        self.bot = bot
        self._gateway_override = gateway
        self._config: ConfigService | None = None
        self._registry: VacRegistry | None = None
        self._gateway: VacGateway | None = None
        self._vac: VacService | None = None
        self._initialized = False

    @property
    def config(self) -> ConfigService:
        """Get the configuration service."""
        if self._config is None:
            raise RuntimeError("ConfigService not initialized")
        return self._config

    @property
    def registry(self) -> VacRegistry:
        """Get the VAC registry."""
        if self._registry is None:
            raise RuntimeError("VacRegistry not initialized")
        return self._registry

    @property
    def gateway(self) -> VacGateway:
        """Get the channel gateway."""
        if self._gateway is None:
            raise RuntimeError("VacGateway not initialized")
        return self._gateway

    @property
    def vac(self) -> VacService:
        """Get the VAC service."""
        if self._vac is None:
            raise RuntimeError("VacService not initialized")
        return self._vac

    def get_all_services(self) -> list[BaseService]:
        """Get all initialized services for health monitoring."""
        return [s for s in (self._config, self._registry, self._vac) if s is not None]

    async def initialize(self) -> None:
        """Initialize all services in dependency order."""
        if self._initialized:
            self.logger.warning("ServiceContainer already initialized")
            return

        try:
            self.logger.info("Initializing services")

            # Config first (no dependencies)
            self._config = ConfigService()
            await self._config.initialize()
            self.logger.debug("ConfigService initialized")

            # Registry (depends on config for the database path)
            db_path = await self._config.get_global_setting(CONFIG_DB_PATH)
            self._registry = VacRegistry(db_path)
            await self._registry.initialize()
            self.logger.debug("VacRegistry initialized")

            # Gateway (depends on bot)
            if self._gateway_override is not None:
                self._gateway = self._gateway_override
            else:
                if not self.bot:
                    raise RuntimeError("Bot instance required for DiscordVacGateway")
                self._gateway = DiscordVacGateway(
                    self.bot, locale=await self._config.get_locale()
                )

            # VAC service (depends on config, registry and gateway)
            self._vac = VacService(self._config, self._registry, self._gateway)
            await self._vac.initialize()
            self.logger.debug("VacService initialized")

            self._initialized = True
            self.logger.info("All services initialized successfully")

        except Exception as e:
            self.logger.exception("Failed to initialize services", exc_info=e)
            raise

    async def health_check(self) -> dict[str, Any]:
        """Collect health information from every initialized service."""
        return {
            service.name: await service.health_check()
            for service in self.get_all_services()
        }

    async def cleanup(self) -> None:
        """Clean up all services in reverse dependency order."""
        if not self._initialized:
            return

        self.logger.info("Cleaning up services")

        if self._vac:
            await self._vac.shutdown()
            self._vac = None

        self._gateway = None

        if self._registry:
            await self._registry.shutdown()
            self._registry = None

        if self._config:
            await self._config.shutdown()
            self._config = None

        self._initialized = False
        self.logger.info("Services cleaned up")
