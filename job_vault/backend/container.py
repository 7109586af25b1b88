"""
Owned construction and teardown of the gateway and both stores.

    async with AppContainer() as container:
        await container.auth_store.sign_in_with_password(email, password)
        await container.application_store.fetch_applications()
"""
import logging
from typing import Optional

from .config.settings import Settings, get_settings
from .gateway.base import DataGateway
from .gateway.local import LocalGateway
from .services.application_store import ApplicationStore
from .services.auth_store import AuthStore

logger = logging.getLogger(__name__)


class AppContainer:

    def __init__(self, settings: Optional[Settings] = None, gateway: Optional[DataGateway] = None):
        self.settings = settings or get_settings()
        self.gateway = gateway or LocalGateway(self.settings)
        self.auth_store = AuthStore(self.gateway)
        self.application_store = ApplicationStore(self.gateway, auth_store=self.auth_store, settings=self.settings)
        logger.debug("Stores initialized")

    async def close(self) -> None:
        self.application_store.close()
        self.auth_store.close()
        await self.gateway.close()
        logger.debug("Stores torn down")

    async def __aenter__(self) -> "AppContainer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
