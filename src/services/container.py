"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
import logging

from src.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    The data store and clock are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # JsonDataStore instance
    clock: Callable[[], datetime] = utc_now

    # Services (lazy-loaded via properties)
    _user_service: Optional[object] = field(default=None, init=False, repr=False)
    _task_service: Optional[object] = field(default=None, init=False, repr=False)
    _rpg_service: Optional[object] = field(default=None, init=False, repr=False)
    _campaign_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def user_service(self):
        """Get UserService instance (lazy-loaded)"""
        if self._user_service is None:
            from src.services.user_service import UserService
            self._user_service = UserService(self.store)
            logger.debug("UserService instantiated")
        return self._user_service

    @property
    def task_service(self):
        """Get TaskService instance (lazy-loaded)"""
        if self._task_service is None:
            from src.services.task_service import TaskService
            self._task_service = TaskService(self.store, clock=self.clock)
            logger.debug("TaskService instantiated")
        return self._task_service

    @property
    def rpg_service(self):
        """Get RpgService instance (lazy-loaded)"""
        if self._rpg_service is None:
            from src.services.rpg_service import RpgService
            self._rpg_service = RpgService(self.store, clock=self.clock)
            logger.debug("RpgService instantiated")
        return self._rpg_service

    @property
    def campaign_service(self):
        """Get CampaignService instance (lazy-loaded)"""
        if self._campaign_service is None:
            from src.services.campaign_service import CampaignService
            self._campaign_service = CampaignService(self.store, clock=self.clock)
            logger.debug("CampaignService instantiated")
        return self._campaign_service


# Global container instance (initialized by the API server)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(store: object, clock: Callable[[], datetime] = utc_now) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: JsonDataStore instance
        clock: Source of the current instant

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(store=store, clock=clock)

    logger.info("Service container initialized")
    return _container
