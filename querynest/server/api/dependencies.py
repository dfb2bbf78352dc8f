"""
Dependency injection for API routes.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..service_container import ServiceContainer


# Global container instance - set during app startup
_container_instance: Optional["ServiceContainer"] = None


def set_container(container: "ServiceContainer") -> None:
    """Set the global service container."""
    global _container_instance
    _container_instance = container


def get_container() -> "ServiceContainer":
    """
    Get the current service container.

    Raises:
        RuntimeError: If the container has not been set
    """
    if _container_instance is None:
        raise RuntimeError("Service container not initialized")
    return _container_instance
