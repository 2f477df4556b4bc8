from abc import ABC, abstractmethod

from voltbuild.common.logging import get_logger


class BaseIntegration(ABC):
    """Base class for outbound service clients.

    Gives each client a named logger and a ``health_check`` the app can call
    on demand.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"integrations.{name}")

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the service answers."""
        ...
