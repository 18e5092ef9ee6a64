from abc import ABC, abstractmethod


class LivenessStore(ABC):
    """
    Abstract base class for the shared store holding the worker's freshness token.
    """

    @abstractmethod
    async def is_alive(self) -> bool:
        """
        Check whether the freshness token is present.

        Returns:
            bool: True if the worker loop refreshed the token within its TTL.
        """

    @abstractmethod
    async def store_alive(self, ttl: int):
        """
        Write the freshness token so that it expires after ``ttl`` seconds.

        Args:
            ttl (int): Time to live of the token in seconds.
        """

    async def close(self):
        """
        Release any connection held by the store.
        """
