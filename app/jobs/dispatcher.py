"""Job dispatcher interface."""

from abc import ABC, abstractmethod


class JobDispatcher(ABC):
    """Moves queued video jobs through remote synthesis, one slot at a time."""

    @property
    @abstractmethod
    def running(self) -> bool:
        """Whether the background loop is active (reported by /health)."""
        ...

    @abstractmethod
    async def submit(self, job_id: int) -> int:
        """Mark a job ``waiting``. Raises JobAlreadyPending for a running job."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the periodic polling task."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Cancel the polling task and wait for it to exit."""
        ...
