"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from minio_bootstrap.models import BootstrapResult, StepResult


class Reporter(ABC):
    """Abstract base class for bootstrap progress reporters."""

    @abstractmethod
    def on_step_start(self, step_name: str) -> None:
        """Called when a provisioning step starts."""
        pass

    @abstractmethod
    def on_step_complete(self, result: "StepResult") -> None:
        """Called when a provisioning step completes or fails."""
        pass

    @abstractmethod
    def on_run_complete(self, result: "BootstrapResult") -> None:
        """Called once the run has finished or stopped."""
        pass
