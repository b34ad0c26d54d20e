"""Base manager class for Stylus Bundler."""

import logging
from typing import Dict, Any
from abc import ABC, abstractmethod


class BaseManager(ABC):
    """Base class for resources owned by a single compile.

    Managers are context managers; leaving the ``with`` block releases
    whatever the manager holds so nothing outlives the compile.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get usage statistics for the current compile."""

    def log_debug(self, message: str) -> None:
        self.logger.debug(message)

    def cleanup(self) -> None:
        """Release everything held for the current compile."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        stats = self.get_stats()
        self.log_debug(f"Released after compile: {stats}")


# Exported class
__all__ = ['BaseManager']
