"""Base interface for system health collectors."""

from __future__ import annotations

import abc
import logging
from typing import Any

logger = logging.getLogger(__name__)


class BaseCollector(abc.ABC):
    """Abstract base class for metric collectors.

    A collector reads one source and returns one typed result. Unavailable
    or malformed sources produce :meth:`empty` rather than an exception.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Collector name, also the snapshot key it fills."""

    @abc.abstractmethod
    def collect(self) -> Any:
        """Collect the current value from the source."""

    @abc.abstractmethod
    def empty(self) -> Any:
        """Value reported when the source is unavailable."""

    def collect_safe(self) -> Any:
        """Run :meth:`collect`, substituting :meth:`empty` for any escaped error."""
        try:
            return self.collect()
        except Exception:
            logger.exception("Collector %s failed", self.name)
            return self.empty()


class ListCollector(BaseCollector):
    """Collector whose result is a sequence of entries."""

    def empty(self) -> tuple:
        return ()
