"""Storage drivers and the registry that names them."""

import logging
from threading import RLock
from typing import Dict, Union

from ..exceptions import ConfigurationError
from .base import BaseDriver, RawPage, Record
from .memory import MemoryDriver


logger = logging.getLogger(__name__)


class DriverRegistry:
    """Named driver instances shared by models.

    Drivers are registered once at startup and looked up afterwards.
    """

    def __init__(self) -> None:
        self._drivers: Dict[str, BaseDriver] = {}
        self._lock = RLock()

    def register(self, name: str, driver: BaseDriver) -> None:
        with self._lock:
            if name in self._drivers and self._drivers[name] is not driver:
                logger.warning("Replacing registered driver instance %s", name)
            self._drivers[name] = driver

    def instance(self, name: str) -> BaseDriver:
        """Return the driver registered as ``name``.

        Raises:
            ConfigurationError: If no driver has that name.
        """
        with self._lock:
            try:
                return self._drivers[name]
            except KeyError:
                raise ConfigurationError("Unknown driver instance {0}".format(name)) from None

    def unregister(self, name: str) -> None:
        with self._lock:
            self._drivers.pop(name, None)

    def names(self):
        with self._lock:
            return sorted(self._drivers)

    def __contains__(self, name: Union[str, object]) -> bool:
        with self._lock:
            return name in self._drivers


default_registry = DriverRegistry()


def register(name: str, driver: BaseDriver) -> None:
    """Register ``driver`` in the process-wide registry."""
    default_registry.register(name, driver)


def instance(name: str) -> BaseDriver:
    """Look up ``name`` in the process-wide registry."""
    return default_registry.instance(name)


__all__ = [
    "BaseDriver",
    "DriverRegistry",
    "MemoryDriver",
    "RawPage",
    "Record",
    "default_registry",
    "instance",
    "register",
]
