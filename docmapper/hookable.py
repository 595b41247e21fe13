"""Named lifecycle hooks with sequential, short-circuiting execution."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Tuple

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)

HookCallback = Callable[["HookArgs"], Any]


class HookArgs:
    """Shared argument bag passed to every hook of one operation.

    A ``will_*`` hook may set ``stop`` to skip the core action of the cycle.
    """

    def __init__(self, **fields: Any) -> None:
        self.stop = False
        self.__dict__.update(fields)

    def __repr__(self) -> str:
        fields = ", ".join("{0}={1!r}".format(key, value) for key, value in self.__dict__.items())
        return "HookArgs({0})".format(fields)


class HookRegistry:
    """Ordered hook callables keyed by a fixed set of hook names."""

    def __init__(self, names: Iterable[str]) -> None:
        self._names: Tuple[str, ...] = tuple(names)
        self._hooks: Dict[str, List[HookCallback]] = {}

    @property
    def names(self) -> Tuple[str, ...]:
        """Return the recognized hook names."""
        return self._names

    def _check(self, name: str) -> None:
        if name not in self._names:
            raise ConfigurationError("Hook {0} not recognized".format(name))

    def register(self, name: str, callback: HookCallback) -> HookCallback:
        """Append a callback to the hook called ``name``."""
        self._check(name)
        self._hooks.setdefault(name, []).append(callback)
        return callback

    def unregister(self, name: str, callback: HookCallback) -> None:
        """Remove a previously registered callback; unknown callbacks are ignored."""
        self._check(name)
        callbacks = self._hooks.get(name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def registered(self, name: str) -> List[HookCallback]:
        """Return a copy of the callbacks registered for ``name``."""
        self._check(name)
        return list(self._hooks.get(name, []))

    def call(self, name: str, args: HookArgs) -> None:
        """Run every callback for ``name`` in registration order.

        The first exception raised by a callback propagates unchanged and the
        remaining callbacks are skipped.
        """
        self._check(name)
        for callback in list(self._hooks.get(name, [])):
            callback(args)

    def perform_cycle(self, base_name: str, args: HookArgs, action: Callable[[], Any]) -> None:
        """Run ``will_<base_name>``, the action, then ``did_<base_name>``.

        The action is skipped when a ``will`` hook sets ``args.stop``.
        """
        self.call("will_" + base_name, args)
        if args.stop:
            logger.debug("Hook cycle %s stopped before core action", base_name)
        else:
            action()
        self.call("did_" + base_name, args)
