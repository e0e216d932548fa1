"""
FDC3 Bus Callback Registry
==========================

Local registry of listener callbacks, keyed by channel
("add-intent", "add-context").

Dispatch iterates over a snapshot taken when execute() starts, so a
callback may add or remove registrations while it runs.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

ADD_INTENT = "add-intent"
ADD_CONTEXT = "add-context"


class _Registration:
    """Wraps a callback so the same function can be registered twice."""
    __slots__ = ("callback",)

    def __init__(self, callback: Callable[..., Any]):
        self.callback = callback


class CallbackRegistry:
    """
    Channel -> callbacks mapping owned by one routing engine.

    All access happens on the event loop thread, so no lock is needed.
    """

    def __init__(self):
        self._channels: Dict[str, List[_Registration]] = {}

    def add(self, channel: str, callback: Callable[..., Any]) -> Callable[[], None]:
        """
        Register a callback on a channel.

        Returns:
            A function removing exactly this registration. Calling it more
            than once has no further effect.
        """
        registration = _Registration(callback)
        self._channels.setdefault(channel, []).append(registration)
        logger.debug(f"Added callback on channel {channel}", extra={"channel": channel})

        def remove() -> None:
            registrations = self._channels.get(channel, [])
            if registration in registrations:
                registrations.remove(registration)
                logger.debug(f"Removed callback from channel {channel}", extra={"channel": channel})
            if not registrations:
                self._channels.pop(channel, None)

        return remove

    def execute(self, channel: str, *args: Any) -> List[Any]:
        """
        Call every callback on a channel with the given arguments.

        A callback that raises is logged and skipped.

        Returns:
            The callbacks' return values, in registration order.
        """
        results = []
        for registration in list(self._channels.get(channel, [])):
            try:
                results.append(registration.callback(*args))
            except Exception:
                logger.exception(
                    f"Callback on channel {channel} raised",
                    extra={"channel": channel},
                )
        return results

    def count(self, channel: str) -> int:
        return len(self._channels.get(channel, []))
