"""
FDC3 Bus Platform Interfaces
============================

Defines the capability contract every interop platform must satisfy.
The routing engine never talks to a transport directly; it only consumes
these interfaces, so any platform (Glue42, OpenFin, an in-process
loopback, ...) can be plugged in by implementing them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..models import Method, PeerDescriptor


class ConnectionStatus(Enum):
    """Standard connection states across all platforms."""
    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: Any) -> "ConnectionStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


# on_invoke(args, caller) -> result, sync or async
InvokeHandler = Callable[[Any, Optional[PeerDescriptor]], Any]
MethodRegisteredCallback = Callable[[Method], None]


@dataclass
class MethodImplementation:
    """A locally implemented method exposed to a platform."""
    name: str
    on_invoke: InvokeHandler


class InteropPeer(ABC):
    """
    A live session with one interop platform.

    Produced by InteropPlatform.connect. All remote calls may raise;
    the engine decides per operation whether a failure is fatal.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @property
    @abstractmethod
    def connection_status(self) -> Any:
        ...

    @abstractmethod
    async def invoke(self, method: Union[str, Method], args: Any = None) -> Any:
        """
        Invoke a remote method.

        Returns:
            The invocation payload; its `result` field (key or attribute)
            carries the method's return value.
        """
        ...

    @abstractmethod
    async def discover_methods(self) -> List[Union[Method, Dict[str, Any]]]:
        """Snapshot of the methods currently registered on the platform."""
        ...

    @abstractmethod
    def register(self, implementation: MethodImplementation) -> Optional[Awaitable[Any]]:
        """Expose a local method. May return an awaitable that settles on completion."""
        ...

    @abstractmethod
    def on_method_registered(
        self, callback: MethodRegisteredCallback
    ) -> Optional[Callable[[], None]]:
        """
        Subscribe to method registrations from any peer.

        Returns:
            A callable removing the subscription, or None when the
            platform cannot remove subscriptions.
        """
        ...


class InteropPlatform(ABC):
    """
    A configured, not yet connected, interop platform.

    `type` must be unique among the platforms handed to the bus; it
    becomes the platform name used in method names
    ("Fdc3.<type>.StartApplication").
    """

    type: str = "base"
    version: str = ""
    config: Optional[Dict[str, Any]] = None

    @abstractmethod
    async def connect(
        self,
        application_name: str,
        config: Optional[Dict[str, Any]],
        methods: List[MethodImplementation],
    ) -> InteropPeer:
        ...


@dataclass
class Platform:
    """A connected platform as seen by the routing engine."""
    name: str
    version: str
    online: bool
    connection_status: ConnectionStatus
    api: InteropPeer
    config: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.name} {self.version} [{self.connection_status.value}]"
