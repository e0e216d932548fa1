"""
FDC3 Bus Test Fixtures
======================

Shared fixtures for all test modules.

FakePeer is an in-memory interop platform session: it keeps a method
table, records every invocation, runs locally registered methods and
lets tests announce new registrations or inject failures.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from fdc3_bus.config import BusConfig
from fdc3_bus.models import Method
from fdc3_bus.platforms.base import (
    ConnectionStatus,
    InteropPeer,
    InteropPlatform,
    MethodImplementation,
    Platform,
)


# ============================================
# FAKE PLATFORM
# ============================================

class FakePeer(InteropPeer):
    """In-memory interop session."""

    def __init__(self, name: str = "fake", application: str = "Fdc3.fake.Impl"):
        self.name = name
        self.application = application
        self.methods: List[Dict[str, Any]] = []
        self.handlers: Dict[str, Callable[[Any], Any]] = {}
        self.local: Dict[str, MethodImplementation] = {}
        self.invocations: List[Tuple[str, Optional[str], Any]] = []
        self.hooks: List[Callable[[Any], None]] = []
        self.discover_error: Optional[Exception] = None
        self.discover_gate: Optional[asyncio.Event] = None
        self.discover_calls = 0
        self.register_error: Optional[Exception] = None
        self.register_result: Any = None

    @property
    def is_connected(self) -> bool:
        return True

    @property
    def connection_status(self) -> str:
        return "connected"

    def expose(
        self,
        name: str,
        application: str = "app",
        intents: Tuple[Tuple[str, Optional[dict]], ...] = (),
        handler: Optional[Callable[[Any], Any]] = None,
    ) -> Dict[str, Any]:
        """Add a remote method to the table; `handler` computes its result."""
        method = {
            "name": name,
            "intent": [{"name": intent, "context": context} for intent, context in intents],
            "peer": {"applicationName": application},
        }
        self.methods.append(method)
        if handler is not None:
            self.handlers[name] = handler
        return method

    def expose_platform_methods(self, apps: List[str], prefix: str = "Fdc3") -> None:
        """Expose ListApplications/StartApplication serving `apps`."""
        self.expose(
            f"{prefix}.{self.name}.ListApplications",
            application="launcher",
            handler=lambda args: [{"name": app} for app in apps],
        )
        self.expose(
            f"{prefix}.{self.name}.StartApplication",
            application="launcher",
            handler=lambda args: {"started": args["application"], "platform": self.name},
        )

    def announce(self, method: Dict[str, Any]) -> None:
        """Simulate another peer registering a method."""
        self.methods.append(method)
        for hook in list(self.hooks):
            hook(method)

    async def call_local(self, name: str, args: Any) -> Any:
        """Simulate a remote peer invoking a method this engine registered."""
        implementation = self.local[name]
        result = implementation.on_invoke(args, None)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def invoke(self, method, args=None):
        if isinstance(method, Method):
            name, application = method.name, method.application_name
        else:
            name, application = method, None
        self.invocations.append((name, application, args))

        if name in self.local:
            return {"result": await self.call_local(name, args)}
        handler = self.handlers.get(name)
        if handler is None:
            raise RuntimeError(f"No method named {name}")
        return {"result": handler(args)}

    async def discover_methods(self):
        self.discover_calls += 1
        if self.discover_gate is not None:
            await self.discover_gate.wait()
        if self.discover_error is not None:
            raise self.discover_error
        return list(self.methods)

    def register(self, implementation: MethodImplementation):
        if self.register_error is not None:
            raise self.register_error
        self.local[implementation.name] = implementation
        self.methods.append({"name": implementation.name, "peer": {"applicationName": self.application}})
        return self.register_result

    def on_method_registered(self, callback):
        self.hooks.append(callback)

        def dispose():
            if callback in self.hooks:
                self.hooks.remove(callback)

        return dispose

    def invoked(self, name: str) -> List[Any]:
        """Arguments of every invocation of `name`."""
        return [args for invoked_name, _, args in self.invocations if invoked_name == name]


class FakeInteropPlatform(InteropPlatform):
    """Connectable platform that fails its first `failures` connection attempts."""

    def __init__(self, type: str, version: str = "1.0", failures: int = 0, config: Optional[dict] = None):
        self.type = type
        self.version = version
        self.config = config
        self.failures = failures
        self.connect_calls: List[str] = []
        self.peer = FakePeer(type, application=f"Fdc3.{type}.Impl")

    async def connect(self, application_name, config, methods):
        self.connect_calls.append(application_name)
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError(f"{self.type} is not ready")
        self.peer.application = application_name
        for method in methods:
            self.peer.register(method)
        return self.peer


def as_platform(peer: FakePeer) -> Platform:
    return Platform(
        name=peer.name,
        version="1.0",
        online=True,
        connection_status=ConnectionStatus.CONNECTED,
        api=peer,
    )


# ============================================
# FIXTURES
# ============================================

@pytest.fixture
def fast_config():
    """Config with a short retry interval."""
    return BusConfig(connect_retry_interval=0.01, log_format="text")


@pytest.fixture
def glue():
    return FakePeer("glue42")


@pytest.fixture
def openfin():
    return FakePeer("openfin")


@pytest.fixture
def agent(glue, openfin):
    """Routing engine over two fake platforms, glue42 first."""
    from fdc3_bus.agent import DesktopAgent

    return DesktopAgent([as_platform(glue), as_platform(openfin)])


@pytest.fixture
def instrument():
    return {"type": "fdc3.instrument", "name": "Apple", "id": {"ticker": "AAPL"}}


@pytest.fixture
def contact():
    return {"type": "fdc3.contact", "name": "Jane Doe", "id": {"email": "jane@example.com"}}


@pytest.fixture
def finsemble():
    return FakePeer("finsemble")


@pytest.fixture
def three_platform_agent(glue, openfin, finsemble):
    """Routing engine over three fake platforms, in glue42, openfin, finsemble order."""
    from fdc3_bus.agent import DesktopAgent

    return DesktopAgent([as_platform(glue), as_platform(openfin), as_platform(finsemble)])
