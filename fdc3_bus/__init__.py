"""
FDC3 Bus
========

Intent and context routing across heterogeneous interop platforms.
"""

from .agent import DesktopAgent, Listener, ListenerState
from .bus import create_bus
from .callbacks import CallbackRegistry
from .config import BusConfig
from .errors import (
    ConfigurationError,
    Fdc3Error,
    InvocationFailure,
    OpenAppError,
    ResolutionAmbiguityError,
    ResolveIntentError,
    ValidationError,
)
from .logging_config import configure_logging
from .models import (
    AppIntent,
    AppMetadata,
    Application,
    Context,
    IntentMetadata,
    Method,
    MethodIntent,
    OpenError,
    PeerDescriptor,
    ResolveError,
)
from .platforms import (
    ConnectionStatus,
    InteropPeer,
    InteropPlatform,
    MethodImplementation,
    Platform,
)

__all__ = [
    "AppIntent",
    "AppMetadata",
    "Application",
    "BusConfig",
    "CallbackRegistry",
    "ConfigurationError",
    "ConnectionStatus",
    "Context",
    "DesktopAgent",
    "Fdc3Error",
    "IntentMetadata",
    "InteropPeer",
    "InteropPlatform",
    "InvocationFailure",
    "Listener",
    "ListenerState",
    "Method",
    "MethodImplementation",
    "MethodIntent",
    "OpenAppError",
    "OpenError",
    "PeerDescriptor",
    "Platform",
    "ResolutionAmbiguityError",
    "ResolveError",
    "ResolveIntentError",
    "ValidationError",
    "configure_logging",
    "create_bus",
]
