"""
FDC3 Bus Platforms
==================

Capability contract and live discovery for interop platforms.
"""

from .base import (
    ConnectionStatus,
    InteropPeer,
    InteropPlatform,
    MethodImplementation,
    Platform,
)
from .discovery import discover, invocation_result

__all__ = [
    "ConnectionStatus",
    "InteropPeer",
    "InteropPlatform",
    "MethodImplementation",
    "Platform",
    "discover",
    "invocation_result",
]
