"""
FDC3 Bus Factory
================

Builds a ready-to-use DesktopAgent from a set of interop platforms.

Flow:
1. Reject the configuration if two platforms share a type
2. Connect to every platform concurrently (retrying until each succeeds)
3. Wrap the sessions in Platform handles
4. Hand them to a new DesktopAgent
"""

import logging
from collections import Counter
from typing import Optional, Sequence

from .agent import DesktopAgent
from .config import BusConfig
from .connection import connect_platforms
from .errors import ConfigurationError
from .platforms.base import InteropPlatform, MethodImplementation

logger = logging.getLogger(__name__)


def check_unique_types(interop_platforms: Sequence[InteropPlatform]) -> None:
    """Raise ConfigurationError if two platforms share a type."""
    counts = Counter(interop_platform.type for interop_platform in interop_platforms)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    if duplicates:
        raise ConfigurationError(
            "Multiple platforms have the same type.",
            {"duplicates": duplicates},
        )


async def create_bus(
    interop_platforms: Sequence[InteropPlatform],
    methods: Sequence[MethodImplementation] = (),
    config: Optional[BusConfig] = None,
) -> DesktopAgent:
    """
    Connect to all platforms and return the routing engine.

    Args:
        interop_platforms: Platforms to route across, in priority order
        methods: Methods to register on every platform when connecting
        config: Engine settings (defaults to BusConfig())

    Raises:
        ConfigurationError: duplicate platform types; raised before any
            connection attempt
    """
    interop_platforms = list(interop_platforms)
    check_unique_types(interop_platforms)
    config = config or BusConfig()

    logger.info(f"Connecting to {len(interop_platforms)} platform(s): "
                f"{', '.join(p.type for p in interop_platforms)}")
    platforms = await connect_platforms(interop_platforms, methods, config)
    return DesktopAgent(platforms, config=config)
