"""
FDC3 Bus Platform Connection
============================

Connects to every configured interop platform, retrying each one on a
fixed interval until it succeeds, and builds the Platform handles the
routing engine works with.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from .config import BusConfig
from .platforms.base import (
    ConnectionStatus,
    InteropPeer,
    InteropPlatform,
    MethodImplementation,
    Platform,
)

logger = logging.getLogger(__name__)


def application_identity(interop_platform: InteropPlatform, prefix: str = "Fdc3") -> str:
    """Name this engine connects under: the configured application, else "<prefix>.<type>.Impl"."""
    config = interop_platform.config or {}
    if config.get("application"):
        return config["application"]
    return f"{prefix}.{interop_platform.type}.Impl"


async def connect_until_ready(
    interop_platform: InteropPlatform,
    methods: Sequence[MethodImplementation],
    config: Optional[BusConfig] = None,
) -> InteropPeer:
    """
    Connect to a platform, retrying until a session is established.

    There is no attempt limit; cancel the calling task to give up.
    """
    config = config or BusConfig()
    application_name = application_identity(interop_platform, config.method_prefix)
    attempt = 0

    while True:
        attempt += 1
        try:
            peer = await interop_platform.connect(application_name, None, list(methods))
        except Exception as e:
            logger.warning(
                f"Connection attempt {attempt} to {interop_platform.type} failed: {e}; "
                f"retrying in {config.connect_retry_interval}s",
                extra={"platform": interop_platform.type},
            )
            await asyncio.sleep(config.connect_retry_interval)
            continue

        logger.info(
            f"Connected to {interop_platform.type} as {application_name} after {attempt} attempt(s)",
            extra={"platform": interop_platform.type},
        )
        return peer


async def connect_platforms(
    interop_platforms: Sequence[InteropPlatform],
    methods: Sequence[MethodImplementation],
    config: Optional[BusConfig] = None,
) -> List[Platform]:
    """Connect to all platforms concurrently. Handles keep the input order."""
    peers = await asyncio.gather(*(
        connect_until_ready(interop_platform, methods, config)
        for interop_platform in interop_platforms
    ))

    return [
        Platform(
            name=interop_platform.type,
            version=interop_platform.version,
            online=bool(peer.is_connected),
            connection_status=ConnectionStatus.coerce(peer.connection_status),
            api=peer,
            config=dict(interop_platform.config or {}),
        )
        for interop_platform, peer in zip(interop_platforms, peers)
    ]
