"""
FDC3 Bus Capability Discovery
=============================

Live method discovery against a connected platform. Nothing here is
cached: every resolution re-queries the platform.
"""

import logging
from collections.abc import Mapping
from typing import Any, List

from pydantic import ValidationError as PydanticValidationError

from ..models import Method
from .base import Platform

logger = logging.getLogger(__name__)


async def discover(platform: Platform) -> List[Method]:
    """
    Fetch the methods a platform currently exposes.

    Entries that do not describe a valid method are skipped.
    """
    raw_methods = await platform.api.discover_methods()
    methods = []
    for raw in raw_methods or []:
        if isinstance(raw, Method):
            methods.append(raw)
            continue
        try:
            methods.append(Method.model_validate(raw))
        except PydanticValidationError as e:
            logger.warning(
                f"Skipping malformed method from platform {platform.name}: {e.error_count()} error(s)",
                extra={"platform": platform.name},
            )
    return methods


def invocation_result(payload: Any) -> Any:
    """Extract the `result` field of an invocation payload."""
    if payload is None:
        return None
    if isinstance(payload, Mapping):
        return payload.get("result")
    return getattr(payload, "result", None)
