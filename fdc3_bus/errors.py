"""
FDC3 Bus Errors
===============

Exception hierarchy raised by the routing engine.

Validation errors are raised before any remote call is made. Resolution
and invocation failures are translated into OpenAppError / ResolveIntentError,
which carry a kind from the public FDC3 error vocabulary.
"""

from typing import Any, Dict, Optional

from .models import OpenError, ResolveError


class Fdc3Error(Exception):
    """Base exception for routing engine errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(Fdc3Error):
    """Invalid settings, or conflicting platforms passed to the bus."""
    pass


class ValidationError(Fdc3Error):
    """A public operation was called with a missing or malformed argument."""
    pass


class ResolutionAmbiguityError(Fdc3Error):
    """Zero or several candidates were found where exactly one is required."""
    def __init__(self, message: str, matches: int, details: Optional[Dict[str, Any]] = None):
        self.matches = matches
        super().__init__(message, details)

    @property
    def not_found(self) -> bool:
        return self.matches == 0


class InvocationFailure(Fdc3Error):
    """A remote capability call was rejected by the platform."""
    def __init__(self, method: str, message: str, timed_out: bool = False):
        self.method = method
        self.timed_out = timed_out
        super().__init__(message, {"method": method, "timed_out": timed_out})


class OpenAppError(Fdc3Error):
    """Raised by DesktopAgent.open for any resolution or launch failure."""
    def __init__(self, app: str, kind: OpenError, message: str):
        self.app = app
        self.kind = kind
        super().__init__(message, {"app": app, "kind": kind.value})


class ResolveIntentError(Fdc3Error):
    """Raised by intent resolution (find_intent, find_intents_by_context, raise_intent)."""
    def __init__(self, intent: Optional[str], kind: ResolveError, message: str):
        self.intent = intent
        self.kind = kind
        super().__init__(message, {"intent": intent, "kind": kind.value})
