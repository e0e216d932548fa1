"""
FDC3 Bus Data Models
====================

Pydantic models for the data that crosses the interop boundary:
contexts, discovered methods, application lists and intent
aggregation results. Field aliases follow the camelCase names used
on the wire by interop platforms.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OpenError(str, Enum):
    """Failure kinds reported by DesktopAgent.open."""
    APP_NOT_FOUND = "AppNotFound"
    ERROR_ON_LAUNCH = "ErrorOnLaunch"
    APP_TIMEOUT = "AppTimeout"
    RESOLVER_UNAVAILABLE = "ResolverUnavailable"


class ResolveError(str, Enum):
    """Failure kinds reported by intent resolution."""
    NO_APPS_FOUND = "NoAppsFound"
    RESOLVER_UNAVAILABLE = "ResolverUnavailable"
    RESOLVER_TIMEOUT = "ResolverTimeout"


class Context(BaseModel):
    """
    A typed, extensible data payload exchanged between applications.

    `type` identifies the context (e.g. "fdc3.instrument"). Any extra
    field is kept as-is. Instances are immutable.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    name: Optional[str] = None
    id: Optional[Dict[str, str]] = None

    def as_dict(self) -> Dict[str, Any]:
        """The fields as supplied, explicit nulls included."""
        return self.model_dump(exclude_unset=True)

    def equals(self, other: Optional["Context"]) -> bool:
        """
        Structural equality over declared and extension fields.

        Key order is ignored. A field explicitly set to null differs from
        an absent one.
        """
        if other is None:
            return False
        return self.as_dict() == other.as_dict()


class MethodIntent(BaseModel):
    """An intent declared by a remote method, optionally scoped to a context."""
    model_config = ConfigDict(extra="ignore")

    name: str
    context: Optional[Context] = None


class PeerDescriptor(BaseModel):
    """The application that registered a method."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    application_name: str = Field(alias="applicationName")


class Method(BaseModel):
    """A remote-invocable method as reported by a platform's discovery call."""
    model_config = ConfigDict(extra="ignore")

    name: str
    intent: List[MethodIntent] = Field(default_factory=list)
    peer: Optional[PeerDescriptor] = None

    @field_validator("intent", mode="before")
    @classmethod
    def _none_means_no_intents(cls, value):
        return [] if value is None else value

    @property
    def application_name(self) -> Optional[str]:
        return self.peer.application_name if self.peer else None


class Application(BaseModel):
    """An entry of a platform's ListApplications result."""
    model_config = ConfigDict(extra="allow")

    name: str


class IntentMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    display_name: str = Field(alias="displayName")


class AppMetadata(BaseModel):
    name: str


class AppIntent(BaseModel):
    """Relates an intent to the applications that can service it."""
    intent: IntentMetadata
    apps: List[AppMetadata] = Field(default_factory=list)

    @classmethod
    def named(cls, intent: str) -> "AppIntent":
        return cls(intent=IntentMetadata(name=intent, display_name=intent))

    @property
    def app_names(self) -> List[str]:
        return [app.name for app in self.apps]
