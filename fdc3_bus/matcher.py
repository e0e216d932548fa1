"""
FDC3 Bus Matcher
================

Pure functions that filter and aggregate discovered methods.

Nothing here performs I/O. Inputs are snapshots produced by live
discovery; `methods_by_platform` is always ordered the same way as the
engine's platform list, which keeps aggregated results deterministic.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .errors import ResolutionAmbiguityError
from .models import AppIntent, AppMetadata, Application, Context, Method, MethodIntent

T = TypeVar("T")

START_APPLICATION = "StartApplication"
LIST_APPLICATIONS = "ListApplications"
CONTEXT_LISTENER = "ContextListener"


def method_name(prefix: str, platform_name: str, short_name: str) -> str:
    """Full name of a platform's well-known method, e.g. "Fdc3.glue42.StartApplication"."""
    return f"{prefix}.{platform_name}.{short_name}"


def split_app(app: str) -> Tuple[str, Optional[str]]:
    """
    Split "<appName>:<platformName>" into its parts.

    Only the last segment is a platform qualifier; the application name
    itself may contain colons. A bare name yields (app, None).
    """
    segments = app.split(":")
    if len(segments) < 2:
        return app, None
    return ":".join(segments[:-1]), segments[-1]


def platform_has_method(methods: Iterable[Method], full_name: str) -> bool:
    return any(method.name == full_name for method in methods)


def methods_named(methods: Iterable[Method], full_name: str) -> List[Method]:
    return [method for method in methods if method.name == full_name]


def intent_declarations(method: Method, intent: str) -> List[MethodIntent]:
    """The intents `method` declares under the name `intent`."""
    return [method_intent for method_intent in method.intent if method_intent.name == intent]


def declares_intent(method: Method, intent: str) -> bool:
    return bool(intent_declarations(method, intent))


def app_intent_for(
    intent: str,
    methods_by_platform: Sequence[Sequence[Method]],
    context: Optional[Context] = None,
) -> AppIntent:
    """
    Collect every application declaring `intent`.

    When a context is given, only declarations whose context is
    structurally equal to it count. Duplicates are kept.
    """
    app_intent = AppIntent.named(intent)
    for methods in methods_by_platform:
        for method in methods:
            for method_intent in intent_declarations(method, intent):
                if context is not None and not context.equals(method_intent.context):
                    continue
                app_intent.apps.append(AppMetadata(name=method.application_name or ""))
    return app_intent


def app_intents_for_context(
    context: Context,
    methods_by_platform: Sequence[Sequence[Method]],
) -> List[AppIntent]:
    """Group every intent declared for `context` by intent name, in first-seen order."""
    app_intents: List[AppIntent] = []
    by_name = {}
    for methods in methods_by_platform:
        for method in methods:
            for method_intent in method.intent:
                if not context.equals(method_intent.context):
                    continue
                entry = by_name.get(method_intent.name)
                if entry is None:
                    entry = AppIntent.named(method_intent.name)
                    by_name[method_intent.name] = entry
                    app_intents.append(entry)
                entry.apps.append(AppMetadata(name=method.application_name or ""))
    return app_intents


def methods_with_intent(
    methods: Iterable[Method],
    intent: str,
    target: Optional[str] = None,
) -> List[Method]:
    """Methods declaring `intent`, narrowed to the peer application `target` when given."""
    matches = []
    for method in methods:
        if not declares_intent(method, intent):
            continue
        if target and method.application_name != target:
            continue
        matches.append(method)
    return matches


def require_single(candidates: Sequence[T], none_message: str, many_message: str) -> T:
    """Return the only candidate, or raise ResolutionAmbiguityError."""
    if len(candidates) == 0:
        raise ResolutionAmbiguityError(none_message, matches=0)
    if len(candidates) > 1:
        raise ResolutionAmbiguityError(many_message, matches=len(candidates))
    return candidates[0]


def applications_named(applications: Any, name: str) -> List[Application]:
    """Entries of a ListApplications result whose name is `name`."""
    matches = []
    for raw in applications or []:
        application = raw if isinstance(raw, Application) else Application.model_validate(raw)
        if application.name == name:
            matches.append(application)
    return matches
