"""
FDC3 Desktop Agent
==================

Routing engine over one or more connected interop platforms.

Every operation re-discovers the methods the platforms currently
expose, so results always reflect live registrations:

- open: resolve an application to exactly one platform and start it
- find_intent / find_intents_by_context: aggregate intent declarations
- raise_intent: resolve an intent to exactly one method and invoke it
- broadcast: fan a context out to every platform's context listener
- add_intent_listener / add_context_listener: local callbacks fed by
  forwarding hooks installed on every platform

Work that nobody awaits (broadcast deliveries, pending registrations)
runs as supervised detached tasks; their failures are logged and
discarded. drain() waits for them.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, List, Optional, Sequence, Set, Union

from pydantic import ValidationError as PydanticValidationError

from .callbacks import ADD_CONTEXT, ADD_INTENT, CallbackRegistry
from .config import BusConfig
from .errors import (
    InvocationFailure,
    OpenAppError,
    ResolutionAmbiguityError,
    ResolveIntentError,
)
from .matcher import (
    CONTEXT_LISTENER,
    LIST_APPLICATIONS,
    START_APPLICATION,
    app_intent_for,
    app_intents_for_context,
    applications_named,
    intent_declarations,
    method_name,
    methods_named,
    methods_with_intent,
    platform_has_method,
    require_single,
    split_app,
)
from .models import AppIntent, Context, Method, OpenError, PeerDescriptor, ResolveError
from .platforms.base import MethodImplementation, Platform
from .platforms.discovery import discover, invocation_result
from .validation import (
    validate_add_intent_listener,
    validate_context,
    validate_handler,
    validate_intent_and_context,
    validate_open_params,
    validate_raise_intent,
    validate_required_context,
)

logger = logging.getLogger(__name__)

ContextHandler = Callable[[Optional[Context]], Any]


def _is_timeout(error: BaseException) -> bool:
    return isinstance(error, (asyncio.TimeoutError, TimeoutError))


class ListenerState(Enum):
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"


class Listener:
    """
    Handle for one listener registration.

    unsubscribe() removes the handler from the local registry and
    disposes the platform hooks installed for it, where the platform
    allows that. Once unsubscribed the handle cannot be re-activated.
    """

    def __init__(
        self,
        remove: Callable[[], None],
        disposers: Sequence[Callable[[], None]] = (),
    ):
        self._remove = remove
        self._disposers = list(disposers)
        self.state = ListenerState.ACTIVE

    @property
    def active(self) -> bool:
        return self.state == ListenerState.ACTIVE

    def unsubscribe(self) -> None:
        if self.state == ListenerState.UNSUBSCRIBED:
            return
        self.state = ListenerState.UNSUBSCRIBED
        self._remove()

        for dispose in self._disposers:
            try:
                dispose()
            except Exception as e:
                logger.warning(f"Failed to remove platform hook: {e}")
        self._disposers.clear()


class DesktopAgent:
    """
    Intent and context router across interop platforms.

    Platforms are visited in the order they were configured; that order
    decides aggregation order and which platform wins in raise_intent.
    """

    def __init__(
        self,
        platforms: Optional[Sequence[Platform]] = None,
        config: Optional[BusConfig] = None,
        registry: Optional[CallbackRegistry] = None,
    ):
        self._platforms: List[Platform] = list(platforms or [])
        self.config = config or BusConfig()
        self.registry = registry or CallbackRegistry()
        # platform names that already expose our context-forwarding method
        self._context_forwarders: Set[str] = set()
        self._detached: Set[asyncio.Future] = set()

    @property
    def platforms(self) -> List[Platform]:
        return list(self._platforms)

    def _method_name(self, platform: Platform, short_name: str) -> str:
        return method_name(self.config.method_prefix, platform.name, short_name)

    # ============================================
    # OPEN
    # ============================================

    async def open(self, app: str, context: Any = None) -> Any:
        """
        Start an application by name.

        `app` may be qualified as "<appName>:<platformName>" to skip
        discovery and target that platform directly.

        Returns:
            The result payload of the platform's StartApplication method.

        Raises:
            ValidationError: bad arguments
            OpenAppError: the application could not be resolved or started
        """
        context = validate_open_params(app, context)
        app_name, platform_name = split_app(app)
        default_message = f'Unable to start application named "{app_name}"'

        try:
            if platform_name:
                platform = self._platform_named(platform_name)
            else:
                platform = await self._platform_hosting(app_name)
        except ResolutionAmbiguityError as e:
            kind = OpenError.APP_NOT_FOUND if e.not_found else OpenError.RESOLVER_UNAVAILABLE
            raise OpenAppError(app_name, kind, e.message or default_message) from e
        except Exception as e:
            logger.warning(f"Resolution of application {app_name} failed: {e}", extra={"app": app_name})
            raise OpenAppError(app_name, OpenError.ERROR_ON_LAUNCH, default_message) from e

        if platform is None:
            raise OpenAppError(app_name, OpenError.ERROR_ON_LAUNCH, default_message)

        args = {"application": app_name, "context": context.as_dict() if context else None}
        try:
            payload = await self._invoke(platform, self._method_name(platform, START_APPLICATION), args)
        except InvocationFailure as e:
            kind = OpenError.APP_TIMEOUT if e.timed_out else OpenError.ERROR_ON_LAUNCH
            raise OpenAppError(app_name, kind, default_message) from e

        logger.info(
            f"Started application {app_name} on {platform.name}",
            extra={"app": app_name, "platform": platform.name},
        )
        return invocation_result(payload)

    def _platform_named(self, platform_name: str) -> Platform:
        candidates = [platform for platform in self._platforms if platform.name == platform_name]
        return require_single(
            candidates,
            f'There is no platform named "{platform_name}"',
            f'There are multiple platforms named "{platform_name}"',
        )

    async def _platform_hosting(self, app_name: str) -> Optional[Platform]:
        """
        Find the single platform that lists `app_name` among its applications.

        Returns None when that platform cannot start applications.
        """
        methods_by_platform = await self._discover_all()
        listing = [
            (platform, methods)
            for platform, methods in zip(self._platforms, methods_by_platform)
            if platform_has_method(methods, self._method_name(platform, LIST_APPLICATIONS))
        ]

        has_app = await asyncio.gather(*(
            self._platform_has_app(platform, app_name) for platform, _ in listing
        ))
        hosting = [entry for entry, found in zip(listing, has_app) if found]

        require_single(
            hosting,
            f"There are no platforms with application named '{app_name}'.",
            f"There are multiple platforms with application named '{app_name}'.",
        )

        startable = [
            platform
            for platform, methods in hosting
            if platform_has_method(methods, self._method_name(platform, START_APPLICATION))
        ]
        return startable[0] if startable else None

    async def _platform_has_app(self, platform: Platform, app_name: str) -> bool:
        try:
            payload = await self._invoke(platform, self._method_name(platform, LIST_APPLICATIONS))
        except InvocationFailure as e:
            logger.debug(
                f"Listing applications on {platform.name} failed: {e}",
                extra={"platform": platform.name},
            )
            return False

        try:
            matches = applications_named(invocation_result(payload), app_name)
        except PydanticValidationError:
            logger.warning(
                f"Platform {platform.name} returned a malformed application list",
                extra={"platform": platform.name},
            )
            return False

        if len(matches) > 1:
            raise ResolutionAmbiguityError(
                f"There are multiple applications named '{app_name}'.", matches=len(matches)
            )
        return len(matches) == 1

    # ============================================
    # INTENT DISCOVERY
    # ============================================

    async def find_intent(self, intent: str, context: Any = None) -> AppIntent:
        """
        Find every application able to service `intent`.

        With a context, only declarations for a structurally equal
        context are included.
        """
        context = validate_intent_and_context(intent, context)
        methods_by_platform = await self._discover_for_resolution(intent)
        return app_intent_for(intent, methods_by_platform, context)

    async def find_intents_by_context(self, context: Any) -> List[AppIntent]:
        """Find every intent declared for `context`, grouped by intent name."""
        context = validate_required_context(context)
        methods_by_platform = await self._discover_for_resolution(None)
        return app_intents_for_context(context, methods_by_platform)

    # ============================================
    # RAISE INTENT
    # ============================================

    async def raise_intent(self, intent: str, context: Any, target: Optional[str] = None) -> Any:
        """
        Invoke the one method servicing `intent`.

        Platforms are scanned in order; the first platform with any
        method declaring `intent` is the only one considered. `target`
        narrows that platform's methods by peer application name and
        never moves the search on to a later platform. Later platforms
        are not checked for competing candidates.

        Returns:
            The result payload of the invoked method.

        Raises:
            ValidationError: bad arguments
            ResolveIntentError: no candidate, several candidates on the
                chosen platform, or the invocation failed
        """
        context = validate_raise_intent(intent, context, target)

        for platform in self._platforms:
            try:
                methods = await discover(platform)
            except Exception as e:
                raise ResolveIntentError(
                    intent,
                    ResolveError.RESOLVER_TIMEOUT if _is_timeout(e) else ResolveError.RESOLVER_UNAVAILABLE,
                    f"Unable to discover methods on platform {platform.name}",
                ) from e

            candidates = methods_with_intent(methods, intent)
            if not candidates:
                continue
            if target:
                candidates = methods_with_intent(candidates, intent, target)

            try:
                method = require_single(
                    candidates,
                    f'There is no method with intent "{intent}"',
                    f'There are multiple applications with method with intent "{intent}"',
                )
            except ResolutionAmbiguityError as e:
                kind = ResolveError.NO_APPS_FOUND if e.not_found else ResolveError.RESOLVER_UNAVAILABLE
                raise ResolveIntentError(intent, kind, e.message) from e

            logger.debug(
                f"Raising intent {intent} on {platform.name} ({method.application_name})",
                extra={"intent": intent, "platform": platform.name},
            )
            try:
                payload = await self._invoke(platform, method, context.as_dict())
            except InvocationFailure as e:
                kind = ResolveError.RESOLVER_TIMEOUT if e.timed_out else ResolveError.RESOLVER_UNAVAILABLE
                raise ResolveIntentError(intent, kind, f'Invocation of intent "{intent}" failed: {e.message}') from e
            return invocation_result(payload)

        raise ResolveIntentError(intent, ResolveError.NO_APPS_FOUND, f'There is no method with intent "{intent}"')

    # ============================================
    # BROADCAST
    # ============================================

    def broadcast(self, context: Any) -> None:
        """
        Deliver a context to every platform's context listeners.

        Returns immediately. Each platform is served by its own detached
        task; a failing platform does not affect the others and nothing
        is reported back. Must be called from a running event loop.
        """
        context = validate_required_context(context)
        asyncio.get_running_loop()  # raises outside an event loop, before any task is created
        for platform in self._platforms:
            self._spawn(self._deliver_context(platform, context), f"Broadcast to {platform.name}")

    async def _deliver_context(self, platform: Platform, context: Context) -> None:
        methods = await discover(platform)
        for method in methods_named(methods, self._method_name(platform, CONTEXT_LISTENER)):
            await platform.api.invoke(method, context.as_dict())

    # ============================================
    # LISTENERS
    # ============================================

    def add_intent_listener(self, intent: str, handler: ContextHandler) -> Listener:
        """
        Call `handler` whenever a platform reports a new method declaring `intent`.

        The hook fires every callback on the shared "add-intent" channel
        with the declared context of the matching intent.
        """
        validate_add_intent_listener(intent, handler)
        remove = self.registry.add(ADD_INTENT, handler)

        disposers = []
        for platform in self._platforms:
            try:
                dispose = platform.api.on_method_registered(self._intent_hook(platform, intent))
            except Exception as e:
                logger.warning(
                    f"Could not watch method registrations on {platform.name}: {e}",
                    extra={"platform": platform.name, "intent": intent},
                )
                continue
            if callable(dispose):
                disposers.append(dispose)

        return Listener(remove, disposers)

    def _intent_hook(self, platform: Platform, intent: str) -> Callable[[Any], None]:
        def on_method_registered(raw: Union[Method, dict]) -> None:
            try:
                method = raw if isinstance(raw, Method) else Method.model_validate(raw)
            except PydanticValidationError:
                logger.debug(
                    f"Ignoring malformed method registration on {platform.name}",
                    extra={"platform": platform.name},
                )
                return
            for method_intent in intent_declarations(method, intent):
                self.registry.execute(ADD_INTENT, method_intent.context)

        return on_method_registered

    def add_context_listener(self, handler: ContextHandler) -> Listener:
        """
        Call `handler` with every context broadcast to this application.

        The first context listener registers a forwarding method on each
        platform; later listeners share it. Must be called from a running
        event loop, since a platform may complete registration
        asynchronously.
        """
        validate_handler(handler)
        asyncio.get_running_loop()  # raises before the registry or any platform is touched
        remove = self.registry.add(ADD_CONTEXT, handler)

        for platform in self._platforms:
            if platform.name not in self._context_forwarders:
                self._install_context_forwarder(platform)

        return Listener(remove)

    def _install_context_forwarder(self, platform: Platform) -> None:
        implementation = MethodImplementation(
            name=self._method_name(platform, CONTEXT_LISTENER),
            on_invoke=self._forward_context,
        )
        try:
            pending = platform.api.register(implementation)
        except Exception as e:
            logger.warning(
                f"Could not register context listener on {platform.name}: {e}",
                extra={"platform": platform.name},
            )
            return

        self._context_forwarders.add(platform.name)
        if inspect.isawaitable(pending):
            self._spawn(
                self._complete_registration(platform, pending),
                f"Context listener registration on {platform.name}",
            )

    async def _complete_registration(self, platform: Platform, pending: Awaitable[Any]) -> None:
        try:
            await pending
        except Exception:
            # allow the next add_context_listener to retry
            self._context_forwarders.discard(platform.name)
            raise

    async def _forward_context(self, args: Any, caller: Optional[PeerDescriptor] = None) -> List[Any]:
        context = validate_context(args)
        return self.registry.execute(ADD_CONTEXT, context)

    # ============================================
    # PLATFORM CALLS
    # ============================================

    async def _discover_all(self) -> List[List[Method]]:
        """Discover every platform concurrently; results keep platform order."""
        return list(await asyncio.gather(*(discover(platform) for platform in self._platforms)))

    async def _discover_for_resolution(self, intent: Optional[str]) -> List[List[Method]]:
        try:
            return await self._discover_all()
        except Exception as e:
            kind = ResolveError.RESOLVER_TIMEOUT if _is_timeout(e) else ResolveError.RESOLVER_UNAVAILABLE
            raise ResolveIntentError(intent, kind, f"Method discovery failed: {e}") from e

    async def _invoke(self, platform: Platform, method: Union[str, Method], args: Any = None) -> Any:
        name = method.name if isinstance(method, Method) else method
        try:
            return await platform.api.invoke(method, args)
        except Exception as e:
            raise InvocationFailure(name, f"{platform.name}: {e}", timed_out=_is_timeout(e)) from e

    # ============================================
    # DETACHED WORK
    # ============================================

    def _spawn(self, work: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(work)
        self._detached.add(task)
        task.add_done_callback(lambda done: self._settle(done, description))
        return task

    def _settle(self, task: asyncio.Future, description: str) -> None:
        self._detached.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"{description} failed: {error}")

    @property
    def pending(self) -> int:
        """Number of detached tasks still running."""
        return len(self._detached)

    async def drain(self) -> None:
        """Wait until every detached task has settled."""
        while self._detached:
            await asyncio.gather(*list(self._detached), return_exceptions=True)
