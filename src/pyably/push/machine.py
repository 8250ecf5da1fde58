"""Push activation state machine.

The machine owns the current activation state, the queue of events the
current state cannot consume yet, and every side effect the transition
table asks for. All events enter through :meth:`ActivationStateMachine.handle_event`,
which drains a single-consumer inbox: an event raised while another is
being handled (from a callback, a collaborator or a network completion)
waits in the inbox until the current one is fully resolved, so transitions
happen in a strict total order without locks.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from pyably._constants import (
    ACTIVATION_STATE_KEY,
    USE_CUSTOM_DEREGISTERER_KEY,
    USE_CUSTOM_REGISTERER_KEY,
)
from pyably.exceptions import AblyConfigError, AblyError, AblyPushNotSupportedError
from pyably.push import states
from pyably.push.actions import (
    Action,
    ClearUpdateToken,
    Deregister,
    Enqueue,
    NotifyActivated,
    NotifyDeactivated,
    NotifyUpdateFailed,
    RegisterDevice,
    RequestDeviceDetails,
    StoreUpdateToken,
    UpdateRegistration,
)
from pyably.push.device_store import DeviceRegistrationStore
from pyably.push.events import (
    ActivationEvent,
    CalledActivate,
    CalledDeactivate,
    Deregistered,
    DeregistrationFailed,
    GettingUpdateTokenFailed,
    GotUpdateToken,
    RegistrationUpdated,
    UpdatingRegistrationFailed,
)
from pyably.push.platform import PlatformPush
from pyably.push.registrar import Registrar
from pyably.push.states import ActivationState
from pyably.push.transitions import Transition, step
from pyably.storage import Storage

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ActivationCallback = Callable[[Any], None]
"""Receives ``None`` on success or the opaque failure reason."""


class ActivationStateMachine:
    """Drives device activation/deactivation for one client.

    Parameters
    ----------
    store : DeviceRegistrationStore
        The local device identity, read by transitions and updated when the
        update token is issued or cleared.
    storage : Storage
        Where the activation state and custom-registerer flags persist.
    registrar : Registrar
        Default registrar (REST) for register/update/deregister.
    platform : PlatformPush or None
        Supplies recipient details. ``None`` raises
        :class:`AblyPushNotSupportedError`.
    custom_registerer, custom_deregisterer : Registrar or None
        Used instead of *registrar* when an activation/deactivation was
        requested with the matching ``use_custom_*`` flag.
    on_update_failed : callable or None
        Standing listener for failed registration refreshes.
    loop : asyncio.AbstractEventLoop or None
        Loop that runs network operations. Defaults to the running loop.
    """

    def __init__(
        self,
        store: DeviceRegistrationStore,
        storage: Storage,
        registrar: Registrar,
        platform: PlatformPush | None,
        *,
        custom_registerer: Registrar | None = None,
        custom_deregisterer: Registrar | None = None,
        on_update_failed: ActivationCallback | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if platform is None:
            raise AblyPushNotSupportedError("this platform is not supported as a target of push notifications")
        self._store = store
        self._storage = storage
        self._registrar = registrar
        self._platform = platform
        self._custom_registerer = custom_registerer
        self._custom_deregisterer = custom_deregisterer
        self._loop = loop

        stored_state = storage.get(ACTIVATION_STATE_KEY)
        restored = states.restore(stored_state)
        if restored is None and stored_state is not None:
            _logger.warning("Unknown persisted activation state %r; starting from NotActivated", stored_state)
        self._current: ActivationState = restored or states.NOT_ACTIVATED
        self.use_custom_registerer = bool(storage.get(USE_CUSTOM_REGISTERER_KEY) or False)
        self.use_custom_deregisterer = bool(storage.get(USE_CUSTOM_DEREGISTERER_KEY) or False)

        self._pending: deque[ActivationEvent] = deque()
        self._inbox: deque[ActivationEvent] = deque()
        self._handling = False
        self._tasks: set[asyncio.Task[Any]] = set()

        self.activated_callback: ActivationCallback | None = None
        self.deactivated_callback: ActivationCallback | None = None
        self.update_failed_callback: ActivationCallback | None = on_update_failed

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def current(self) -> ActivationState:
        return self._current

    @property
    def pending_events(self) -> tuple[ActivationEvent, ...]:
        """Events waiting for a state that can consume them, oldest first."""
        return tuple(self._pending)

    @property
    def store(self) -> DeviceRegistrationStore:
        return self._store

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def handle_event(self, event: ActivationEvent) -> None:
        """Feed one event to the machine.

        If another event is being handled, *event* is processed right after
        it completes; otherwise it is processed now, along with anything
        raised while doing so.
        """
        if isinstance(event, CalledActivate):
            self.use_custom_registerer = event.use_custom_registerer
            self.persist()
        elif isinstance(event, CalledDeactivate):
            self.use_custom_deregisterer = event.use_custom_deregisterer
            self.persist()

        self._inbox.append(event)
        if self._handling:
            _logger.debug("Deferring event %s until the current event is handled", event)
            return

        self._handling = True
        try:
            while self._inbox:
                self._process(self._inbox.popleft())
        finally:
            self._handling = False

    def handle_event_threadsafe(self, event: ActivationEvent) -> None:
        """Hand *event* to the machine's loop from another thread."""
        loop = self._require_loop()
        loop.call_soon_threadsafe(self.handle_event, event)

    def _process(self, event: ActivationEvent) -> None:
        _logger.debug("Handling event %s from %s", event, self._current)

        transition = step(self._current, event, self._store.device)
        if transition is None:
            _logger.debug("Enqueuing event: %s", event)
            self._pending.append(event)
            return

        self._apply(event, transition)

        while self._pending:
            pending = self._pending[0]
            _logger.debug("Attempting to consume pending event: %s", pending)
            transition = step(self._current, pending, self._store.device)
            if transition is None:
                break
            self._pending.popleft()
            self._apply(pending, transition)

        self.persist()

    def _apply(self, event: ActivationEvent, transition: Transition) -> None:
        _logger.debug("Transition: %s -(%s)-> %s", self._current, event, transition.next_state)
        self._current = transition.next_state
        for action in transition.actions:
            self._execute(action)

    def _execute(self, action: Action) -> None:
        if isinstance(action, Enqueue):
            self._pending.append(action.event)
        elif isinstance(action, RequestDeviceDetails):
            self._platform.request_device_details(self)
        elif isinstance(action, RegisterDevice):
            self._register()
        elif isinstance(action, UpdateRegistration):
            self._update_registration()
        elif isinstance(action, Deregister):
            self._deregister()
        elif isinstance(action, StoreUpdateToken):
            self._store.set_update_token(action.update_token)
        elif isinstance(action, ClearUpdateToken):
            self._store.set_update_token(None)
        elif isinstance(action, NotifyActivated):
            callback, self.activated_callback = self.activated_callback, None
            self._invoke("activated", callback, action.reason)
        elif isinstance(action, NotifyDeactivated):
            callback, self.deactivated_callback = self.deactivated_callback, None
            self._invoke("deactivated", callback, action.reason)
        elif isinstance(action, NotifyUpdateFailed):
            self._invoke("update-failed", self.update_failed_callback, action.reason)
        else:
            raise AblyError(f"Unknown activation action: {action!r}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self) -> None:
        """Write durable fields; the state name only when quiescent."""
        if states.is_persistent(self._current):
            self._storage.set(ACTIVATION_STATE_KEY, str(self._current.name))
        self._storage.set(USE_CUSTOM_REGISTERER_KEY, self.use_custom_registerer)
        self._storage.set(USE_CUSTOM_DEREGISTERER_KEY, self.use_custom_deregisterer)

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    @staticmethod
    def _invoke(name: str, callback: ActivationCallback | None, reason: Any) -> None:
        if callback is None:
            _logger.debug("No %s callback registered (reason=%r)", name, reason)
            return
        try:
            callback(reason)
        except Exception:
            _logger.warning("Push %s callback failed", name, exc_info=True)

    # ------------------------------------------------------------------
    # Network operations
    # ------------------------------------------------------------------

    def _select_registrar(self, use_custom: bool, custom: Registrar | None, role: str) -> Registrar | None:
        if not use_custom:
            return self._registrar
        if custom is None:
            _logger.warning("Custom %s requested but none is configured", role)
        return custom

    def _register(self) -> None:
        registrar = self._select_registrar(self.use_custom_registerer, self._custom_registerer, "registerer")
        if registrar is None:
            self.handle_event(GettingUpdateTokenFailed(reason=AblyConfigError("no custom registerer configured")))
            return
        self.spawn(
            self._run(
                "register",
                registrar.register(self._store.device),
                lambda token: GotUpdateToken(update_token=token),
                lambda exc: GettingUpdateTokenFailed(reason=exc),
            )
        )

    def _update_registration(self) -> None:
        registrar = self._select_registrar(self.use_custom_registerer, self._custom_registerer, "registerer")
        if registrar is None:
            self.handle_event(UpdatingRegistrationFailed(reason=AblyConfigError("no custom registerer configured")))
            return
        self.spawn(
            self._run(
                "update registration",
                registrar.update_registration(self._store.device),
                lambda _result: RegistrationUpdated(),
                lambda exc: UpdatingRegistrationFailed(reason=exc),
            )
        )

    def _deregister(self) -> None:
        registrar = self._select_registrar(self.use_custom_deregisterer, self._custom_deregisterer, "deregisterer")
        if registrar is None:
            self.handle_event(DeregistrationFailed(reason=AblyConfigError("no custom deregisterer configured")))
            return
        self.spawn(
            self._run(
                "deregister",
                registrar.deregister(self._store.device),
                lambda _result: Deregistered(),
                lambda exc: DeregistrationFailed(reason=exc),
            )
        )

    async def _run(
        self,
        name: str,
        operation: Awaitable[T],
        on_success: Callable[[T], ActivationEvent],
        on_failure: Callable[[Exception], ActivationEvent],
    ) -> None:
        try:
            result = await operation
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.debug("Push %s failed", name, exc_info=True)
            self.handle_event(on_failure(exc))
            return
        self.handle_event(on_success(result))

    # ------------------------------------------------------------------
    # Task management
    # ------------------------------------------------------------------

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise AblyError("Push activation needs a running asyncio event loop") from exc
        return self._loop

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run *coro* on the machine's loop and track it until done."""
        try:
            loop = self._require_loop()
        except AblyError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until no platform or network operation is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding operations. The machine can still be restored later."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
