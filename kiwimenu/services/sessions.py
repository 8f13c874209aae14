"""
Session registry backed by systemd-logind.

Every query is a fresh round trip: sessions are never cached between calls,
so a selection always acts on the live session state.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from kiwimenu.core.context import ShellContext
from kiwimenu.core.errors import KiwiMenuError
from kiwimenu.core.models import LoginSession, SessionClass
from kiwimenu.core.scheduler import OneShotContinuation
from kiwimenu.core.signals import Handle, SignalHub
from kiwimenu.shared.concurrency_helper import ConcurrencyHelper

SESSION_PATH_PREFIX = "/org/freedesktop/login1/session/"
LOGIN_STATE_CHANGED = "login-state-changed"


async def _default_manager_factory(logger: Any):
    from kiwimenu.services.login1 import Login1Manager

    return await Login1Manager.connect(logger)


class SessionRegistry:
    def __init__(
        self,
        context: ShellContext,
        manager_factory: Optional[Callable[[Any], Awaitable[Any]]] = None,
        greeter: Any = None,
        screen_locker: Any = None,
    ):
        self.context = context
        self.logger = context.logger
        self._manager_factory = manager_factory or _default_manager_factory
        self._manager: Any = None
        self._manager_lock = asyncio.Lock()
        self._greeter = greeter
        self._screen_locker = screen_locker
        self._handoff = OneShotContinuation(context.frame_clock, self.logger)
        self._concurrency = ConcurrencyHelper(self.logger)
        self._signals = SignalHub(self.logger, [LOGIN_STATE_CHANGED])
        self._destroyed = False

    @property
    def handoff_pending(self) -> bool:
        return self._handoff.pending

    def subscribe_login_state(self, handler: Callable[..., Any]) -> Handle:
        return self._signals.subscribe(LOGIN_STATE_CHANGED, handler)

    def revoke(self, handle: Handle) -> bool:
        return self._signals.revoke(handle)

    async def _ensure_manager(self):
        """Creates the logind proxy on first use; a failure is retried next call."""
        async with self._manager_lock:
            if self._manager is not None or self._destroyed:
                return self._manager
            try:
                manager = await self._manager_factory(self.logger)
            except KiwiMenuError as e:
                self.logger.error(f"Failed to acquire login1 Manager proxy: {e}")
                return None
            manager.on_sessions_changed(self._on_sessions_changed)
            self._manager = manager
            return manager

    def _on_sessions_changed(self, session_id: str, object_path: str) -> None:
        self.logger.debug(f"logind session set changed: {session_id} ({object_path})")
        self._signals.emit(LOGIN_STATE_CHANGED, session_id)

    async def _read_session_state(
        self, manager: Any, object_path: str
    ) -> Tuple[SessionClass, bool]:
        try:
            props = await manager.get_session_properties(object_path)
        except KiwiMenuError as e:
            self.logger.error(f"Failed to read session state for {object_path}: {e}")
            return SessionClass.OTHER, False
        return SessionClass.from_raw(props.get("Class")), props.get("Active") is True

    async def list_sessions(self) -> List[LoginSession]:
        """
        Lists every logind session with its class and active state resolved.
        Sessions whose class cannot be read are reported as OTHER.
        """
        manager = await self._ensure_manager()
        if manager is None:
            return []
        try:
            raw_sessions = await manager.list_sessions()
        except KiwiMenuError as e:
            self.logger.error(f"Failed to get session info from login1 D-Bus: {e}")
            return []
        sessions = []
        for session_id, _uid, username, seat, object_path in raw_sessions:
            if not username:
                continue
            session_class, is_active = SessionClass.OTHER, False
            if isinstance(object_path, str) and object_path.startswith(
                SESSION_PATH_PREFIX
            ):
                session_class, is_active = await self._read_session_state(
                    manager, object_path
                )
            sessions.append(
                LoginSession(
                    session_id=str(session_id),
                    owner_username=username,
                    seat=seat or None,
                    session_class=session_class,
                    is_active=is_active,
                    object_path=object_path,
                )
            )
        return sessions

    @staticmethod
    def preferred_sessions(sessions: List[LoginSession]) -> Dict[str, LoginSession]:
        """
        One ``user``-class session per username: the active one if any,
        otherwise the first encountered.
        """
        preferred: Dict[str, LoginSession] = {}
        for session in sessions:
            if not session.is_user_session:
                continue
            existing = preferred.get(session.owner_username)
            if existing is None or (session.is_active and not existing.is_active):
                preferred[session.owner_username] = session
        return preferred

    @staticmethod
    def logged_in_usernames(sessions: List[LoginSession]) -> Set[str]:
        return {session.owner_username for session in sessions}

    async def find_preferred_session(self, username: str) -> Optional[LoginSession]:
        sessions = await self.list_sessions()
        return self.preferred_sessions(sessions).get(username)

    async def activate_session(self, session_id: str) -> bool:
        manager = await self._ensure_manager()
        if manager is None:
            return False
        try:
            await manager.activate_session(session_id)
        except KiwiMenuError as e:
            self.logger.error(
                f"Failed to activate user session via login1 D-Bus: {e}",
                session_id=session_id,
            )
            return False
        self.logger.info(f"Activated session {session_id}")
        return True

    def request_greeter_handoff(self) -> None:
        """
        Locks the session (when a locker is configured) and switches to the
        login screen once the next frame has been drawn.
        """
        if self._destroyed:
            return
        if self._screen_locker is not None and not self._screen_locker.lock():
            self.logger.warning("Screen lock request failed; switching anyway.")
        self._handoff.schedule(self._on_frame_complete)

    def _on_frame_complete(self) -> None:
        self._concurrency.run_in_async_task(self._goto_login_session())

    async def _goto_login_session(self) -> bool:
        if self._greeter is None:
            self.logger.warning("No greeter available to switch to the login screen.")
            return False
        try:
            await self._greeter.goto_login_session()
            return True
        except KiwiMenuError as e:
            self.logger.error(f"Failed to switch to the login session: {e}")
        notifier = self.context.notifier
        if notifier is not None:
            _ = self.context.translate
            await notifier.notify_send(
                _("User Switcher"),
                _("Could not switch to the login screen"),
                "dialog-error-symbolic",
            )
        return False

    def destroy(self) -> None:
        self._destroyed = True
        self._handoff.cancel()
        self._concurrency.cleanup_tasks()
        self._signals.clear()
        if self._manager is not None:
            try:
                self._manager.off_sessions_changed(self._on_sessions_changed)
                self._manager.disconnect()
            except Exception as e:
                self.logger.error(f"Failed to release login1 Manager proxy: {e}")
            self._manager = None
