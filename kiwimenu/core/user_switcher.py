import locale
from typing import Any, List, Optional

from kiwimenu.core.models import (
    MINIMUM_VISIBLE_UID,
    SwitchAction,
    SwitchableUser,
    UserAccount,
)


def collation_key(name: str) -> str:
    """Locale-aware, case-insensitive sort key."""
    folded = name.casefold()
    try:
        return locale.strxfrm(folded)
    except (ValueError, OSError):
        return folded


def use_environment_collation(logger: Any) -> bool:
    """Applies LC_COLLATE from the environment so ``collation_key`` follows it."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Sorting user names by code point: {e}")
        return False
    return True


class UserSwitchCoordinator:
    """
    Joins the account directory with logind sessions into the switcher's
    view model and turns a selection into an action.
    """

    def __init__(
        self,
        directory: Any,
        registry: Any,
        current_user_provider: Any,
        logger: Any,
        minimum_uid: int = MINIMUM_VISIBLE_UID,
    ):
        self.directory = directory
        self.registry = registry
        self.current_user_provider = current_user_provider
        self.logger = logger
        self.minimum_uid = minimum_uid

    def is_visible(self, account: UserAccount, current_username: str) -> bool:
        if account.username == current_username:
            return True
        return account.is_real_user(self.minimum_uid)

    def sort_rows(self, rows: List[SwitchableUser]) -> List[SwitchableUser]:
        # sorted() is stable, so equal display names keep directory order
        return sorted(
            rows,
            key=lambda row: (not row.is_current_user, collation_key(row.display_name)),
        )

    async def build_view_model(
        self, current_username: Optional[str] = None
    ) -> List[SwitchableUser]:
        if current_username is None:
            current_username = self.current_user_provider()
        accounts = [
            account
            for account in self.directory.list_accounts()
            if self.is_visible(account, current_username)
        ]
        if not accounts:
            return []
        sessions = await self.registry.list_sessions()
        preferred = self.registry.preferred_sessions(sessions)
        signed_in = self.registry.logged_in_usernames(sessions)
        rows = [
            SwitchableUser(
                account=account,
                is_current_user=account.username == current_username,
                is_logged_in=account.username in preferred,
                has_any_session=account.username in signed_in,
                preferred_session=preferred.get(account.username),
            )
            for account in accounts
        ]
        return self.sort_rows(rows)

    async def select_user(self, username: str) -> SwitchAction:
        if not username:
            return SwitchAction.NO_OP
        if username == self.current_user_provider():
            return SwitchAction.NO_OP
        session = await self.registry.find_preferred_session(username)
        if session is not None and await self.registry.activate_session(
            session.session_id
        ):
            self.logger.info(f"Switched to {username} (session {session.session_id})")
            return SwitchAction.ACTIVATED
        if session is None:
            self.logger.info(f"No session for {username}; going to the login screen.")
        self.registry.request_greeter_handoff()
        return SwitchAction.FALLBACK_TO_GREETER
