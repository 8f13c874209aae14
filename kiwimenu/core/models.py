import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from kiwimenu.core.errors import DataAnomaly

MINIMUM_VISIBLE_UID = 1000


class SessionClass(enum.Enum):
    USER = "user"
    OTHER = "other"

    @classmethod
    def from_raw(cls, value: Any) -> "SessionClass":
        """Maps a logind ``Class`` property value; anything but "user" is OTHER."""
        if isinstance(value, str) and value == cls.USER.value:
            return cls.USER
        return cls.OTHER


class SwitchAction(enum.Enum):
    NO_OP = "no-op"
    ACTIVATED = "activated"
    FALLBACK_TO_GREETER = "fallback-to-greeter"


@dataclass(frozen=True)
class UserAccount:
    uid: int
    username: str
    display_name: str
    is_system_account: bool = False
    icon_file: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "UserAccount":
        """
        Builds an account from a raw AccountsService record.

        Raises:
            DataAnomaly: the record is not loaded, has no username, or its uid
                is unparsable or negative.
        """
        if not record.get("is_loaded", True):
            raise DataAnomaly("record not loaded yet")
        username = record.get("username") or ""
        if not isinstance(username, str) or not username.strip():
            raise DataAnomaly("record without username")
        try:
            uid = int(str(record.get("uid")).strip())
        except (TypeError, ValueError):
            raise DataAnomaly(f"unparsable uid for {username}: {record.get('uid')!r}")
        if uid < 0:
            raise DataAnomaly(f"negative uid for {username}: {uid}")
        real_name = record.get("real_name") or ""
        if not isinstance(real_name, str):
            real_name = ""
        return cls(
            uid=uid,
            username=username,
            display_name=real_name.strip() or username,
            is_system_account=bool(record.get("system_account", False)),
            icon_file=record.get("icon_file") or None,
        )

    def is_real_user(self, minimum_uid: int = MINIMUM_VISIBLE_UID) -> bool:
        return self.uid >= minimum_uid and not self.is_system_account


@dataclass(frozen=True)
class LoginSession:
    session_id: str
    owner_username: str
    seat: Optional[str] = None
    session_class: SessionClass = SessionClass.OTHER
    is_active: bool = False
    object_path: Optional[str] = None

    @property
    def is_user_session(self) -> bool:
        return self.session_class is SessionClass.USER


@dataclass(frozen=True)
class SwitchableUser:
    account: UserAccount
    is_current_user: bool = False
    is_logged_in: bool = False
    has_any_session: bool = False
    preferred_session: Optional[LoginSession] = None

    @property
    def username(self) -> str:
        return self.account.username

    @property
    def display_name(self) -> str:
        return self.account.display_name

    @property
    def is_signed_in(self) -> bool:
        # raw presence is only a fallback for the badge, never for activation
        return self.is_logged_in or self.has_any_session
