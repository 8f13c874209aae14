"""Tests for account record parsing and the session class mapping."""

import pytest

from kiwimenu.core.errors import DataAnomaly
from kiwimenu.core.models import LoginSession, SessionClass, SwitchableUser, UserAccount
from conftest import user_record


class TestUserAccountFromRecord:
    def test_display_name_uses_real_name(self):
        account = UserAccount.from_record(user_record("bob", 1001, "Bob Builder"))
        assert account.uid == 1001
        assert account.username == "bob"
        assert account.display_name == "Bob Builder"
        assert account.is_system_account is False

    def test_display_name_falls_back_to_username(self):
        account = UserAccount.from_record(user_record("bob", 1001, "   "))
        assert account.display_name == "bob"

    def test_uid_given_as_string_is_parsed(self):
        record = user_record("bob")
        record["uid"] = " 1002 "
        assert UserAccount.from_record(record).uid == 1002

    @pytest.mark.parametrize("uid", ["abc", None, "", "12.5"])
    def test_unparsable_uid_is_anomaly(self, uid):
        record = user_record("bob")
        record["uid"] = uid
        with pytest.raises(DataAnomaly):
            UserAccount.from_record(record)

    def test_negative_uid_is_anomaly(self):
        with pytest.raises(DataAnomaly):
            UserAccount.from_record(user_record("bob", -1))

    def test_missing_username_is_anomaly(self):
        with pytest.raises(DataAnomaly):
            UserAccount.from_record(user_record("", 1001))

    def test_not_loaded_record_is_anomaly(self):
        with pytest.raises(DataAnomaly):
            UserAccount.from_record(user_record("bob", 1001, loaded=False))

    @pytest.mark.parametrize(
        "uid,system,expected",
        [(1000, False, True), (999, False, False), (1000, True, False), (65534, False, True)],
    )
    def test_is_real_user(self, uid, system, expected):
        account = UserAccount(uid=uid, username="x", display_name="x", is_system_account=system)
        assert account.is_real_user() is expected


class TestSessionClass:
    def test_user_class(self):
        assert SessionClass.from_raw("user") is SessionClass.USER

    @pytest.mark.parametrize("raw", ["greeter", "lock-screen", "background", None, 3])
    def test_everything_else_is_other(self, raw):
        assert SessionClass.from_raw(raw) is SessionClass.OTHER


def test_signed_in_falls_back_to_raw_presence():
    account = UserAccount(uid=1001, username="bob", display_name="Bob")
    row = SwitchableUser(account=account, is_logged_in=False, has_any_session=True)
    assert row.is_signed_in is True
    assert row.preferred_session is None


def test_login_session_is_immutable():
    session = LoginSession("c1", "bob", session_class=SessionClass.USER)
    with pytest.raises(AttributeError):
        session.is_active = True  # pyright: ignore
