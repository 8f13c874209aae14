"""Tests for the view model and the selection flow."""

import locale

import pytest

from kiwimenu.core.models import SwitchAction, SwitchableUser, UserAccount
from kiwimenu.core.user_switcher import UserSwitchCoordinator, use_environment_collation
from conftest import CURRENT_USER, settle, user_record


@pytest.fixture
def coordinator(directory, registry, logger):
    return UserSwitchCoordinator(directory, registry, lambda: CURRENT_USER, logger)


UTF8_LOCALES = ("en_US.UTF-8", "en_US.utf8", "en_GB.UTF-8", "de_DE.UTF-8")


@pytest.fixture
def utf8_collation(monkeypatch):
    saved = locale.setlocale(locale.LC_COLLATE)
    for name in UTF8_LOCALES:
        try:
            locale.setlocale(locale.LC_COLLATE, name)
        except locale.Error:
            continue
        break
    else:
        pytest.skip("no UTF-8 locale with language collation installed")
    monkeypatch.setenv("LC_ALL", name)
    yield name
    locale.setlocale(locale.LC_COLLATE, saved)


@pytest.fixture
def add_users(accounts_client):
    def add(*records):
        for record in records:
            accounts_client.add_user(record)

    return add


@pytest.mark.asyncio
async def test_empty_when_not_loaded(coordinator, login_manager):
    assert await coordinator.build_view_model() == []
    assert login_manager.list_calls == 0


@pytest.mark.asyncio
async def test_current_user_first_then_sorted(coordinator, directory, add_users):
    await directory.load()
    add_users(
        user_record("zed", 1003, "zoe"),
        user_record("bob", 1001, "Bob"),
        user_record("carl", 1002, "Åsa"),
        user_record("dan", 1004, "adam"),
    )
    await settle()

    rows = await coordinator.build_view_model()

    assert rows[0].username == CURRENT_USER
    assert rows[0].is_current_user is True
    rest = [row.display_name for row in rows[1:]]
    assert rest.index("adam") < rest.index("Bob") < rest.index("zoe")
    assert all(not row.is_current_user for row in rows[1:])


@pytest.mark.asyncio
async def test_accented_names_follow_the_environment_locale(
    coordinator, directory, add_users, logger, utf8_collation
):
    locale.setlocale(locale.LC_COLLATE, "C")
    assert use_environment_collation(logger) is True
    await directory.load()
    add_users(
        user_record("zed", 1003, "Zoe"),
        user_record("emile", 1001, "Émile"),
    )
    await settle()

    rows = await coordinator.build_view_model()

    assert [row.display_name for row in rows[1:]] == ["Émile", "Zoe"]


def test_unknown_environment_locale_keeps_the_previous_collation(monkeypatch, logger):
    saved = locale.setlocale(locale.LC_COLLATE)
    monkeypatch.setenv("LC_ALL", "xx_XX.NOPE")

    assert use_environment_collation(logger) is False
    assert locale.setlocale(locale.LC_COLLATE) == saved


@pytest.mark.asyncio
async def test_system_and_low_uid_accounts_hidden(coordinator, directory):
    await directory.load()
    rows = await coordinator.build_view_model()
    assert [row.username for row in rows] == [CURRENT_USER]


@pytest.mark.asyncio
async def test_current_user_always_listed(directory, registry, logger):
    await directory.load()
    coordinator = UserSwitchCoordinator(directory, registry, lambda: "root", logger)

    rows = await coordinator.build_view_model()

    assert rows[0].username == "root"
    assert rows[0].is_current_user is True


@pytest.mark.asyncio
async def test_session_flags(coordinator, directory, add_users, login_manager):
    await directory.load()
    add_users(user_record("bob", 1001, "Bob"), user_record("carol", 1002, "Carol"))
    await settle()
    login_manager.add_session("c1", "alice", active=True)
    login_manager.add_session("c2", "bob", session_class="background")
    login_manager.add_session("c3", "carol")

    rows = {row.username: row for row in await coordinator.build_view_model()}

    assert login_manager.list_calls == 1
    assert rows["bob"].is_logged_in is False
    assert rows["bob"].has_any_session is True
    assert rows["bob"].is_signed_in is True
    assert rows["carol"].is_logged_in is True
    assert rows["carol"].preferred_session.session_id == "c3"


@pytest.mark.asyncio
async def test_view_model_is_idempotent(coordinator, directory, add_users, login_manager):
    await directory.load()
    add_users(user_record("bob", 1001, "Bob"))
    await settle()
    login_manager.add_session("c3", "bob")

    first = await coordinator.build_view_model()
    second = await coordinator.build_view_model()

    assert first == second


def test_equal_display_names_keep_directory_order(coordinator):
    rows = [
        SwitchableUser(UserAccount(1002, "sam2", "Sam")),
        SwitchableUser(UserAccount(1001, "sam1", "Sam")),
    ]
    assert [row.username for row in coordinator.sort_rows(rows)] == ["sam2", "sam1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("username", ["", CURRENT_USER])
async def test_select_noop(coordinator, login_manager, greeter, username):
    login_manager.add_session("c1", CURRENT_USER, active=True)

    assert await coordinator.select_user(username) is SwitchAction.NO_OP
    assert login_manager.activated == []
    assert login_manager.list_calls == 0
    assert greeter.calls == 0


@pytest.mark.asyncio
async def test_select_activates_preferred_session(coordinator, login_manager, locker):
    login_manager.add_session("c2", "bob")
    login_manager.add_session("c3", "bob", active=True)

    assert await coordinator.select_user("bob") is SwitchAction.ACTIVATED
    assert login_manager.activated == ["c3"]
    assert locker.calls == 0


@pytest.mark.asyncio
async def test_select_without_session_falls_back_to_greeter(
    coordinator, registry, login_manager, frame_clock, greeter
):
    login_manager.add_session("c4", "bob", session_class="greeter")

    assert await coordinator.select_user("bob") is SwitchAction.FALLBACK_TO_GREETER
    assert login_manager.activated == []
    assert registry.handoff_pending is True

    frame_clock.fire()
    await settle()
    assert greeter.calls == 1


@pytest.mark.asyncio
async def test_select_activation_failure_falls_back(
    coordinator, registry, login_manager
):
    login_manager.add_session("c2", "bob")
    login_manager.fail_activate = True

    assert await coordinator.select_user("bob") is SwitchAction.FALLBACK_TO_GREETER
    assert registry.handoff_pending is True
