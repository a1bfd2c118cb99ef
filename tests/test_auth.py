from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlmodel import Session

from looom import auth
from looom.auth import (
    ADMIN_SESSION_EXPIRY_KEY,
    ADMIN_SESSION_KEY,
    AdminSessionWatcher,
    admin_login,
    check_admin_session,
    create_access_token,
    epoch_ms,
    get_current_admin,
    verify_admin_credentials,
)
from looom.models import AdminUser
from looom.storage import MemoryStorage

from .conftest import T0


def test_demo_admin_credentials_are_normalized():
    assert verify_admin_credentials("ADMIN@LOOOM.SHOP ", " admin123 ")
    assert not verify_admin_credentials("admin@looom.shop", "admin1234")
    assert not verify_admin_credentials("", "admin123")


def test_login_writes_session_keys():
    storage = MemoryStorage()
    assert admin_login("admin@looom.shop", "admin123", storage, T0)
    assert storage.get_item(ADMIN_SESSION_KEY) == str(epoch_ms(T0))
    assert storage.get_item(ADMIN_SESSION_EXPIRY_KEY) == str(epoch_ms(T0 + timedelta(hours=8)))


def test_failed_login_leaves_storage_untouched():
    storage = MemoryStorage()
    assert not admin_login("admin@looom.shop", "nope", storage, T0)
    assert storage.keys() == []


def test_session_expires_after_eight_hours():
    storage = MemoryStorage()
    admin_login("admin@looom.shop", "admin123", storage, T0)

    assert check_admin_session(storage, T0 + timedelta(hours=7, minutes=59))
    assert not check_admin_session(storage, T0 + timedelta(hours=8, seconds=1))
    assert storage.get_item(ADMIN_SESSION_KEY) is None
    assert storage.get_item(ADMIN_SESSION_EXPIRY_KEY) is None


def test_session_with_garbled_expiry_is_cleared():
    storage = MemoryStorage({ADMIN_SESSION_KEY: "1", ADMIN_SESSION_EXPIRY_KEY: "soon"})
    assert not check_admin_session(storage, T0)
    assert storage.keys() == []


def test_no_session():
    assert not check_admin_session(MemoryStorage(), T0)


def test_watcher_logs_out_when_session_lapses():
    calls = []
    alive = iter([True, False])
    watcher = AdminSessionWatcher(lambda: next(alive), lambda: calls.append("logout"), interval=60)
    assert watcher.tick()
    assert not watcher.tick()
    assert calls == ["logout"]


def test_admin_users_table_in_live_mode(live_db):
    with Session(live_db) as session:
        session.add(AdminUser(email="ops@looom.shop", hashed_password=auth.hash_password("s3cret")))
        session.commit()

    assert verify_admin_credentials("OPS@looom.shop", "s3cret")
    assert not verify_admin_credentials("ops@looom.shop", "wrong")
    # demo credentials do not apply once a backend is configured
    assert not verify_admin_credentials("admin@looom.shop", "admin123")


def test_admin_token_dependency():
    token = create_access_token({"sub": "admin@looom.shop", "role": "admin"})
    assert get_current_admin(token)["sub"] == "admin@looom.shop"


@pytest.mark.parametrize("token,status", [
    (None, 401),
    ("not-a-jwt", 401),
    (create_access_token({"sub": "user_1", "role": "customer"}), 403),
])
def test_admin_token_rejections(token, status):
    with pytest.raises(HTTPException) as err:
        get_current_admin(token)
    assert err.value.status_code == status


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "admin@looom.shop", "role": "admin"}, timedelta(seconds=-1))
    with pytest.raises(HTTPException) as err:
        get_current_admin(token)
    assert err.value.status_code == 401


def test_ensure_admin_user_seeds_once(live_db):
    assert auth.ensure_admin_user(" Owner@Looom.shop", "pw ")
    assert not auth.ensure_admin_user("owner@looom.shop", "other")
    assert verify_admin_credentials("owner@looom.shop", "pw")
