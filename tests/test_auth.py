"""Sign-in flows against a fake Supabase Auth client."""

import uuid
from types import SimpleNamespace

import pytest
from supabase import AuthError

from conftest import auth_headers
from storefront.core.constants import CART_COOKIE
from storefront.models.user import User

API = "/api/v1/auth"


class FakeAuthError(AuthError):
    def __init__(self, message: str):
        Exception.__init__(self, message)


def _auth_response(user_id, email, metadata=None, with_session=True):
    session = (
        SimpleNamespace(access_token="access-1", refresh_token="refresh-1", expires_in=3600)
        if with_session
        else None
    )
    return SimpleNamespace(
        user=SimpleNamespace(id=str(user_id), email=email, user_metadata=metadata or {}),
        session=session,
    )


class FakeAuth:
    """Records calls; `accounts` maps email -> (password, user id, metadata)."""

    def __init__(self):
        self.accounts: dict[str, tuple[str, uuid.UUID, dict]] = {}
        self.calls: list[tuple] = []
        self.admin = SimpleNamespace(
            sign_out=lambda token: self.calls.append(("sign_out", token)),
            update_user_by_id=lambda uid, attrs: self.calls.append(("update", uid, attrs)),
        )

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials")
        _, user_id, metadata = account
        return _auth_response(user_id, credentials["email"], metadata)

    def sign_up(self, credentials):
        if credentials["email"] in self.accounts:
            raise FakeAuthError("User already registered")
        user_id = uuid.uuid4()
        metadata = credentials["options"]["data"]
        self.accounts[credentials["email"]] = (credentials["password"], user_id, metadata)
        # e-mail confirmation pending: no session yet
        return _auth_response(user_id, credentials["email"], metadata, with_session=False)

    def refresh_session(self, refresh_token):
        if refresh_token != "refresh-1":
            raise FakeAuthError("Invalid Refresh Token")
        email, (_, user_id, metadata) = next(iter(self.accounts.items()))
        return _auth_response(user_id, email, metadata)

    def reset_password_for_email(self, email, options):
        self.calls.append(("reset", email, options))


@pytest.fixture
def fake_auth(monkeypatch):
    auth = FakeAuth()
    client = SimpleNamespace(auth=auth)
    monkeypatch.setattr("storefront.services.auth_service.supabase_public", lambda: client)
    monkeypatch.setattr("storefront.services.auth_service.supabase_admin", lambda: client)
    return auth


def test_login_returns_tokens_and_profile(client, retail_user, fake_auth):
    fake_auth.accounts["sara@example.com"] = ("secret1", retail_user.id, {})
    res = client.post(
        f"{API}/login", json={"email": "sara@example.com", "password": "secret1"}
    )
    assert res.status_code == 200
    body = res.json()
    assert body["access_token"] == "access-1"
    assert body["user"]["id"] == str(retail_user.id)
    assert body["user"]["user_type"] == "b2c"


def test_login_creates_missing_profile(client, session, fake_auth):
    user_id = uuid.uuid4()
    fake_auth.accounts["office@example.com"] = (
        "secret1",
        user_id,
        {"full_name": "شرکت نمونه", "user_type": "b2b", "company_name": "نمونه"},
    )
    body = client.post(
        f"{API}/login", json={"email": "office@example.com", "password": "secret1"}
    ).json()
    assert body["user"]["user_type"] == "b2b"
    assert session.get(User, user_id).company_name == "نمونه"


def test_wrong_password(client, retail_user, fake_auth):
    fake_auth.accounts["sara@example.com"] = ("secret1", retail_user.id, {})
    res = client.post(
        f"{API}/login", json={"email": "sara@example.com", "password": "nope"}
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "ایمیل یا رمز عبور اشتباه است"


def test_remember_me_keeps_email(client, retail_user, fake_auth):
    fake_auth.accounts["sara@example.com"] = ("secret1", retail_user.id, {})
    assert client.get(f"{API}/remembered-email").json() == {"email": None}

    client.post(
        f"{API}/login",
        json={"email": "sara@example.com", "password": "secret1", "remember": True},
    )
    assert client.get(f"{API}/remembered-email").json() == {"email": "sara@example.com"}

    client.post(f"{API}/login", json={"email": "sara@example.com", "password": "secret1"})
    assert client.get(f"{API}/remembered-email").json() == {"email": None}


def test_login_moves_guest_cart_into_account(client, catalog, retail_user, fake_auth):
    fake_auth.accounts["sara@example.com"] = ("secret1", retail_user.id, {})
    client.post("/api/v1/cart/items", json={"product_id": str(catalog.pen.id), "quantity": 2})
    assert client.cookies.get(CART_COOKIE)

    client.post(f"{API}/login", json={"email": "sara@example.com", "password": "secret1"})
    assert not client.cookies.get(CART_COOKIE)

    cart = client.get("/api/v1/cart", headers=auth_headers(retail_user)).json()
    assert cart["is_guest"] is False
    assert [(ln["product_id"], ln["quantity"]) for ln in cart["items"]] == [
        (str(catalog.pen.id), 2)
    ]


def test_register(client, session, fake_auth):
    payload = {
        "email": "new@example.com",
        "password": "secret1",
        "full_name": "کاربر جدید",
        "phone": "۰۹۱۲۱۲۳۴۵۶۷",
        "user_type": "b2b",
        "company_name": "شرکت جدید",
    }
    res = client.post(f"{API}/register", json=payload)
    assert res.status_code == 201
    body = res.json()
    assert body["access_token"] is None
    assert body["user"]["phone"] == "09121234567"
    assert body["user"]["user_type"] == "b2b"

    again = client.post(f"{API}/register", json=payload)
    assert again.status_code == 400
    assert again.json()["detail"] == "این ایمیل قبلاً ثبت شده است"


def test_register_validation(client, fake_auth):
    res = client.post(
        f"{API}/register",
        json={"email": "new@example.com", "password": "123", "full_name": "x"},
    )
    assert res.status_code == 422


def test_refresh(client, retail_user, fake_auth):
    fake_auth.accounts["sara@example.com"] = ("secret1", retail_user.id, {})
    ok = client.post(f"{API}/refresh", json={"refresh_token": "refresh-1"})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "sara@example.com"

    expired = client.post(f"{API}/refresh", json={"refresh_token": "old"})
    assert expired.status_code == 401


def test_logout_needs_token(client, retail_user, fake_auth):
    assert client.post(f"{API}/logout").status_code == 401

    headers = auth_headers(retail_user)
    res = client.post(f"{API}/logout", headers=headers)
    assert res.status_code == 200
    assert fake_auth.calls == [("sign_out", headers["Authorization"].split()[1])]


def test_reset_password_redirects_to_site(client, fake_auth):
    res = client.post(f"{API}/reset-password", json={"email": "sara@example.com"})
    assert res.status_code == 200
    (call,) = fake_auth.calls
    assert call[0] == "reset"
    assert call[2]["redirect_to"].endswith("/auth/reset-password")


def test_change_password(client, retail_user, fake_auth):
    res = client.post(
        f"{API}/change-password",
        json={"new_password": "new-secret"},
        headers=auth_headers(retail_user),
    )
    assert res.status_code == 200
    assert fake_auth.calls == [("update", str(retail_user.id), {"password": "new-secret"})]

    assert client.post(f"{API}/change-password", json={"new_password": "new-secret"}).status_code == 401


def test_auth_state(client, wholesale_user):
    assert client.get(f"{API}/state").json() == {
        "is_authenticated": False,
        "user_type": None,
        "is_b2b": False,
        "is_b2c": False,
        "is_verified": False,
    }
    state = client.get(f"{API}/state", headers=auth_headers(wholesale_user)).json()
    assert state["is_authenticated"] is True
    assert state["is_b2b"] is True
    assert state["is_b2c"] is False
