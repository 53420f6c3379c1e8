"""Profile endpoints and token handling."""

import uuid

from conftest import auth_headers, make_token
from storefront.models.user import User

API = "/api/v1/users/me"

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_profile_requires_sign_in(client):
    res = client.get(API)
    assert res.status_code == 401
    assert res.json()["detail"] == "برای ادامه باید وارد شوید"


def test_expired_token_is_rejected(client, retail_user):
    token = make_token(retail_user, expires_in=-60)
    res = client.get(API, headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_token_with_bad_subject(client, retail_user):
    token = make_token(retail_user, sub="not-a-uuid")
    res = client.get(API, headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["detail"] == "شناسه کاربر در توکن نامعتبر است"


def test_token_without_email(client, retail_user):
    token = make_token(retail_user, email="")
    res = client.get(API, headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["detail"] == "اطلاعات کاربر در توکن یافت نشد"


def test_profile_is_provisioned_from_token(client, session):
    newcomer = User(
        id=uuid.uuid4(),
        email="shop@example.com",
        full_name="لوازم تحریر نمونه",
        user_type="b2b",
    )
    res = client.get(API, headers=auth_headers(newcomer))
    assert res.status_code == 200
    body = res.json()
    assert body["user_type"] == "b2b"
    assert body["role"] == "user"
    assert session.get(User, newcomer.id) is not None


def test_read_me(client, wholesale_user):
    body = client.get(API, headers=auth_headers(wholesale_user)).json()
    assert body["email"] == "buyer@office.ir"
    assert body["company_name"] == "دفتر فنی رضایی"


def test_update_me(client, retail_user):
    headers = auth_headers(retail_user)
    res = client.patch(API, json={"phone": "۰۹۳۵۱۱۱۲۲۳۳", "full_name": "  سارا  "}, headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["phone"] == "09351112233"
    assert body["full_name"] == "سارا"

    assert client.patch(API, json={"phone": "12345"}, headers=headers).status_code == 422
    assert client.patch(API, json={"user_type": "b2b"}, headers=headers).status_code == 422


def test_avatar_rejects_non_images(client, retail_user):
    res = client.post(
        f"{API}/avatar",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(retail_user),
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "نوع فایل پشتیبانی نمی‌شود"


def test_avatar_replaces_previous_file(client, retail_user, monkeypatch):
    uploaded, deleted = [], []

    def fake_upload(path, data, content_type):
        uploaded.append(path)
        return f"https://cdn.example.com/storage/v1/object/public/storefront/{path}"

    monkeypatch.setattr("storefront.services.user_service.upload_to_storage", fake_upload)
    monkeypatch.setattr("storefront.services.user_service.delete_public_url", deleted.append)
    headers = auth_headers(retail_user)

    first = client.post(
        f"{API}/avatar", files={"file": ("me.png", PNG, "image/png")}, headers=headers
    ).json()
    assert uploaded[0].startswith(f"users/{retail_user.id}/avatar-")
    assert uploaded[0].endswith(".png")
    assert deleted == []

    second = client.post(
        f"{API}/avatar", files={"file": ("me.png", PNG, "image/png")}, headers=headers
    ).json()
    assert deleted == [first["avatar_url"]]
    assert second["avatar_url"] != first["avatar_url"]
