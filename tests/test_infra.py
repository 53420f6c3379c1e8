"""Settings, engine options, mail and storage helpers."""

import pytest

from storefront.core.config import Settings, get_settings
from storefront.core.email_client import SmtpConfig, build_message, send_email
from storefront.core.storage_utils import generate_filename, path_from_public_url
from storefront.core.supabase_client import _client_for, supabase_admin, supabase_public
from storefront.database import engine_options


def test_postgres_url_gets_ssl_and_single_connection():
    url, options = engine_options("postgresql://u:p@db.example.com:6543/postgres")
    assert url.endswith("?sslmode=require")
    assert options["pool_size"] == 1
    assert options["max_overflow"] == 0

    url, _ = engine_options("postgresql://u:p@host/db?application_name=shop")
    assert url.endswith("&sslmode=require")

    url, _ = engine_options("postgresql://u:p@host/db?sslmode=disable")
    assert url.count("sslmode") == 1


def test_sqlite_url_is_untouched():
    url, options = engine_options("sqlite://")
    assert url == "sqlite://"
    assert "pool_size" not in options


def test_cors_origins_are_comma_separated():
    settings = Settings(CORS_ORIGINS=" https://a.ir, https://b.ir ,")
    assert settings.cors_origins == ["https://a.ir", "https://b.ir"]


def test_message_headers():
    config = SmtpConfig(
        host="smtp.example.com",
        port=465,
        username="shop@example.com",
        password="x",
        from_email="shop@example.com",
        from_name="Mojtaba Tahrir",
        use_tls=False,
        use_ssl=True,
    )
    msg = build_message(
        config, "c@example.com", "سلام", "متن", html_body="<p dir='rtl'>متن</p>", reply_to="r@example.com"
    )
    assert msg["From"] == "Mojtaba Tahrir <shop@example.com>"
    assert msg["Reply-To"] == "r@example.com"
    assert msg.is_multipart()


def test_sender_falls_back_to_username(monkeypatch):
    monkeypatch.setenv("SMTP_USERNAME", "login@example.com")
    monkeypatch.delenv("SMTP_FROM_EMAIL", raising=False)
    config = SmtpConfig.from_env()
    assert config.from_email == "login@example.com"
    assert config.use_tls is True
    assert config.use_ssl is False


def test_send_without_smtp_settings(monkeypatch):
    monkeypatch.delenv("SMTP_HOST", raising=False)
    with pytest.raises(RuntimeError):
        send_email("c@example.com", "subject", "body")


def test_public_url_to_object_path():
    url = "https://abc.supabase.co/storage/v1/object/public/storefront/users/u1/avatar-1.png?t=1"
    assert path_from_public_url(url) == "users/u1/avatar-1.png"
    assert path_from_public_url("https://gravatar.com/avatar/xyz") is None
    assert generate_filename("avatar", "webp").startswith("avatar-")


def test_admin_client_needs_service_role_key(monkeypatch):
    monkeypatch.setattr(get_settings(), "SUPABASE_SERVICE_ROLE_KEY", None)
    with pytest.raises(RuntimeError):
        supabase_admin()


@pytest.fixture
def fresh_clients():
    _client_for.cache_clear()
    yield
    _client_for.cache_clear()


def test_shared_client_keeps_no_customer_session(monkeypatch, fresh_clients):
    created = []

    def fake_create_client(url, key, options=None):
        created.append(options)
        return object()

    monkeypatch.setattr("storefront.core.supabase_client.create_client", fake_create_client)
    assert supabase_public() is supabase_public()

    (options,) = created
    assert options.persist_session is False
    assert options.auto_refresh_token is False
