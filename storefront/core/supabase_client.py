# storefront/core/supabase_client.py
from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from storefront.core.config import get_settings


@lru_cache
def _client_for(key: str) -> Client:
    # One client per key, shared by all requests: it must never hold a
    # customer session or refresh one in the background.
    return create_client(
        get_settings().SUPABASE_URL,
        key,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


def supabase_public() -> Client:
    """
    Client with the anon key: sign in / sign up / password reset on behalf
    of a customer and session refresh. Subject to RLS like the browser.
    """
    return _client_for(get_settings().SUPABASE_KEY)


def supabase_admin() -> Client:
    """
    Client with the service role key, for avatar uploads and admin Auth
    calls (password change, sign-out by token). Backend only.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    key = get_settings().SUPABASE_SERVICE_ROLE_KEY
    if not key:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return _client_for(key)
