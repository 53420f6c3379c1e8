# storefront/database.py
from sqlmodel import SQLModel, create_engine, Session

from storefront.core.config import get_settings

settings = get_settings()


def engine_options(url: str) -> tuple[str, dict]:
    """
    Connection URL and engine kwargs for `create_engine`.

    Supabase Postgres (via the pooler):
      - sslmode=require is appended unless the URL already sets sslmode
      - a single pooled connection (pool_size=1, max_overflow=0); Session
        mode caps clients and the default pool of 5+ runs into
        "MaxClientsInSessionMode: max clients reached"

    Any other URL (SQLite for local runs and tests) keeps SQLAlchemy's
    defaults.
    """
    options: dict = {"echo": False, "pool_pre_ping": True}
    if not url.startswith("postgres"):
        return url, options

    if "sslmode=" not in url:
        url += ("&" if "?" in url else "?") + "sslmode=require"
    options.update(pool_size=1, max_overflow=0)
    return url, options


_url, _options = engine_options(settings.DATABASE_URL)
engine = create_engine(_url, **_options)


def create_db_and_tables() -> None:
    """Create missing tables; called once from the app lifespan."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency yielding one Session per request.

    Services own the commits; an uncommitted session is rolled back when
    the request ends.
    """
    with Session(engine) as session:
        yield session
