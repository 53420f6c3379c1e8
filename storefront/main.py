# storefront/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import get_settings
from storefront.database import create_db_and_tables

# Table metadata must be registered before create_all()
import storefront.models.cart  # noqa: F401
import storefront.models.order  # noqa: F401
import storefront.models.product  # noqa: F401
import storefront.models.user  # noqa: F401
from storefront.routers import auth, cart, checkout, contact, orders, products, users

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")

ROUTERS = (
    auth.router,
    users.router,
    products.router,
    cart.router,
    checkout.router,
    orders.router,
    contact.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: check the Supabase Postgres connection and create missing
    tables. Nothing to release on shutdown (sync engine).
    """
    logger.info("Startup: connecting to Supabase Postgres...")
    try:
        create_db_and_tables()
    except SQLAlchemyError as exc:
        logger.error("Startup: DB connection FAILED: %s", exc)
        raise
    logger.info("Startup: DB connection OK, tables verified.")
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    # credentials=True: the guest cart and remembered e-mail travel as cookies
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for router in ROUTERS:
        application.include_router(router, prefix=settings.API_V1_STR)

    @application.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "mojtaba-tahrir-storefront"}

    return application


app = create_app()
