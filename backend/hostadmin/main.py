from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hostadmin.core.config import settings
import hostadmin.models  # noqa: F401  # force model registration

from hostadmin.api.errors import register_exception_handlers
from hostadmin.api.v1.auth import router as auth_router
from hostadmin.api.v1.hosts import router as hosts_router
from hostadmin.api.v1.subscriptions import router as subscriptions_router
from hostadmin.api.v1.system import router as system_router
from hostadmin.core.logging_setup import setup_logging
from hostadmin.db.session import AsyncSessionLocal
from hostadmin.services.bootstrap import initialize_database
from hostadmin.store.sql import SqlDocumentStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await initialize_database(SqlDocumentStore(AsyncSessionLocal), settings.bootstrap_admin_uids)
    yield


def create_application() -> FastAPI:
    app = FastAPI(title="Host Admin API", lifespan=lifespan)

    # CORS for the admin dashboard (local dev + deployed origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "hostadmin"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(hosts_router, prefix="/api/v1")
    app.include_router(subscriptions_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")

    return app


app = create_application()
