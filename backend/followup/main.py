from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
from followup.config import get_settings
from followup.database import engine, Base
from followup.logging_config import configure_logging
from followup.routers import (
    analytics,
    appointments,
    busca_ativa,
    dashboard,
    patients,
    records,
    visits,
)
from followup.routers import auth as auth_router
import followup.models  # noqa: F401  (registers tables on Base.metadata)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    # Startup: create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("app.started", database=engine.url.render_as_string(hide_password=True))
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Clinical Follow-up Tracker",
    description="Return-date follow-up, Busca Ativa and population analytics",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Clinical data must not be cached by browsers or proxies."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


app.add_middleware(NoCacheMiddleware)

app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
app.include_router(records.router, prefix="/api/records", tags=["Medical Records"])
app.include_router(appointments.router, prefix="/api/appointments", tags=["Appointments"])
app.include_router(visits.router, prefix="/api/visits", tags=["Community Visits"])
app.include_router(busca_ativa.router, prefix="/api/busca-ativa", tags=["Busca Ativa"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "followup-tracker"}
