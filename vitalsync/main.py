from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vitalsync.core.config import settings
from vitalsync.core.db import init_db
from vitalsync.core.logging import setup_logging
from vitalsync.core.middleware import StructlogMiddleware
from vitalsync.modules.alerts import router as alerts_router
from vitalsync.modules.notifications import router as notifications_router
from vitalsync.modules.notifications.service import build_dispatcher
from vitalsync.modules.profiles import router as profiles_router
from vitalsync.modules.vitals import router as vitals_router

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    mongo_client = await init_db()
    # One pooled client for every provider call; the timeout bounds each request.
    http_client = httpx.AsyncClient(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
    app.state.mongo_client = mongo_client
    app.state.http_client = http_client
    app.state.dispatcher = build_dispatcher(http_client)

    yield

    # Shutdown
    await http_client.aclose()
    mongo_client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    ## VitalSync API

    This API provides:
    * **Vitals**: Live (or simulated) readings, hourly trends, ECG waveforms and threshold triage
    * **Alerts**: Persisted alerts, resolution, and the ward overview for admins
    * **Notifications**: Alert dispatch to admins by email and to patients by SMS

    ### Authentication
    Endpoints other than `/notifications/send-alert` and `/health` expect a
    Bearer token issued by the identity provider.
    """,
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(StructlogMiddleware)

app.include_router(
    vitals_router.router, prefix=f"{settings.API_V1_STR}/vitals", tags=["vitals"]
)
app.include_router(
    alerts_router.router, prefix=f"{settings.API_V1_STR}/alerts", tags=["alerts"]
)
app.include_router(
    notifications_router.router,
    prefix=f"{settings.API_V1_STR}/notifications",
    tags=["notifications"],
)
app.include_router(
    profiles_router.router, prefix=f"{settings.API_V1_STR}/patients", tags=["patients"]
)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
