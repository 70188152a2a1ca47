from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from colorspec.api.routers import colors, photos, projects, rooms, synopses
from colorspec.core.config import settings
from colorspec.core.logging import setup_logging
from colorspec.schemas.common import Health

setup_logging(settings.log_level)

app = FastAPI(title="Color Synopsis API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(colors.router)
app.include_router(rooms.router)
app.include_router(projects.router)
app.include_router(photos.router)
app.include_router(synopses.router)


@app.get("/health", response_model=Health)
async def health() -> Health:
    return Health(status="ok", time=datetime.now(timezone.utc))
