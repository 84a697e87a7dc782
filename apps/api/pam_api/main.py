from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CONFIG
from .db import initialize_db
from .reference_data import REFERENCE_TABLES_VERSION
from .routes import analytics as analytics_routes
from .routes import checklist as checklist_routes
from .routes import events as events_routes

logger = logging.getLogger(__name__)

initialize_db()

app = FastAPI(
    title="PAM Insights API",
    version="0.1.0",
    description="Activity pattern analytics and personalised checklist schedules",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3001",
    ],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(events_routes.router)
app.include_router(analytics_routes.router)
app.include_router(checklist_routes.router)

logger.info(
    "api configured",
    extra={"event_backend": CONFIG.event_backend, "reference_tables": REFERENCE_TABLES_VERSION},
)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "reference_tables": REFERENCE_TABLES_VERSION}
