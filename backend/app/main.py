from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.routes import router
from app.services.scenario_store import scenario_store

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

VERSION = "1.0.0"

app = FastAPI(
    title=settings.app_name,
    description=(
        "Turn a site's gross area into a land-use program. "
        "Allocate land uses, rebalance percentages, and estimate "
        "cost, revenue and profit for a masterplan scenario."
    ),
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins + ["http://localhost:8000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": VERSION,
        "endpoints": {
            "api_docs": "/docs",
            "health": "/health",
            "catalog": "GET /api/v1/catalog",
            "presets": "GET /api/v1/presets",
            "create_scenario": "POST /api/v1/scenarios",
            "summary": "GET /api/v1/scenarios/{id}/summary",
            "set_allocation": "PUT /api/v1/scenarios/{id}/allocations/{category_id}",
            "rebalance": "POST /api/v1/scenarios/{id}/rebalance",
            "export_pdf": "GET /api/v1/scenarios/{id}/export/pdf",
            "export_xlsx": "GET /api/v1/scenarios/{id}/export/xlsx",
            "import": "POST /api/v1/scenarios/import",
        },
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "version": VERSION,
        "scenarios": len(scenario_store),
    }
