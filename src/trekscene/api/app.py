# src/trekscene/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and configures CORS so a browser-side 3D viewer
served from another origin can fetch prepared scenes. Endpoints live in
`trekscene.api.routes`; the build itself in `trekscene.pipeline.scene`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from trekscene.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="TrekScene API", version="0.1.0")

# Configure via env:
# - TREKSCENE_CORS_ORIGINS="http://localhost:8003,http://127.0.0.1:8003"
# - TREKSCENE_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("TREKSCENE_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("TREKSCENE_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(router)


@app.get("/healthz", include_in_schema=False)
def healthz() -> dict[str, str]:
    return {"status": "ok"}
