"""FastAPI application — text index and redaction-candidate API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import config
from core.errors import InternalIndexError, OCREngineUnavailable
from api.routers import documents, search, settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="glyphindex",
    version="0.1.0",
    description="Glyph-level text index and sensitive-data locator",
)

# CORS: the viewer runs on its own local origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents.router)
app.include_router(search.router)
app.include_router(settings.router)


@app.exception_handler(OCREngineUnavailable)
async def _engine_unavailable(request: Request, exc: OCREngineUnavailable) -> JSONResponse:
    logger.warning(f"OCR engine unavailable: {exc}")
    return JSONResponse(status_code=503, content={"detail": f"OCR engine unavailable: {exc}"})


@app.exception_handler(InternalIndexError)
async def _internal_index_error(request: Request, exc: InternalIndexError) -> JSONResponse:
    logger.error(f"Internal index error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal index error"})


@app.on_event("startup")
async def startup():
    config.temp_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"glyphindex API ready (uploads in {config.temp_dir})")


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
