"""Application settings."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from core.config import config

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["settings"])


# ---------------------------------------------------------------------------
# Settings update schema
# ---------------------------------------------------------------------------

class SettingsUpdate(BaseModel):
    """Validated partial settings update."""
    tesseract_cmd: Optional[str] = None
    ocr_language: Optional[str] = None
    ocr_dpi: Optional[int] = Field(default=None, ge=72, le=1200)
    min_ocr_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    min_native_chars: Optional[int] = Field(default=None, ge=0)
    base_scale: Optional[float] = Field(default=None, gt=0.0)
    same_line_tolerance: Optional[float] = Field(default=None, gt=0.0, le=2.0)
    max_custom_pattern_length: Optional[int] = Field(default=None, ge=1)


@router.get("/settings")
async def get_settings() -> dict[str, Any]:
    """Get current settings (internal paths are not exposed)."""
    data = config.model_dump(mode="json")
    for key in ("data_dir", "temp_dir"):
        data.pop(key, None)
    return data


@router.patch("/settings")
async def update_settings(body: SettingsUpdate) -> dict[str, Any]:
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(400, "No settings provided")

    for key, value in updates.items():
        setattr(config, key, value)

    if "tesseract_cmd" in updates:
        # Force re-detection with the new binary
        import core.ocr.engine as ocr_engine
        ocr_engine._tesseract_available = None

    config.save_user_settings()
    logger.info(f"Updated settings: {', '.join(sorted(updates))}")
    return await get_settings()
