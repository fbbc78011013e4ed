"""Global application configuration."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _default_data_dir() -> Path:
    """Return the platform-appropriate data directory."""
    override = os.environ.get("GLYPHINDEX_DATA_DIR")
    if override:
        return Path(override)
    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif os.uname().sysname == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return base / "glyphindex"


class AppConfig(BaseModel):
    """Application-wide settings — loaded once at startup."""

    # Directories
    data_dir: Path = Field(default_factory=_default_data_dir)
    temp_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()) / "glyphindex")

    # OCR
    tesseract_cmd: str = ""                            # Empty = auto-detect
    ocr_language: str = "eng"
    ocr_dpi: int = Field(default=300, ge=72, le=1200)  # reference sampling resolution
    min_ocr_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    # Pages with fewer non-blank native characters than this are treated
    # as scanned and become eligible for OCR.
    min_native_chars: int = Field(default=20, ge=0)

    # Native extraction scale (1.0 = document points)
    base_scale: float = Field(default=1.0, gt=0.0)

    # Rect reconstruction: a glyph stays on the open line while its vertical
    # centre is within this fraction of its own height.
    same_line_tolerance: float = Field(default=0.5, gt=0.0, le=2.0)

    # Custom patterns
    max_custom_pattern_length: int = Field(default=500, ge=1)

    # Server
    host: str = "127.0.0.1"
    port: int = Field(default=8920, ge=0, le=65535)   # 0 = random
    max_upload_mb: int = Field(default=200, ge=1)

    def model_post_init(self, __context: object) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

        # Load any previously-saved user settings from disk
        self._load_user_settings()

    # ------------------------------------------------------------------
    # Persistence: user-editable settings are saved to a JSON sidecar
    # ------------------------------------------------------------------

    # Keys that are persisted when changed via the API
    _PERSISTABLE_KEYS: set[str] = {
        "tesseract_cmd", "ocr_language", "ocr_dpi", "min_ocr_confidence",
        "min_native_chars", "base_scale", "same_line_tolerance",
        "max_custom_pattern_length",
    }

    @property
    def _settings_path(self) -> Path:
        return self.data_dir / "settings.json"

    def _load_user_settings(self) -> None:
        """Read persisted user settings from disk and apply them."""
        path = self._settings_path
        if not path.exists():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8-sig"))
            for key, value in data.items():
                if key in self._PERSISTABLE_KEYS and hasattr(self, key):
                    setattr(self, key, value)
            logger.info(f"Loaded user settings from {path}")
        except Exception as exc:
            logger.warning(f"Failed to load settings from {path}: {exc}")

    def save_user_settings(self) -> None:
        """Persist current user-editable settings to disk."""
        data = {k: getattr(self, k) for k in self._PERSISTABLE_KEYS if hasattr(self, k)}
        try:
            self._settings_path.write_text(
                json.dumps(data, indent=2, default=str),
                encoding="utf-8",
            )
            logger.info(f"Saved user settings to {self._settings_path}")
        except Exception as exc:
            logger.warning(f"Failed to save settings: {exc}")


# Singleton, importable from anywhere
config = AppConfig()
