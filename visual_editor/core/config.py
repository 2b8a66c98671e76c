# ------------------------------------------------------------
# Module: visual_editor/core/config.py
# Purpose: Central, typed application settings with optional env overrides.
# ------------------------------------------------------------

"""Typed configuration hub for the visual editor backend.

Responsibilities
----------------
- Provide strongly-typed paths, toggles, layout constants and engine parameters.
- Load an optional `.env` and apply a small, explicit set of env overrides.

Notes
-----
- Import `settings` anywhere; do not re-create Settings() in feature code.
- Layout constants mirror the canvas so server-side layouts match the editor.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, computed_field, field_validator

# Load variables from .env file (if present)
load_dotenv()

ENV_PREFIX = "VISUAL_EDITOR_"


def _detect_project_root() -> Path:
    """Locate repo root (directory containing pyproject.toml)."""
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    # Fallback: 2 levels up from .../visual_editor/core/config.py
    return here.parents[2]


class Settings(BaseModel):
    """
    Application configuration.

    Notes
    -----
    - Extras are forbidden to surface typos/unknown keys early.
    - Paths are resolved to absolute; directories are created by the storage layer.
    """

    model_config = dict(extra="forbid")

    PROJECT_ROOT: Path = Field(default_factory=_detect_project_root)
    DATA_DIR: Path = Field(default_factory=lambda: _detect_project_root() / "data")

    # App toggles
    APP_ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    ACCESS_LOG: bool = True
    MUTE_ALL_LOGS: bool = False
    # Per-logger overrides, e.g. "visual_editor.evaluation=DEBUG,urllib3=WARNING"
    LOG_LEVELS: dict[str, str] = Field(default_factory=lambda: {"urllib3": "WARNING"})
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:4565",
        "tauri://localhost",
    ]

    # ---- Canvas layout (tree -> graph) ----
    LAYOUT_POS_SCALE: float = Field(0.333, gt=0.0)
    LAYOUT_BOX_SPREAD: float = Field(500.0, ge=0.0, description="Total width shared by box children")
    LAYOUT_BOX_STEP_Y: float = Field(600.0, ge=0.0, description="Vertical step below a box (scaled)")
    LAYOUT_GATE_OFFSET_X: float = Field(400.0, ge=0.0, description="Gate child offset (scaled)")
    LAYOUT_GATE_STEP_Y: float = Field(500.0, ge=0.0, description="Vertical step below a gate (scaled)")

    # ---- Evaluation engine ----
    EVAL_ENGINE_URL: str = "http://127.0.0.1:3000"
    EVAL_ENGINE_PATH: str = "/ocel/check-constraints-box"
    EVAL_TIMEOUT_S: float = Field(300.0, gt=0.0)
    EVAL_SITUATION_SAMPLE: int = Field(1000, ge=0, description="Situations kept per node")

    # ---- Persistence ----
    SAVE_DEBOUNCE_S: float = Field(1.0, ge=0.0, description="Coalescing window for snapshot writes")

    # Accept comma-separated string or list for CORS_ORIGINS; normalize to list[str].
    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _coerce_origins(cls, v: str | list[str]):
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("LOG_LEVELS", mode="before")
    @classmethod
    def _coerce_levels(cls, v: str | dict[str, str]):
        if isinstance(v, str):
            pairs = (item.split("=", 1) for item in v.split(",") if "=" in item)
            return {name.strip(): level.strip().upper() for name, level in pairs if name.strip()}
        return {k: str(lvl).upper() for k, lvl in v.items()}

    @field_validator("DATA_DIR", mode="before")
    @classmethod
    def _coerce_path(cls, v: str | Path):
        return v if isinstance(v, Path) else Path(v).expanduser()

    @field_validator("DATA_DIR", mode="after")
    @classmethod
    def _abs_path(cls, v: Path):
        return v.resolve()

    @computed_field(return_type=Path)
    def snapshot_db(self) -> Path:
        """SQLite file holding document metadata and graph snapshots."""
        return self.DATA_DIR / "snapshots.sqlite"

    @computed_field(return_type=str)
    def eval_endpoint(self) -> str:
        """Full URL of the engine's box-tree evaluation route."""
        return self.EVAL_ENGINE_URL.rstrip("/") + "/" + self.EVAL_ENGINE_PATH.lstrip("/")


# Fields that may be overridden from the environment (VISUAL_EDITOR_<NAME>).
_ENV_FIELDS = (
    "DATA_DIR",
    "APP_ENV",
    "LOG_LEVEL",
    "ACCESS_LOG",
    "MUTE_ALL_LOGS",
    "LOG_LEVELS",
    "CORS_ORIGINS",
    "EVAL_ENGINE_URL",
    "EVAL_TIMEOUT_S",
    "EVAL_SITUATION_SAMPLE",
    "SAVE_DEBOUNCE_S",
)


def settings_from_env(**overrides) -> Settings:
    """Create a Settings instance with VISUAL_EDITOR_* env values and explicit overrides."""
    values: dict = {}
    for name in _ENV_FIELDS:
        raw = os.getenv(ENV_PREFIX + name)
        if raw is not None and raw != "":
            values[name] = raw
    values.update(overrides)
    return Settings(**values)


# Eagerly instantiate once at import.
settings = settings_from_env()
