# src/config.py
"""
Configuration loader with validation and safe error handling.

- Reads optional clean.toml (or a provided path) with [scan] and [analysis].
- Provides defaults if file is absent.
- Validates and normalizes paths, extensions and analysis thresholds.
- Exposes a typed configuration object used by the CLI and engine.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from errors import ConfigLoadError
from media import DEFAULT_SCREENSHOT_MARKERS


class AnalysisConfig(BaseModel):
    """Thresholds and batching for the streaming classifier."""

    phash_threshold: int = Field(10, ge=0, description="Max Hamming for similar")
    blur_threshold: float = Field(
        250.0, description="Laplacian variance below this counts as blurry"
    )
    regroup_every: int = Field(
        50, description="Emit a snapshot every N processed items (min 1)"
    )
    discard_bytes_after_processing: bool = True
    normalize_size: int = Field(256, gt=0, description="Side of the normalized grid")
    hash_size: int = 32
    dct_size: int = 8

    @field_validator("regroup_every", mode="after")
    @classmethod
    def _clamp_regroup(cls, v: int) -> int:
        return max(1, v)


class ScanConfig(BaseModel):
    """Configuration governing filesystem scanning."""

    roots: List[Path] = Field(default_factory=list, description="Folders to scan")
    follow_symlinks: bool = False
    ignore_hidden: bool = True
    include_ext: List[str] = Field(
        default_factory=lambda: [
            ".jpg",
            ".jpeg",
            ".png",
            ".bmp",
            ".webp",
            ".gif",
            ".tif",
            ".tiff",
            ".heic",
        ],
        description="File extensions (lowercase) to include during scan.",
    )
    screenshot_markers: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SCREENSHOT_MARKERS),
        description="Case-insensitive filename fragments that mark a screenshot.",
    )

    @field_validator("roots", mode="after")
    @classmethod
    def _expand_roots(cls, v: List[Path]) -> List[Path]:
        """Expand ~ and make absolute paths for reliability."""
        return [Path(os.path.expanduser(str(p))).resolve() for p in v]

    @field_validator("include_ext", mode="after")
    @classmethod
    def _normalize_exts(cls, v: List[str]) -> List[str]:
        """Normalize extensions to lowercase and ensure they begin with a dot."""
        normed: List[str] = []
        for e in v:
            e = e.strip().lower()
            if not e:
                continue
            if not e.startswith("."):
                e = "." + e
            normed.append(e)
        return normed


_ENV_OVERRIDES: List[tuple[str, str, Callable[[str], object]]] = [
    ("PCLEAN_PHASH_THRESHOLD", "phash_threshold", int),
    ("PCLEAN_BLUR_THRESHOLD", "blur_threshold", float),
    ("PCLEAN_REGROUP_EVERY", "regroup_every", int),
]


class AppConfig(BaseModel):
    """Root application configuration object."""

    scan: ScanConfig = ScanConfig()
    analysis: AnalysisConfig = AnalysisConfig()

    @staticmethod
    def load(path: Optional[Path] = None) -> "AppConfig":
        """
        Load config from TOML if present; otherwise return defaults.

        Load order:
          1) Provided path (if any).
          2) ./clean.toml in the current working directory.
        Env overrides (applied last):
          - PCLEAN_PHASH_THRESHOLD, PCLEAN_BLUR_THRESHOLD, PCLEAN_REGROUP_EVERY

        Raises:
            ConfigLoadError: if the file is unreadable/invalid, or an override is bad.
        """
        import tomllib

        cfg = AppConfig()
        toml_path = path or (Path.cwd() / "clean.toml")

        if path is not None and not toml_path.exists():
            raise ConfigLoadError(f"Config file not found: {toml_path}")

        if toml_path.exists():
            try:
                raw_text = toml_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigLoadError(
                    f"Failed to read config file: {toml_path}"
                ) from exc

            try:
                data = tomllib.loads(raw_text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigLoadError(
                    f"Invalid TOML in config file: {toml_path}"
                ) from exc

            try:
                cfg = AppConfig(
                    scan=ScanConfig(**data.get("scan", {})),
                    analysis=AnalysisConfig(**data.get("analysis", {})),
                )
            except ValidationError as exc:
                raise ConfigLoadError(
                    f"Invalid configuration values in {toml_path}"
                ) from exc

        overrides = {}
        for env_name, field_name, conv in _ENV_OVERRIDES:
            raw = os.getenv(env_name)
            if not raw:
                continue
            try:
                overrides[field_name] = conv(raw)
            except ValueError as exc:
                raise ConfigLoadError(f"Invalid {env_name} value: {raw}") from exc

        if overrides:
            try:
                cfg.analysis = AnalysisConfig(
                    **{**cfg.analysis.model_dump(), **overrides}
                )
            except ValidationError as exc:
                raise ConfigLoadError(f"Invalid environment overrides: {overrides}") from exc

        return cfg
