"""Configuration models used by the scanner.

ScannerConfig

`batch_size` (`int`)
: Number of catalog entries analysed when a scan does not specify a limit.

`pixel_threshold` (`int`)
: Minimum distinction score between the ʻokina and apostrophe snapshots for a
  font to count as visually distinct. Scores must be strictly greater.

`asset_timeout_ms` (`int`)
: Upper bound on the wait for the web font to load before rendering proceeds
  with whatever glyphs are available.

`font_delay` (`float`)
: Pause, in seconds, between two fonts to ease load on the rendering engine.

`max_sessions` (`int`)
: Hard cap on simultaneously open rendering sessions.

`min_glyph_width` (`float`)
: Layout width a probed character must exceed to count as supported.

`font_size` / `phrase_font_size` (`int`)
: Pixel sizes used for the glyph tests and the phrase preview.

`api_key` (`str | None`)
: Optional Google Fonts API key. Raises rate limits, never required.

`catalog_url` (`str`)
: Endpoint of the Google Fonts developer API.

`request_timeout` (`float`)
: Timeout, in seconds, for catalog requests.

`headless` (`bool`) / `browser_args` (`list[str]`)
: Chromium launch options.

SchedulerConfig

`min_interval` (`timedelta`)
: Minimum time between the starts of two incremental batches.

`check_interval` (`float`)
: Seconds between two evaluations of the schedule.

`batch_size` (`int`)
: Window size of incremental batches.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


GOOGLE_FONTS_API_URL = "https://www.googleapis.com/webfonts/v1/webfonts"
API_KEY_ENV = "GOOGLE_FONTS_API_KEY"
_DAYS_ADAPTER: TypeAdapter[float] = TypeAdapter(float)

DEFAULT_BROWSER_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
)


class ScannerConfig(BaseModel):
    """Tunables for catalog access, rendering and classification."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    batch_size: int = Field(default=50, ge=1)
    pixel_threshold: int = Field(default=50, ge=0)
    asset_timeout_ms: int = Field(default=2000, ge=0)
    font_delay: float = Field(default=0.1, ge=0)
    max_sessions: int = Field(default=1, ge=1)
    min_glyph_width: float = Field(default=10, ge=0)
    font_size: int = Field(default=48, ge=1)
    phrase_font_size: int = Field(default=24, ge=1)
    api_key: str | None = Field(default=None, repr=False)
    catalog_url: str = GOOGLE_FONTS_API_URL
    request_timeout: float = Field(default=30.0, gt=0)
    headless: bool = True
    browser_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> ScannerConfig:
        """Build a configuration from environment variables plus explicit overrides."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get(API_KEY_ENV):
            values["api_key"] = env[API_KEY_ENV]
        if env.get("OKINASCAN_PIXEL_THRESHOLD"):
            values["pixel_threshold"] = env["OKINASCAN_PIXEL_THRESHOLD"]
        if env.get("OKINASCAN_BATCH_SIZE"):
            values["batch_size"] = env["OKINASCAN_BATCH_SIZE"]
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)


class SchedulerConfig(BaseModel):
    """Tunables for the periodic incremental scan trigger."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    min_interval: timedelta = Field(default=timedelta(days=14))
    check_interval: float = Field(default=3600.0, gt=0)
    batch_size: int = Field(default=50, ge=1)

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> SchedulerConfig:
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get("OKINASCAN_MIN_INTERVAL_DAYS"):
            days = _DAYS_ADAPTER.validate_python(env["OKINASCAN_MIN_INTERVAL_DAYS"])
            values["min_interval"] = timedelta(days=days)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)


__all__ = [
    "API_KEY_ENV",
    "DEFAULT_BROWSER_ARGS",
    "GOOGLE_FONTS_API_URL",
    "ScannerConfig",
    "SchedulerConfig",
]
