"""Configuration for the Playwright engine."""

from typing import Literal

from pydantic import Field

from e2e_harness.models.base import Model


class PlaywrightConfig(Model):
    """Configuration for the Playwright engine."""

    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    channel: str | None = None
    viewport_width: int = Field(default=1000, gt=0)
    viewport_height: int = Field(default=660, gt=0)
