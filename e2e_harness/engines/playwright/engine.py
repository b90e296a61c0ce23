"""Playwright engine implementation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from e2e_harness.engines.base import BrowserEngine, LaunchOptions
from e2e_harness.engines.playwright.config import PlaywrightConfig
from e2e_harness.errors import ElementNotInteractable, NavigationError

log = logging.getLogger(__name__)

TEXT_CONTENT_JS = """
selector => {
  const el = document.querySelector(selector);
  return el ? el.textContent : null;
}
"""

IS_ENABLED_JS = """
selector => {
  const el = document.querySelector(selector);
  return !!el && !el.disabled && el.getAttribute("aria-disabled") !== "true";
}
"""

FOCUSED_ID_JS = "() => (document.activeElement && document.activeElement.id) || null"


@dataclass(frozen=True, kw_only=True)
class PlaywrightEngine(BrowserEngine):
    """Browser engine backed by a single Playwright page."""

    config: PlaywrightConfig
    page: Page = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: PlaywrightConfig, launch: LaunchOptions
    ) -> AsyncGenerator["PlaywrightEngine", None]:
        """Launch the browser and yield an engine bound to a fresh page."""
        log.info(
            "Launching %s (headless=%s, video=%s)",
            config.browser,
            launch.headless,
            launch.video_dir is not None,
        )
        async with async_playwright() as playwright:
            browser_type = getattr(playwright, config.browser)
            browser = await browser_type.launch(
                headless=launch.headless, channel=config.channel
            )
            try:
                context = await browser.new_context(
                    viewport={
                        "width": config.viewport_width,
                        "height": config.viewport_height,
                    },
                    record_video_dir=(
                        str(launch.video_dir) if launch.video_dir else None
                    ),
                )
                try:
                    page = await context.new_page()
                    yield cls(config=config, page=page)
                finally:
                    await context.close()
            finally:
                await browser.close()

    async def goto(self, url: str, *, timeout: float) -> None:
        """Navigate and fail on transport errors or error status codes."""
        try:
            response = await self.page.goto(url, timeout=timeout * 1000)
        except PlaywrightError as e:
            raise NavigationError(url, e.message) from e

        if response is not None and not response.ok:
            raise NavigationError(url, f"{response.status} {response.status_text}")

    async def text_content(self, selector: str) -> str | None:
        result: str | None = await self.page.evaluate(TEXT_CONTENT_JS, selector)
        return result

    async def click(
        self, selector: str, *, timeout: float, force: bool = False
    ) -> None:
        try:
            await self.page.locator(selector).click(timeout=timeout * 1000, force=force)
        except PlaywrightError as e:
            raise ElementNotInteractable(selector, e.message) from e

    async def dblclick(self, selector: str, *, timeout: float) -> None:
        try:
            await self.page.locator(selector).dblclick(timeout=timeout * 1000)
        except PlaywrightError as e:
            raise ElementNotInteractable(selector, e.message) from e

    async def focus(self, selector: str, *, timeout: float) -> None:
        try:
            await self.page.locator(selector).focus(timeout=timeout * 1000)
        except PlaywrightError as e:
            raise ElementNotInteractable(selector, e.message) from e

    async def press(self, selector: str, key: str, *, timeout: float) -> None:
        try:
            await self.page.locator(selector).press(key, timeout=timeout * 1000)
        except PlaywrightError as e:
            raise ElementNotInteractable(selector, e.message) from e

    async def type_text(self, selector: str, text: str, *, timeout: float) -> None:
        try:
            await self.page.locator(selector).press_sequentially(
                text, timeout=timeout * 1000
            )
        except PlaywrightError as e:
            raise ElementNotInteractable(selector, e.message) from e

    async def focused_element_id(self) -> str | None:
        result: str | None = await self.page.evaluate(FOCUSED_ID_JS)
        return result

    async def is_visible(self, selector: str) -> bool:
        return await self.page.locator(selector).first.is_visible()

    async def is_enabled(self, selector: str) -> bool:
        result: bool = await self.page.evaluate(IS_ENABLED_JS, selector)
        return result

    async def screenshot(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=str(path), full_page=True)
        return path
