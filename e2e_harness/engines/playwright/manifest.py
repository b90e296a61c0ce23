"""Playwright engine manifest."""

from e2e_harness.engines.manifest import EngineManifest
from e2e_harness.engines.playwright.config import PlaywrightConfig
from e2e_harness.engines.playwright.engine import PlaywrightEngine

playwright_manifest = EngineManifest(
    config_cls=PlaywrightConfig,
    engine_factory=PlaywrightEngine.from_config,
)
