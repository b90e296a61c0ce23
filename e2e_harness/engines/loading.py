"""Selecting, configuring and starting browser engines by name.

Engines register an ``EngineManifest`` under the ``e2e_harness.engines``
entry-point group. Every failure before the engine is ready to take commands
aborts the run with ``RunnerFatal``.
"""

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from importlib.metadata import entry_points
from typing import Any

from pydantic import ValidationError

from e2e_harness.engines.base import BrowserEngine, LaunchOptions
from e2e_harness.engines.manifest import EngineManifest
from e2e_harness.errors import RunnerFatal

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "e2e_harness.engines"


class EngineNotFoundError(RunnerFatal):
    """Raised when no engine is registered under the configured name."""


def load_engine_manifest(key: str) -> EngineManifest[Any]:
    """Load an engine manifest by key.

    Args:
        key: The engine key as registered in pyproject.toml (e.g., "playwright")

    Raises:
        EngineNotFoundError: If no engine with the given key is found
        RunnerFatal: If the entry point does not provide an EngineManifest

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest = entry.load()
            if not isinstance(manifest, EngineManifest):
                raise RunnerFatal(
                    f"Entry point '{key}' ({entry.value}) is not an engine manifest"
                )
            return manifest

    available = sorted(e.name for e in entries)
    raise EngineNotFoundError(
        f"Engine '{key}' not found. Available engines: {available}"
    )


@asynccontextmanager
async def start_engine(
    key: str, options: Mapping[str, Any], launch: LaunchOptions
) -> AsyncIterator[BrowserEngine]:
    """Start the named engine with its options and yield it until the run ends.

    Only start-up is translated: exceptions raised while the engine is in use
    propagate unchanged.

    Raises:
        RunnerFatal: If the engine is unknown, its options are invalid or it
            fails to start (e.g. the browser is not installed)

    """
    manifest = load_engine_manifest(key)
    try:
        config = manifest.config_cls(**options)
    except ValidationError as e:
        raise RunnerFatal(f"Invalid options for engine '{key}': {e}") from e

    async with AsyncExitStack() as stack:
        try:
            engine = await stack.enter_async_context(
                manifest.engine_factory(config, launch)
            )
        except RunnerFatal:
            raise
        except Exception as e:
            raise RunnerFatal(f"Could not start engine '{key}': {e}") from e
        log.debug("Engine '%s' started", key)
        yield engine
