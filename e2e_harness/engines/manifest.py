"""Engine manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from e2e_harness.engines.base import BrowserEngine, LaunchOptions


@dataclass(frozen=True, kw_only=True)
class EngineManifest[ConfigT: BaseModel]:
    """Manifest describing a browser engine plugin.

    The manifest contains references to the engine's option model and the
    factory that starts the engine, so engines are only imported when they
    are selected by name.
    """

    config_cls: type[ConfigT]
    engine_factory: Callable[
        [ConfigT, LaunchOptions], AbstractAsyncContextManager[BrowserEngine]
    ]
