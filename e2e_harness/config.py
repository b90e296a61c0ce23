"""Harness configuration loaded from ``e2e.yaml``."""

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic.alias_generators import to_snake

from e2e_harness.models.base import Model

DEFAULT_BASE_URL = "http://localhost:3000"
BASE_URL_ENV = "BASE_URL"
DEFAULT_CONFIG_FILE = "e2e.yaml"

type Mode = Literal["batch", "interactive"]


class RetriesConfig(Model):
    """Test-level retry budget per invocation mode."""

    batch_mode: int = Field(default=1, ge=0)
    interactive_mode: int = Field(default=0, ge=0)

    def for_mode(self, mode: Mode) -> int:
        return self.batch_mode if mode == "batch" else self.interactive_mode


class EngineConfig(Model):
    """Browser engine selection and engine-specific options."""

    name: str = "playwright"
    options: Mapping[str, Any] = Field(default_factory=dict)


class ReporterOptions(Model):
    """Options of the file reporter."""

    report_dir: Path = Path("e2e/reports")
    overwrite: bool = False
    html: bool = True
    json_: bool = Field(default=True, alias="json")
    charts: bool = True
    embedded_screenshots: bool = True
    inline_assets: bool = True
    save_all_attempts: bool = False


class HarnessConfig(Model):
    """Complete harness configuration.

    Relative paths are relative to ``project_root``, which is the directory of
    the config file when one was loaded.
    """

    base_url: str = DEFAULT_BASE_URL
    spec_pattern: Sequence[str] = ("e2e/**/*.spec.yaml",)
    support_file: Path | None = Path("e2e/support.yaml")
    command_timeout_ms: int = Field(default=8000, gt=0)
    click_timeout_ms: int = Field(default=4000, gt=0)
    retries: RetriesConfig = Field(default_factory=RetriesConfig)
    video: bool = False
    videos_folder: Path = Path("e2e/videos")
    screenshot_on_failure: bool = True
    screenshots_folder: Path = Path("e2e/screenshots")
    engine: EngineConfig = Field(default_factory=EngineConfig)
    reporter: Literal["spec", "report"] = "report"
    reporter_options: ReporterOptions = Field(default_factory=ReporterOptions)
    verify_server: bool = True
    project_root: Path = Path(".")

    @field_validator("spec_pattern", mode="before")
    @classmethod
    def _single_pattern(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        if isinstance(value, list):
            return tuple(value)
        return value

    @field_validator("retries", mode="before")
    @classmethod
    def _retries_shorthand(cls, value: Any) -> Any:
        if isinstance(value, int):
            return {"batch_mode": value, "interactive_mode": value}
        return value

    @property
    def command_timeout(self) -> float:
        return self.command_timeout_ms / 1000

    @property
    def click_timeout(self) -> float:
        return self.click_timeout_ms / 1000

    @property
    def support_path(self) -> Path | None:
        if self.support_file is None:
            return None
        return self.project_root / self.support_file

    @property
    def screenshots_dir(self) -> Path:
        return self.project_root / self.screenshots_folder

    @property
    def videos_dir(self) -> Path:
        return self.project_root / self.videos_folder

    @property
    def report_dir(self) -> Path:
        return self.project_root / self.reporter_options.report_dir


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> HarnessConfig:
    """Load configuration from YAML, then apply ``BASE_URL`` and overrides.

    Args:
        path: Config file; when None, ``e2e.yaml`` in the working directory is
            used if it exists, otherwise defaults apply
        overrides: Top-level values (snake_case) that win over the file and
            the environment; None values are ignored
        environ: Environment to read ``BASE_URL`` from (default: os.environ)

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the YAML or its contents are invalid

    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is None:
        candidate = Path(DEFAULT_CONFIG_FILE)
        path = candidate if candidate.exists() else None
    elif not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    if path is not None:
        try:
            loaded = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Invalid config in {path}: expected a mapping")
        data.update({to_snake(key): value for key, value in (loaded or {}).items()})
        data.setdefault("project_root", path.parent)

    if base_url := environ.get(BASE_URL_ENV):
        data["base_url"] = base_url

    data.update(
        {key: value for key, value in (overrides or {}).items() if value is not None}
    )

    try:
        return HarnessConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
