"""Discover spec files and build executable trees from them."""

import glob
import logging
from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from e2e_harness.context import TestContext
from e2e_harness.errors import RunnerFatal
from e2e_harness.models.definition import (
    HooksDefinition,
    SpecDefinition,
    Step,
    SuiteDefinition,
    SupportDefinition,
)
from e2e_harness.tree import Body, HookNode, HookPhase, SpecFile, SuiteNode, TestNode

log = logging.getLogger(__name__)


def discover_specs(root: Path, patterns: Sequence[str]) -> Sequence[Path]:
    """Find spec files matching any of the glob patterns.

    Args:
        root: Directory the patterns are relative to
        patterns: Glob patterns; ``**`` matches any number of directories

    Returns:
        Matching files in lexical order of their path relative to ``root``

    Raises:
        RunnerFatal: If no file matches

    """
    found: set[str] = set()
    for pattern in patterns:
        for match in glob.glob(pattern, root_dir=root, recursive=True):
            if (root / match).is_file():
                found.add(Path(match).as_posix())

    if not found:
        raise RunnerFatal(
            f"Can't run because no spec files were found matching {list(patterns)} "
            f"in {root}"
        )

    return [root / relative for relative in sorted(found)]


def steps_body(steps: Sequence[Step]) -> Body:
    """Build a body that runs ``steps`` one after another."""

    async def body(ctx: TestContext) -> None:
        for step in steps:
            await step.run(ctx)

    return body


def build_hooks(hooks: HooksDefinition) -> Sequence[HookNode]:
    return [
        HookNode(phase=HookPhase(to_camel(name)), body=steps_body(steps))
        for name in HooksDefinition.model_fields
        if (steps := getattr(hooks, name))
    ]


def build_suite(definition: SuiteDefinition) -> SuiteNode:
    """Build a suite node; tests run before nested suites at the same level."""
    children: list[SuiteNode | TestNode] = [
        TestNode(title=test.title, body=steps_body(test.steps))
        for test in definition.tests
    ]
    children.extend(build_suite(suite) for suite in definition.suites)
    return SuiteNode(
        title=definition.title,
        children=children,
        hooks=build_hooks(definition.hooks),
    )


def build_spec_file(definition: SpecDefinition, path: Path, name: str) -> SpecFile:
    children: list[SuiteNode | TestNode] = [
        TestNode(title=test.title, body=steps_body(test.steps))
        for test in definition.tests
    ]
    children.extend(build_suite(suite) for suite in definition.suites)
    return SpecFile(
        path=path,
        name=name,
        children=children,
        hooks=build_hooks(definition.hooks),
    )


def _read_yaml[M: BaseModel](path: Path, model: type[M], kind: str) -> M:
    if not path.exists():
        raise FileNotFoundError(f"{kind.capitalize()} file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        raise ValueError(f"Empty {kind} file: {path}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid {kind} schema in {path}: {e}") from e


async def load_spec_file(path: Path, root: Path) -> SpecFile:
    """Load a spec file and build its executable tree.

    Args:
        path: Spec file path
        root: Project root; the spec's name is its path relative to it

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is malformed, empty or fails validation

    """
    definition = _read_yaml(path, SpecDefinition, "spec")
    spec = build_spec_file(definition, path, spec_name(path, root))
    log.debug("Loaded %s with %d test(s)", spec.name, len(spec.declared_keys()))
    return spec


async def load_support_file(path: Path) -> Sequence[HookNode]:
    """Load run-level hooks from the support file."""
    definition = _read_yaml(path, SupportDefinition, "support")
    return build_hooks(definition.hooks)


def spec_name(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
