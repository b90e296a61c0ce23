"""Models for spec and support files loaded from YAML.

Test and hook bodies are lists of steps. Each step is a single-key mapping,
either in shorthand (``- inc: 5``) or with explicit fields
(``- click: {selector: "#increment-btn", force: true}``).
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic.alias_generators import to_snake

from e2e_harness.models.base import Model

if TYPE_CHECKING:
    from e2e_harness.context import TestContext

ACTION_ALIASES: Mapping[str, str] = {
    "see": "assert_value",
    "inc": "increment_by",
    "dec": "decrement_by",
}

# Field that receives the value of a scalar shorthand, per action.
SHORTHAND_FIELDS: Mapping[str, str] = {
    "visit": "path",
    "assert_value": "value",
    "increment_by": "times",
    "decrement_by": "times",
    "click": "selector",
    "dblclick": "selector",
    "focus": "selector",
    "assert_focused": "element_id",
    "assert_visible": "selector",
    "assert_enabled": "selector",
    "log": "message",
    "task": "name",
}


class VisitStep(Model):
    """Navigate relative to the base URL."""

    action: Literal["visit"] = "visit"
    path: str = "/"

    async def run(self, ctx: "TestContext") -> None:
        if self.path == "/":
            await ctx.page.visit()
        else:
            await ctx.commands.visit(self.path)


class AssertValueStep(Model):
    action: Literal["assert_value"] = "assert_value"
    value: int = Field(ge=0)

    async def run(self, ctx: "TestContext") -> None:
        await ctx.page.assert_value(self.value)


class IncrementStep(Model):
    action: Literal["increment_by"] = "increment_by"
    times: int = Field(default=1, ge=0)

    async def run(self, ctx: "TestContext") -> None:
        await ctx.page.increment_by(self.times)


class DecrementStep(Model):
    action: Literal["decrement_by"] = "decrement_by"
    times: int = Field(default=1, ge=0)

    async def run(self, ctx: "TestContext") -> None:
        await ctx.page.decrement_by(self.times)


class ClickStep(Model):
    action: Literal["click"] = "click"
    selector: str
    force: bool = False
    times: int = Field(default=1, ge=1)

    async def run(self, ctx: "TestContext") -> None:
        for _ in range(self.times):
            await ctx.commands.click(self.selector, force=self.force)


class DblclickStep(Model):
    action: Literal["dblclick"] = "dblclick"
    selector: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.dblclick(self.selector)


class FocusStep(Model):
    action: Literal["focus"] = "focus"
    selector: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.focus(self.selector)


class TypeStep(Model):
    """Type text; ``{enter}``-style sequences press named keys."""

    action: Literal["type"] = "type"
    selector: str
    keys: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.type(self.selector, self.keys)


class AssertTextStep(Model):
    action: Literal["assert_text"] = "assert_text"
    selector: str
    equals: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.should_have_text(self.selector, self.equals)


class AssertFocusedStep(Model):
    action: Literal["assert_focused"] = "assert_focused"
    element_id: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.should_be_focused(self.element_id)


class AssertVisibleStep(Model):
    action: Literal["assert_visible"] = "assert_visible"
    selector: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.should_be_visible(self.selector)


class AssertEnabledStep(Model):
    action: Literal["assert_enabled"] = "assert_enabled"
    selector: str

    async def run(self, ctx: "TestContext") -> None:
        await ctx.commands.should_be_enabled(self.selector)


class LogStep(Model):
    """Write to the command log of the running test."""

    action: Literal["log"] = "log"
    message: str

    async def run(self, ctx: "TestContext") -> None:
        ctx.log(self.message)


class TaskStep(Model):
    """Send a task to the host process over the task bridge."""

    action: Literal["task"] = "task"
    name: str
    arg: Any = None

    async def run(self, ctx: "TestContext") -> None:
        await ctx.task(self.name, self.arg)


Step = Annotated[
    VisitStep
    | AssertValueStep
    | IncrementStep
    | DecrementStep
    | ClickStep
    | DblclickStep
    | FocusStep
    | TypeStep
    | AssertTextStep
    | AssertFocusedStep
    | AssertVisibleStep
    | AssertEnabledStep
    | LogStep
    | TaskStep,
    Field(discriminator="action"),
]


def normalize_step(raw: Any) -> Any:
    """Turn a single-key step mapping into a mapping with an ``action`` field."""
    if not isinstance(raw, Mapping) or "action" in raw:
        return raw
    if len(raw) != 1:
        raise ValueError(f"A step must have exactly one action, got {list(raw)}")

    ((key, value),) = raw.items()
    action = to_snake(str(key))
    action = ACTION_ALIASES.get(action, action)

    if value is None:
        return {"action": action}
    if isinstance(value, Mapping):
        return {"action": action, **value}
    if action in SHORTHAND_FIELDS:
        return {"action": action, SHORTHAND_FIELDS[action]: value}
    raise ValueError(f"Step '{key}' needs a mapping of arguments")


def normalize_steps(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [normalize_step(item) for item in value]
    return value


class HooksDefinition(Model):
    """Step lists bound to lifecycle phases."""

    before_all_specs: Sequence[Step] = ()
    after_all_specs: Sequence[Step] = ()
    before_each_spec: Sequence[Step] = ()
    after_each_spec: Sequence[Step] = ()
    before_suite: Sequence[Step] = ()
    after_suite: Sequence[Step] = ()
    before_each_test: Sequence[Step] = ()
    after_each_test: Sequence[Step] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return normalize_steps(value)

    def used_fields(self) -> set[str]:
        return {name for name in type(self).model_fields if getattr(self, name)}


def _reject_hooks(hooks: HooksDefinition, forbidden: set[str], scope: str) -> None:
    if misplaced := sorted(hooks.used_fields() & forbidden):
        raise ValueError(f"Hooks {misplaced} cannot be declared in {scope}")


def _reject_duplicate_titles(
    suites: Sequence["SuiteDefinition"], tests: Sequence["TestDefinition"], scope: str
) -> None:
    for kind, titles in (
        ("suite", [suite.title for suite in suites]),
        ("test", [test.title for test in tests]),
    ):
        if duplicates := sorted({t for t in titles if titles.count(t) > 1}):
            raise ValueError(f"Duplicate {kind} titles {duplicates} in {scope}")


class TestDefinition(Model):
    """A single test: a title and the steps of its body."""

    __test__ = False

    title: str = Field(min_length=1)
    steps: Sequence[Step] = ()

    @field_validator("steps", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return normalize_steps(value)


class SuiteDefinition(Model):
    """A suite with scoped hooks, nested suites and tests."""

    title: str = Field(min_length=1)
    hooks: HooksDefinition = Field(default_factory=HooksDefinition)
    suites: Sequence["SuiteDefinition"] = ()
    tests: Sequence[TestDefinition] = ()

    @model_validator(mode="after")
    def _check_children(self) -> "SuiteDefinition":
        _reject_hooks(
            self.hooks,
            {
                "before_all_specs",
                "after_all_specs",
                "before_each_spec",
                "after_each_spec",
            },
            f"suite '{self.title}'",
        )
        _reject_duplicate_titles(self.suites, self.tests, f"suite '{self.title}'")
        return self


class SpecDefinition(Model):
    """Complete spec file."""

    title: str | None = None
    hooks: HooksDefinition = Field(default_factory=HooksDefinition)
    suites: Sequence[SuiteDefinition] = ()
    tests: Sequence[TestDefinition] = ()

    @model_validator(mode="after")
    def _check_children(self) -> "SpecDefinition":
        _reject_hooks(
            self.hooks,
            {"before_all_specs", "after_all_specs", "before_suite", "after_suite"},
            "a spec file (use the support file for run-level hooks)",
        )
        _reject_duplicate_titles(self.suites, self.tests, "the spec file")
        return self


class SupportDefinition(Model):
    """Support file holding run-level hooks."""

    hooks: HooksDefinition = Field(default_factory=HooksDefinition)

    @model_validator(mode="after")
    def _check_hooks(self) -> "SupportDefinition":
        _reject_hooks(self.hooks, {"before_suite", "after_suite"}, "the support file")
        return self
