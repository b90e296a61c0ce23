"""Error taxonomy for harness commands, hooks and runs."""


class HarnessError(Exception):
    """Base class for all harness errors."""


class NavigationError(HarnessError):
    """Raised when a page fails to load."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


class AssertionTimeout(HarnessError):
    """Raised when expected UI state is never observed within the budget."""

    def __init__(
        self,
        description: str,
        *,
        expected: object,
        actual: object,
        timeout: float,
    ) -> None:
        super().__init__(
            f"Timed out retrying after {timeout * 1000:.0f}ms: "
            f"expected {description} to be {expected!r}, but it was {actual!r}"
        )
        self.description = description
        self.expected = expected
        self.actual = actual
        self.timeout = timeout


class ElementNotInteractable(HarnessError):
    """Raised when a control cannot be clicked, focused or typed into."""

    def __init__(self, selector: str, reason: str) -> None:
        super().__init__(f"Element {selector} is not interactable: {reason}")
        self.selector = selector
        self.reason = reason


class HookError(HarnessError):
    """Raised when a lifecycle hook body fails.

    Recorded as ``errored`` rather than ``failed`` so reports can tell a
    broken setup apart from wrong application behavior.
    """

    def __init__(self, phase: str, scope: str, cause: BaseException) -> None:
        super().__init__(f'"{phase}" hook for "{scope}" failed: {cause}')
        self.phase = phase
        self.scope = scope
        self.cause = cause


class RunnerFatal(HarnessError):
    """Raised on discovery or process-level failures that abort the run."""


class TaskNotHandled(HarnessError):
    """Raised when a task is sent that no handler is registered for."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"The task '{name}' was not handled. Registered tasks: {available}"
        )
        self.name = name
