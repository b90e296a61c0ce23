"""Abstract base class for browser automation engines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class LaunchOptions:
    """Run-level settings every engine receives when it is started."""

    headless: bool = True
    video_dir: Path | None = None


@dataclass(frozen=True, kw_only=True)
class BrowserEngine(ABC):
    """Primitive commands the harness issues against the application.

    Queries (``text_content``, ``is_visible``...) return the current state
    immediately; polling for an expected state is the caller's job. Actions
    (``click``, ``focus``...) apply the engine's own actionability checks
    bounded by the given timeout.
    """

    @abstractmethod
    async def goto(self, url: str, *, timeout: float) -> None:
        """Navigate to ``url`` and wait for the page to load.

        Raises:
            NavigationError: If the page does not load within ``timeout``
                seconds or responds with an error status

        """

    @abstractmethod
    async def text_content(self, selector: str) -> str | None:
        """Return the element's text content, or None if it does not exist."""

    @abstractmethod
    async def click(
        self, selector: str, *, timeout: float, force: bool = False
    ) -> None:
        """Click the element once it is actionable.

        Args:
            selector: CSS selector of the element
            timeout: Seconds to wait for the element to become actionable
            force: Skip actionability checks

        Raises:
            ElementNotInteractable: If the click cannot be delivered in time

        """

    @abstractmethod
    async def dblclick(self, selector: str, *, timeout: float) -> None:
        """Double-click the element once it is actionable."""

    @abstractmethod
    async def focus(self, selector: str, *, timeout: float) -> None:
        """Move keyboard focus to the element."""

    @abstractmethod
    async def press(self, selector: str, key: str, *, timeout: float) -> None:
        """Press a single named key (e.g. ``Enter``) on the element."""

    @abstractmethod
    async def type_text(self, selector: str, text: str, *, timeout: float) -> None:
        """Type literal text into the element."""

    @abstractmethod
    async def focused_element_id(self) -> str | None:
        """Return the id of the focused element, or None."""

    @abstractmethod
    async def is_visible(self, selector: str) -> bool:
        """Return True if the element exists and is visible."""

    @abstractmethod
    async def is_enabled(self, selector: str) -> bool:
        """Return True if the element exists and is not disabled."""

    @abstractmethod
    async def screenshot(self, path: Path) -> Path:
        """Capture the current page to ``path`` and return it."""
