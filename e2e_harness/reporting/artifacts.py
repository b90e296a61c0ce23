"""File naming for screenshots and report files."""

import re
from collections.abc import Sequence
from pathlib import Path

from e2e_harness.models.result import TestKey

UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')
MAX_FILENAME_LENGTH = 220


def sanitize_filename(name: str) -> str:
    cleaned = UNSAFE_FILENAME_CHARS.sub("", name).strip()
    return cleaned[:MAX_FILENAME_LENGTH] or "untitled"


def screenshot_path(
    screenshots_dir: Path, key: TestKey, attempt: int, *, overwrite: bool
) -> Path:
    """Return the screenshot path for a failed attempt.

    Files are grouped per spec:
    ``<dir>/<spec>/<suite> -- <test> (failed) (attempt 2).png``. Without
    ``overwrite`` an existing file is never replaced; `` (1)``, `` (2)``...
    is appended instead.
    """
    title = " -- ".join((*key.suite_path, key.title))
    suffix = " (failed)" if attempt == 1 else f" (failed) (attempt {attempt})"
    path = screenshots_dir / key.spec / f"{sanitize_filename(title)}{suffix}.png"
    return path if overwrite else unique_path(path)


def unique_path(path: Path) -> Path:
    """Return ``path`` or the first `` (n)`` variant that does not exist."""
    candidate = path
    counter = 0
    while candidate.exists():
        counter += 1
        candidate = path.with_name(f"{path.stem} ({counter}){path.suffix}")
    return candidate


def report_stem(
    report_dir: Path, base: str, suffixes: Sequence[str], *, overwrite: bool
) -> str:
    """Choose a report file stem none of whose files exist yet.

    With ``overwrite`` the base name is always used; otherwise ``base``,
    ``base_001``, ``base_002``... is tried until no ``stem + suffix`` exists.
    """
    if overwrite:
        return base

    stem = base
    counter = 0
    while any((report_dir / f"{stem}{suffix}").exists() for suffix in suffixes):
        counter += 1
        stem = f"{base}_{counter:03d}"
    return stem
