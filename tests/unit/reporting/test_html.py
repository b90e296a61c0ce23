"""Tests for HTML report rendering."""

import base64
from pathlib import Path
from typing import Any

from e2e_harness.config import ReporterOptions
from e2e_harness.reporting.html import render_html


def report_data(screenshot: Path | None = None) -> dict[str, Any]:
    attempts = [
        {
            "number": 1,
            "status": "failed",
            "duration": 0.1,
            "error": "first failure",
            "screenshot": None,
        },
        {
            "number": 2,
            "status": "failed",
            "duration": 0.1,
            "error": "expected '0' but it was '-1'",
            "screenshot": str(screenshot) if screenshot else None,
        },
    ]
    return {
        "stats": {
            "specs": 1,
            "tests": 2,
            "passed": 1,
            "failed": 1,
            "errored": 0,
            "retried": 1,
            "duration": 1.5,
        },
        "results": [
            {
                "spec": "counter.spec.yaml",
                "status": "failed",
                "duration": 1.5,
                "error": None,
                "tests": [],
                "suites": [
                    {
                        "title": "Counter <basic>",
                        "error": None,
                        "suites": [],
                        "tests": [
                            {
                                "title": "TC001",
                                "status": "failed",
                                "duration": 0.2,
                                "attempts": attempts,
                            }
                        ],
                    }
                ],
            }
        ],
        "anomalies": [],
        "aborted": None,
    }


def test_inline_assets_and_charts(tmp_path: Path) -> None:
    """Default options inline the stylesheet and draw the chart."""
    html = render_html(report_data(), ReporterOptions(), tmp_path)

    assert "<style>" in html
    assert 'class="chart"' in html
    assert "Counter &lt;basic&gt;" in html
    assert "(2 attempts)" in html


def test_linked_assets_without_charts(tmp_path: Path) -> None:
    """inlineAssets false links the stylesheet; charts false drops the bar."""
    options = ReporterOptions(inline_assets=False, charts=False)

    html = render_html(report_data(), options, tmp_path)

    assert '<link rel="stylesheet" href="assets/report.css">' in html
    assert 'class="chart"' not in html


def test_shows_terminal_attempt_only_by_default(tmp_path: Path) -> None:
    """Only the last attempt is rendered unless saveAllAttempts is set."""
    html = render_html(report_data(), ReporterOptions(), tmp_path)
    all_attempts = render_html(
        report_data(), ReporterOptions(save_all_attempts=True), tmp_path
    )

    assert "first failure" not in html
    assert "expected &#x27;0&#x27; but it was &#x27;-1&#x27;" in html
    assert "Attempt 1: first failure" in all_attempts


def test_embeds_screenshots(tmp_path: Path) -> None:
    """embeddedScreenshots inlines images as data URLs."""
    shot = tmp_path / "screens" / "TC001 (failed).png"
    shot.parent.mkdir()
    shot.write_bytes(b"\x89PNG")

    encoded = base64.b64encode(shot.read_bytes()).decode()

    html = render_html(report_data(shot), ReporterOptions(), tmp_path)

    assert f"data:image/png;base64,{encoded}" in html


def test_links_screenshots_relative_to_report(tmp_path: Path) -> None:
    """Without embedding, screenshots are linked relative to the report."""
    shot = tmp_path / "screens" / "TC001.png"
    shot.parent.mkdir()
    shot.write_bytes(b"\x89PNG")
    report_dir = tmp_path / "reports"

    html = render_html(
        report_data(shot), ReporterOptions(embedded_screenshots=False), report_dir
    )

    assert 'src="../screens/TC001.png"' in html
