"""Human-readable HTML rendering of a formatted run report."""

import base64
import os
from collections.abc import Mapping
from html import escape
from pathlib import Path
from typing import Any

from e2e_harness.config import ReporterOptions

STYLESHEET = """
body { font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif;
       margin: 2rem; color: #1f2328; }
h1 { font-size: 1.4rem; }
.stats { display: flex; gap: 1.5rem; margin-bottom: 1rem; }
.stats div { font-size: .9rem; }
.chart { display: flex; height: 12px; width: 100%; max-width: 640px;
         border-radius: 6px; overflow: hidden; background: #eaeef2;
         margin-bottom: 1.5rem; }
.chart span.passed { background: #1a7f37; }
.chart span.failed { background: #cf222e; }
.chart span.errored { background: #bf8700; }
details { margin: .3rem 0 .3rem 1rem; }
summary { cursor: pointer; font-weight: 600; }
.test { margin: .3rem 0 .3rem 1.5rem; }
.passed > .title::before { content: "\\2713  "; color: #1a7f37; }
.failed > .title::before { content: "\\2717  "; color: #cf222e; }
.errored > .title::before { content: "!  "; color: #bf8700; }
.duration { color: #656d76; font-size: .85rem; }
pre.error { background: #fff1f0; padding: .5rem; white-space: pre-wrap; }
.hook-error { color: #bf8700; }
img.screenshot { max-width: 640px; border: 1px solid #d0d7de; display: block; }
"""

STYLESHEET_PATH = Path("assets/report.css")


def render_html(
    data: Mapping[str, Any], options: ReporterOptions, report_dir: Path
) -> str:
    """Render the output of ``format_report`` as a standalone page."""
    if options.inline_assets:
        head_assets = f"<style>{STYLESHEET}</style>"
    else:
        head_assets = f'<link rel="stylesheet" href="{STYLESHEET_PATH.as_posix()}">'

    stats = data["stats"]
    parts = [
        "<!DOCTYPE html>",
        '<html lang="en"><head><meta charset="utf-8">',
        "<title>E2E Report</title>",
        head_assets,
        "</head><body>",
        "<h1>E2E Report</h1>",
        '<div class="stats">',
        *(
            f"<div><strong>{escape(str(stats[name]))}</strong> {name}</div>"
            for name in ("specs", "tests", "passed", "failed", "errored", "retried")
        ),
        f"<div><strong>{stats['duration']:.2f}s</strong> duration</div>",
        "</div>",
    ]
    if options.charts:
        parts.append(_render_chart(stats))
    if data.get("aborted"):
        aborted = escape(data["aborted"])
        parts.append(f'<pre class="error">Run aborted: {aborted}</pre>')
    for anomaly in data.get("anomalies", []):
        title = " ".join([*anomaly["suite_path"], anomaly["title"]])
        parts.append(
            f'<pre class="error">No outcome recorded for '
            f"{escape(anomaly['spec'])}: {escape(title)}</pre>"
        )
    for spec in data["results"]:
        parts.append(_render_spec(spec, options, report_dir))
    parts.append("</body></html>")
    return "\n".join(parts)


def _render_chart(stats: Mapping[str, Any]) -> str:
    total = stats["tests"] or 1
    segments = "".join(
        f'<span class="{status}" style="width:{stats[status] * 100 / total:.2f}%"'
        f' title="{stats[status]} {status}"></span>'
        for status in ("passed", "failed", "errored")
        if stats[status]
    )
    return f'<div class="chart">{segments}</div>'


def _render_spec(
    spec: Mapping[str, Any], options: ReporterOptions, report_dir: Path
) -> str:
    parts = [
        f'<details open class="{escape(spec["status"])}">',
        f"<summary>{escape(spec['spec'])} "
        f'<span class="duration">{spec["duration"]:.2f}s</span></summary>',
    ]
    if spec.get("error"):
        parts.append(f'<pre class="error hook-error">{escape(spec["error"])}</pre>')
    parts.extend(_render_test(test, options, report_dir) for test in spec["tests"])
    parts.extend(
        _render_suite(suite, options, report_dir) for suite in spec["suites"]
    )
    parts.append("</details>")
    return "\n".join(parts)


def _render_suite(
    suite: Mapping[str, Any], options: ReporterOptions, report_dir: Path
) -> str:
    parts = [f"<details open><summary>{escape(suite['title'])}</summary>"]
    if suite.get("error"):
        parts.append(f'<pre class="error hook-error">{escape(suite["error"])}</pre>')
    parts.extend(_render_test(test, options, report_dir) for test in suite["tests"])
    parts.extend(
        _render_suite(child, options, report_dir) for child in suite["suites"]
    )
    parts.append("</details>")
    return "\n".join(parts)


def _render_test(
    test: Mapping[str, Any], options: ReporterOptions, report_dir: Path
) -> str:
    attempts = test["attempts"]
    retried = f" ({len(attempts)} attempts)" if len(attempts) > 1 else ""
    parts = [
        f'<div class="test {escape(test["status"])}">',
        f'<span class="title">{escape(test["title"])}</span> '
        f'<span class="duration">{test["duration"] * 1000:.0f}ms{retried}</span>',
    ]
    shown = attempts if options.save_all_attempts else attempts[-1:]
    for attempt in shown:
        if attempt["error"]:
            label = f"Attempt {attempt['number']}: " if len(shown) > 1 else ""
            parts.append(
                f'<pre class="error">{escape(label)}{escape(attempt["error"])}</pre>'
            )
        if attempt["screenshot"]:
            screenshot = Path(attempt["screenshot"])
            parts.append(_render_screenshot(screenshot, options, report_dir))
    parts.append("</div>")
    return "\n".join(parts)


def _render_screenshot(path: Path, options: ReporterOptions, report_dir: Path) -> str:
    if options.embedded_screenshots and path.exists():
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        src = f"data:image/png;base64,{encoded}"
    else:
        src = Path(os.path.relpath(path, report_dir)).as_posix()
    return f'<img class="screenshot" alt="{escape(path.name)}" src="{escape(src)}">'
