"""Materialize a run report as JSON and HTML files."""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from e2e_harness.config import ReporterOptions
from e2e_harness.models.result import RunReport
from e2e_harness.reporting.artifacts import report_stem
from e2e_harness.reporting.html import STYLESHEET, STYLESHEET_PATH, render_html
from e2e_harness.reporting.serialize import format_report

log = logging.getLogger(__name__)

REPORT_BASENAME = "report"


def write_report(
    report: RunReport, options: ReporterOptions, report_dir: Path
) -> Sequence[Path]:
    """Write the enabled report formats into ``report_dir``.

    Returns:
        Paths of the files written

    """
    suffixes = [
        suffix
        for suffix, enabled in ((".json", options.json_), (".html", options.html))
        if enabled
    ]
    if not suffixes:
        return []

    report_dir.mkdir(parents=True, exist_ok=True)
    stem = report_stem(
        report_dir, REPORT_BASENAME, suffixes, overwrite=options.overwrite
    )
    data = format_report(report)
    written: list[Path] = []

    if options.json_:
        json_path = report_dir / f"{stem}.json"
        json_path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        written.append(json_path)

    if options.html:
        if not options.inline_assets:
            css_path = report_dir / STYLESHEET_PATH
            css_path.parent.mkdir(parents=True, exist_ok=True)
            css_path.write_text(STYLESHEET, encoding="utf-8")
        html_path = report_dir / f"{stem}.html"
        html_path.write_text(render_html(data, options, report_dir), encoding="utf-8")
        written.append(html_path)

    for path in written:
        log.info("Report written: %s", path)
    return written
