"""Report collection and rendering."""

from e2e_harness.reporting.collector import ReportCollector
from e2e_harness.reporting.serialize import format_report
from e2e_harness.reporting.writer import write_report

__all__ = ["ReportCollector", "format_report", "write_report"]
