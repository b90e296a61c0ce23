"""CLI entry point for the end-to-end harness."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from e2e_harness.commands import CommandTimings
from e2e_harness.config import HarnessConfig, Mode, load_config
from e2e_harness.engines.base import LaunchOptions
from e2e_harness.engines.loading import start_engine
from e2e_harness.errors import RunnerFatal
from e2e_harness.loader import discover_specs
from e2e_harness.models.result import RunMetadata, RunReport
from e2e_harness.preflight import verify_server
from e2e_harness.reporting import ReportCollector, write_report
from e2e_harness.runner import STATUS_SYMBOLS, run_specs

PARTIAL_STREAM = Path(".partial/attempts.jsonl")

MODES: dict[str, Mode] = {
    "run": "batch",
    "open": "interactive",
}


def log_results_summary(log: logging.Logger, report: RunReport) -> None:
    """Log a formatted summary of test results with failure details."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for spec in report.specs:
        log.info("%s %s (%.2fs)", STATUS_SYMBOLS[spec.status], spec.spec, spec.duration)
        if spec.error:
            log.info("  Error: %s", spec.error)
        for suite_path, error in spec.suite_errors.items():
            log.info("  Suite %s: %s", " ".join(suite_path), error)

        for outcome in spec.outcomes:
            log.info(
                "  %s %s (%.0fms, %d attempt(s))",
                STATUS_SYMBOLS[outcome.status],
                outcome.key.full_title,
                outcome.duration * 1000,
                len(outcome.attempts),
            )
            terminal = outcome.terminal
            if terminal.error:
                log.info("    Message: %s", terminal.error)
            if terminal.screenshot:
                log.info("    Screenshot: %s", terminal.screenshot)

    for key in report.anomalies:
        log.info("! %s: no outcome recorded", key.full_title)
    if report.aborted:
        log.info("Run aborted: %s", report.aborted)


def format_output(report: RunReport) -> dict[str, Any]:
    """Format run results for JSON output."""
    all_results: list[dict[str, Any]] = [
        {
            "spec": outcome.key.spec,
            "title": outcome.key.full_title,
            "status": outcome.status,
            "duration": outcome.duration,
            "attempts": len(outcome.attempts),
            "message": outcome.terminal.error,
        }
        for outcome in report.outcomes
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "passed"),
        "failed": sum(1 for r in all_results if r["status"] == "failed"),
        "errored": sum(1 for r in all_results if r["status"] == "errored"),
        "specs_errored": sum(1 for s in report.specs if s.status == "errored"),
        "anomalies": len(report.anomalies),
        "aborted": report.aborted,
        "results": all_results,
    }


def run_metadata(
    config: HarnessConfig, mode: Mode, timings: CommandTimings
) -> RunMetadata:
    return RunMetadata(
        base_url=config.base_url,
        mode=mode,
        engine=config.engine.name,
        command_timeout_ms=config.command_timeout_ms,
        retries=config.retries.for_mode(mode),
        command_durations=timings.snapshot(),
    )


async def execute(
    config: HarnessConfig,
    mode: Mode,
    collector: ReportCollector,
    timings: CommandTimings,
) -> None:
    """Discover specs, check the server, start the engine and run everything.

    Raises:
        RunnerFatal: On discovery, preflight, engine or support file failures

    """
    log = logging.getLogger("e2e_harness")

    spec_paths = discover_specs(config.project_root, config.spec_pattern)
    log.info("Found %d spec file(s)", len(spec_paths))

    if config.verify_server:
        await verify_server(config.base_url)

    log.info("Loading engine: %s", config.engine.name)
    launch = LaunchOptions(
        headless=mode == "batch",
        video_dir=config.videos_dir if config.video else None,
    )
    engine_context = start_engine(config.engine.name, config.engine.options, launch)
    async with engine_context as engine:
        await run_specs(
            config=config,
            mode=mode,
            engine=engine,
            spec_paths=spec_paths,
            collector=collector,
            timings=timings,
        )


async def run(config: HarnessConfig, mode: Mode) -> int:
    """Run the spec files and return the exit code.

    The report is written even when the run is aborted.
    """
    log = logging.getLogger("e2e_harness")
    log.info("Starting %s run against %s", mode, config.base_url)

    stream_path = None
    if config.reporter == "report":
        stream_path = config.report_dir / PARTIAL_STREAM
        stream_path.unlink(missing_ok=True)

    timings = CommandTimings()
    collector = ReportCollector(stream_path=stream_path)
    aborted: str | None = None

    try:
        await execute(config, mode, collector, timings)
    except RunnerFatal as e:
        log.error("%s", e)
        aborted = str(e)
    except Exception as e:
        aborted = f"{type(e).__name__}: {e}"
        raise
    finally:
        report = collector.finish(run_metadata(config, mode, timings), aborted)
        if config.reporter == "report":
            write_report(report, config.reporter_options, config.report_dir)

    log_results_summary(log, report)
    print(json.dumps(format_output(report), indent=2))

    if report.aborted is not None:
        return 2
    return 1 if report.has_failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run end-to-end browser tests against a web application"
    )
    parser.add_argument(
        "mode",
        choices=sorted(MODES),
        help="run: headless batch mode; open: headed interactive mode",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the harness config file (default: ./e2e.yaml if present)",
    )
    parser.add_argument(
        "--spec",
        nargs="+",
        default=None,
        help="Spec file glob pattern(s), overriding specPattern",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Base URL of the application, overriding baseUrl and BASE_URL",
    )
    parser.add_argument(
        "--reporter",
        choices=["spec", "report"],
        default=None,
        help="spec: console only; report: also write JSON/HTML reports",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every command at DEBUG level",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(
            args.config,
            overrides={
                "base_url": args.base_url,
                "spec_pattern": args.spec,
                "reporter": args.reporter,
            },
        )
    except (FileNotFoundError, ValueError) as e:
        logging.getLogger("e2e_harness").error("%s", e)
        sys.exit(2)

    exit_code = asyncio.run(run(config, MODES[args.mode]))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
