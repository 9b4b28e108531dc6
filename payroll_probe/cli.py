"""Command line interface for the payroll settings checks."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence

import httpx
from rich.console import Console

from payroll_probe.config.settings import Settings, settings
from payroll_probe.core.api_client import PayrollApiClient
from payroll_probe.core.logger import get_logger
from payroll_probe.core.logging import configure_logging
from payroll_probe.harness.runner import PayrollSettingsRunner

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_UNREACHABLE = 2


def _epilog(cfg: Settings) -> str:
    token_state = "Set" if cfg.PAYROLL_API_TOKEN else "NOT SET - set PAYROLL_API_TOKEN"
    if not cfg.PAYROLL_API_TOKEN and cfg.has_credentials:
        token_state = f"NOT SET - will log in as {cfg.PAYROLL_API_EMAIL}"
    return (
        "Environment setup:\n"
        "  Values come from the environment or a local .env file:\n"
        "  PAYROLL_API_BASE_URL, PAYROLL_API_TOKEN, PAYROLL_API_EMAIL, PAYROLL_API_PASSWORD,\n"
        "  REQUEST_TIMEOUT_SEC, TEST_DELAY_MS, REPORT_DIR, LOG_LEVEL\n"
        "\n"
        "Configuration:\n"
        f"  BASE_URL: {cfg.base_url}\n"
        f"  AUTH_TOKEN: {token_state}\n"
    )


def build_parser(cfg: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payroll-probe",
        description="Payroll settings API checks with a colorized log and a JSON report.",
        epilog=_epilog(cfg),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-q",
        "--quick",
        action="store_true",
        help="Run a quick connection test first and only continue with the suite if it succeeds",
    )
    mode.add_argument("--all", action="store_true", help="Run all tests (default)")
    parser.add_argument("--base-url", default=None, help=f"API base URL (default: {cfg.base_url})")
    parser.add_argument("--token", default=None, help="Bearer token (default: PAYROLL_API_TOKEN)")
    parser.add_argument("--output-dir", default=None, help=f"Report directory (default: {cfg.REPORT_DIR})")
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help=f"Delay between tests in milliseconds (default: {cfg.TEST_DELAY_MS})",
    )
    parser.add_argument(
        "--timeout-sec",
        type=float,
        default=None,
        help=f"Per-request timeout in seconds (default: {cfg.REQUEST_TIMEOUT_SEC:g})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Emit debug-level structured logs on stderr")
    return parser


async def _run(
    args: argparse.Namespace,
    cfg: Settings,
    transport: httpx.AsyncBaseTransport | None,
    console: Console | None,
) -> int:
    base_url = (args.base_url or cfg.base_url).rstrip("/")
    token = args.token if args.token is not None else cfg.PAYROLL_API_TOKEN
    timeout_sec = args.timeout_sec if args.timeout_sec is not None else cfg.REQUEST_TIMEOUT_SEC
    delay_sec = max(0, args.delay_ms) / 1000.0 if args.delay_ms is not None else cfg.delay_seconds
    output_dir = args.output_dir or cfg.report_dir_path

    logger.info("cli.start", base_url=base_url, quick=args.quick, token_set=bool(token))
    async with PayrollApiClient(base_url, token=token, timeout_sec=timeout_sec, transport=transport) as client:
        runner = PayrollSettingsRunner(client, console=console, delay_sec=delay_sec, output_dir=output_dir)
        await runner.authenticate(cfg.PAYROLL_API_EMAIL, cfg.PAYROLL_API_PASSWORD)

        if args.quick and not await runner.quick_check():
            return EXIT_UNREACHABLE

        await runner.run_all()

    logger.info("cli.finished", passed=runner.passed, failed=runner.failed, report=str(runner.report_path))
    return EXIT_OK if runner.failed == 0 else EXIT_TESTS_FAILED


def main(
    argv: Sequence[str] | None = None,
    cfg: Settings = settings,
    transport: httpx.AsyncBaseTransport | None = None,
    console: Console | None = None,
) -> int:
    args = build_parser(cfg).parse_args(argv)
    configure_logging("DEBUG" if args.verbose else cfg.LOG_LEVEL)
    return asyncio.run(_run(args, cfg, transport, console))


if __name__ == "__main__":
    raise SystemExit(main())
