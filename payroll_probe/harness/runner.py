from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import httpx
from rich.console import Console

from payroll_probe.core.api_client import (
    ApiOutcome,
    LoginError,
    error_message,
    PayrollApiClient,
    extract_data,
    parse_body,
    snapshot,
)
from payroll_probe.core.logger import get_logger
from payroll_probe.harness import payloads
from payroll_probe.harness.console import RunConsole, as_pretty_json
from payroll_probe.harness.report import build_report, write_report
from payroll_probe.schemas.result_schemas import Report, TestResult

logger = get_logger(__name__)

DEFAULT_DELAY_SEC = 0.5
TROUBLESHOOTING_HINTS = (
    "1. Make sure the payroll backend server is running",
    "2. Check PAYROLL_API_BASE_URL (or pass --base-url)",
    "3. Check PAYROLL_API_TOKEN is valid, or set PAYROLL_API_EMAIL and PAYROLL_API_PASSWORD",
    "4. Verify the API is reachable from this machine (proxy, firewall, VPN)",
)

TestCase = Callable[[], Awaitable[bool]]


class PayrollSettingsRunner:
    """Runs the payroll-settings checks in order and keeps one result per check."""

    def __init__(
        self,
        client: PayrollApiClient,
        console: Console | None = None,
        delay_sec: float = DEFAULT_DELAY_SEC,
        output_dir: Path | str = ".",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.out = RunConsole(console)
        self.delay_sec = delay_sec
        self.output_dir = Path(output_dir)
        self._sleep = sleep
        self.results: list[TestResult] = []
        self.passed = 0
        self.failed = 0
        self.report: Report | None = None
        self.report_path: Path | None = None

    # Suite entry point first, the checks follow in run order
    async def run_all(self) -> Report:
        self.out.log("Starting Payroll Settings Tests...")
        self.out.log("=" * 60)

        cases = self.test_cases()
        for index, case in enumerate(cases, start=1):
            self.out.log(f"Running Test {index}/{len(cases)}...")
            await case()
            await self._sleep(self.delay_sec)

        self.generate_report()
        return self.report

    def test_cases(self) -> list[TestCase]:
        return [
            self.check_current_settings,
            self.check_paye_settings,
            self.check_default_settings,
            self.check_update_valid_settings,
            self.check_update_invalid_settings,
            self.check_update_valid_paye,
            self.check_update_invalid_paye,
            self.check_bracket_continuity,
            self.check_empty_brackets,
            self.check_round_trip,
        ]

    def record_test(
        self,
        name: str,
        passed: bool,
        error: Exception | str | None = None,
        response: httpx.Response | None = None,
    ) -> bool:
        passed = bool(passed)
        if isinstance(error, BaseException):
            error_text = error_message(error)
        else:
            error_text = error
        result = TestResult(name=name, passed=passed, error=error_text, response=snapshot(response))
        self.results.append(result)
        logger.info("runner.test_recorded", name=name, passed=passed, status_code=getattr(response, "status_code", None))

        if passed:
            self.passed += 1
            self.out.log(f"✓ {name} - PASSED", "success")
        else:
            self.failed += 1
            self.out.log(f"✗ {name} - FAILED: {error_text or 'Unknown error'}", "error")
            if result.response is not None:
                self.out.log(f"  Status: {result.response.status} {result.response.status_text}", "warning")
                if result.response.data:
                    self.out.log(f"  Response: {as_pretty_json(result.response.data)}", "warning")
        return passed

    async def test_endpoint(self, method: str, path: str, body: Any = None) -> ApiOutcome:
        outcome = await self.client.request(method, path, body)
        if outcome.success:
            self.out.log(f"Request to {path}: {method.upper()}")
            self.out.log(f"Payload: {as_pretty_json(body) if body is not None else 'none'}")
        return outcome

    async def _expect_settings(self, name: str, path: str) -> bool:
        outcome = await self.test_endpoint("GET", path)
        passed = outcome.success and outcome.status_code == 200 and bool(outcome.body)
        return self.record_test(name, passed, outcome.error, outcome.response)

    async def _expect_accepted(self, name: str, path: str, body: dict[str, Any]) -> bool:
        outcome = await self.test_endpoint("PUT", path, body)
        data = outcome.body
        passed = outcome.success and outcome.status_code == 200 and isinstance(data, dict) and data.get("success") is True
        return self.record_test(name, passed, outcome.error, outcome.response)

    async def _expect_rejected(self, name: str, path: str, body: dict[str, Any]) -> bool:
        outcome = await self.test_endpoint("PUT", path, body)
        passed = not outcome.success and outcome.status_code == 400
        error = None
        if not passed:
            error = outcome.error or f"Expected 400 but the server accepted the payload ({outcome.status_code})"
        return self.record_test(name, passed, error, outcome.response)

    async def check_current_settings(self) -> bool:
        return await self._expect_settings("Get Current Payroll Settings", payloads.CURRENT_SETTINGS_PATH)

    async def check_paye_settings(self) -> bool:
        return await self._expect_settings("Get PAYE Settings", payloads.PAYE_SETTINGS_PATH)

    async def check_default_settings(self) -> bool:
        return await self._expect_settings("Get Default Payroll Settings", payloads.DEFAULT_SETTINGS_PATH)

    async def check_update_valid_settings(self) -> bool:
        return await self._expect_accepted(
            "Update Payroll Settings (Valid)",
            payloads.UPDATE_SETTINGS_PATH,
            payloads.valid_payroll_settings(),
        )

    async def check_update_invalid_settings(self) -> bool:
        return await self._expect_rejected(
            "Update Payroll Settings (Invalid - Should Fail)",
            payloads.UPDATE_SETTINGS_PATH,
            payloads.invalid_payroll_settings(),
        )

    async def check_update_valid_paye(self) -> bool:
        return await self._expect_accepted(
            "Update PAYE Settings (Valid)",
            payloads.PAYE_SETTINGS_PATH,
            payloads.valid_paye_settings(),
        )

    async def check_update_invalid_paye(self) -> bool:
        return await self._expect_rejected(
            "Update PAYE Settings (Invalid - Should Fail)",
            payloads.PAYE_SETTINGS_PATH,
            payloads.invalid_paye_settings(),
        )

    async def check_bracket_continuity(self) -> bool:
        return await self._expect_rejected(
            "Tax Bracket Continuity Validation",
            payloads.UPDATE_SETTINGS_PATH,
            payloads.gapped_bracket_settings(),
        )

    async def check_empty_brackets(self) -> bool:
        return await self._expect_rejected(
            "Empty Tax Brackets Validation",
            payloads.UPDATE_SETTINGS_PATH,
            payloads.empty_bracket_settings(),
        )

    async def check_round_trip(self) -> bool:
        """Fetch, switch the cycle to bi-weekly, re-fetch, then put the original settings back.

        This is the only check that changes remote state. The restore runs once
        the update has gone out, and a failed restore is logged but never
        recorded as a result.
        """
        name = "Complete Round-Trip Test"
        try:
            original = extract_data(await self.client.get_json(payloads.CURRENT_SETTINGS_PATH))
            update = await self.client.put_json(payloads.UPDATE_SETTINGS_PATH, payloads.round_trip_settings())
            try:
                verify = await self.client.send("GET", payloads.CURRENT_SETTINGS_PATH)
            finally:
                await self._restore_settings(original)
        except httpx.HTTPError as exc:
            response = exc.response if isinstance(exc, httpx.HTTPStatusError) else None
            return self.record_test(name, False, exc, response)

        observed = extract_data(parse_body(verify))
        cycle = observed.get("payrollCycle") if isinstance(observed, dict) else None
        passed = update.status_code == 200 and verify.status_code == 200 and cycle == payloads.ROUND_TRIP_CYCLE
        error = None if passed else f"Expected payrollCycle '{payloads.ROUND_TRIP_CYCLE}' after update, got {cycle!r}"
        return self.record_test(name, passed, error, update)

    async def _restore_settings(self, original: Any) -> None:
        if not isinstance(original, dict):
            logger.warning("runner.round_trip.restore_skipped", reason="original settings were not an object")
            self.out.log("Original payroll settings could not be read back; remote state left modified", "warning")
            return
        try:
            await self.client.put_json(payloads.UPDATE_SETTINGS_PATH, original)
        except httpx.HTTPError as exc:
            # Remote settings may now differ from what the run started with.
            logger.warning("runner.round_trip.restore_failed", error=error_message(exc))
            self.out.log(f"Could not restore original payroll settings: {error_message(exc)}", "warning")

    def generate_report(self) -> Path:
        self.report = build_report(self.results)
        self.out.print_report(self.report)
        self.report_path = write_report(self.report, self.output_dir)
        self.out.plain()
        self.out.plain(f"Detailed report saved to: {self.report_path}")
        return self.report_path

    async def authenticate(self, email: str = "", password: str = "") -> bool:
        if self.client.token:
            return True
        if not (email and password):
            self.out.log("No auth token configured; requests will be sent without Authorization", "warning")
            return False
        try:
            await self.client.login(email, password)
        except (httpx.HTTPError, LoginError) as exc:
            logger.warning("runner.login_failed", email=email, error=error_message(exc))
            self.out.log(f"Login failed: {error_message(exc)}", "error")
            return False
        self.out.log("Obtained auth token from /auth/login", "success")
        return True

    async def quick_check(self) -> bool:
        """Connectivity smoke test against the current-settings endpoint."""
        self.out.plain("Running quick connection test...")
        try:
            response = await self.client.send("GET", payloads.CURRENT_SETTINGS_PATH)
        except httpx.HTTPError as exc:
            logger.warning("runner.quick_check_failed", base_url=self.client.base_url, error=error_message(exc))
            self.out.plain(f"✗ Connection failed: {error_message(exc)}", style="red")
            self.out.plain()
            self.out.plain("Troubleshooting tips:")
            for hint in TROUBLESHOOTING_HINTS:
                self.out.plain(hint)
            if isinstance(exc, httpx.ConnectError):
                self.out.plain()
                self.out.plain(f"Server not reachable at: {self.client.base_url}", style="yellow")
            return False

        self.out.plain("✓ Connection successful", style="green")
        self.out.plain(f"Response status: {response.status_code}")
        body = parse_body(response)
        if body:
            self.out.plain("Current settings structure:")
            self.out.plain(as_pretty_json(body))
        return True
