from __future__ import annotations

import copy
from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from rich.console import Console

from payroll_probe.core.api_client import PayrollApiClient
from payroll_probe.harness import payloads
from payroll_probe.harness.runner import PayrollSettingsRunner

TEST_BASE_URL = "http://testserver"
TEST_TOKEN = "test-token"
TEST_EMAIL = "admin@payroll.com"
TEST_PASSWORD = "correct-horse"

VALID_CYCLES = {"weekly", "bi-weekly", "monthly"}


def _envelope(data: Any, message: str = "Success") -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def _error(status_code: int, message: str, errors: list[str] | None = None) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def _bracket_errors(brackets: Any) -> list[str]:
    if not isinstance(brackets, list) or not brackets:
        return ["At least one tax bracket is required"]
    errors = []
    for bracket in brackets:
        rate = bracket.get("rate")
        if not isinstance(rate, (int, float)) or not 0 <= rate <= 1:
            errors.append(f"Tax rate must be between 0 and 1, got {rate}")
    for previous, current in zip(brackets, brackets[1:]):
        if previous.get("max") is None or current.get("min") != previous["max"] + 1:
            errors.append(f"Tax bracket continuity broken after {previous.get('max')}")
    return errors


def _paye_errors(paye: Any) -> list[str]:
    if not isinstance(paye, dict):
        return ["Tax settings are required"]
    errors = []
    if int(paye.get("taxYear") or 0) < 2020:
        errors.append("Tax year must be 2020 or later")
    return errors + _bracket_errors(paye.get("taxBrackets"))


def _payroll_errors(settings: Any) -> list[str]:
    if not isinstance(settings, dict):
        return ["Settings body must be an object"]
    errors = []
    if settings.get("payrollCycle") not in VALID_CYCLES:
        errors.append("Invalid payroll cycle")
    approvals = (settings.get("approvalWorkflow") or {}).get("requiredApprovals", 1)
    if not 1 <= int(approvals) <= 5:
        errors.append("Required approvals must be between 1 and 5")
    return errors + _paye_errors(settings.get("taxSettings"))


def default_state() -> dict[str, Any]:
    current = payloads.valid_payroll_settings()
    current["payrollCycle"] = "weekly"
    return {
        "payroll": current,
        "paye": payloads.valid_paye_settings(),
        "cycle_history": [],
        # "lenient" accepts every update, "ignore_updates" acks without storing
        "lenient": False,
        "ignore_updates": False,
        # (method, path) -> queue of forced status codes, None means handle normally
        "forced": {},
        "calls": [],
    }


def create_payroll_app(state: dict[str, Any]) -> FastAPI:
    """In-process stand-in for the payroll backend's settings routes."""
    app = FastAPI()

    @app.middleware("http")
    async def _gate(request: Request, call_next):
        state["calls"].append((request.method, request.url.path))
        queue = state["forced"].get((request.method, request.url.path))
        if queue:
            forced = queue.pop(0)
            if forced is not None:
                return _error(forced, "Forced failure")
        if request.url.path != "/auth/login":
            if request.headers.get("authorization") != f"Bearer {TEST_TOKEN}":
                return _error(401, "Access denied. No valid token provided.")
        return await call_next(request)

    @app.post("/auth/login")
    async def login(request: Request):
        body = await request.json()
        if body.get("email") != TEST_EMAIL or body.get("password") != TEST_PASSWORD:
            return _error(401, "Invalid credentials")
        return _envelope({"token": TEST_TOKEN, "user": {"email": TEST_EMAIL}}, "Login successful")

    @app.get("/payroll/settings/current")
    async def get_current():
        return _envelope(copy.deepcopy(state["payroll"]), "Payroll settings retrieved")

    @app.get("/payroll/settings/default")
    async def get_default():
        return _envelope(payloads.valid_payroll_settings(), "Default payroll settings generated")

    @app.get("/payroll/settings/paye")
    async def get_paye():
        return _envelope(copy.deepcopy(state["paye"]), "PAYE settings retrieved successfully")

    @app.put("/payroll/settings/update")
    async def update_settings(request: Request):
        body = await request.json()
        errors = [] if state["lenient"] else _payroll_errors(body)
        if errors:
            return _error(400, "; ".join(errors), errors)
        if not state["ignore_updates"]:
            state["payroll"] = body
            state["cycle_history"].append(body.get("payrollCycle"))
        return _envelope(body, "Payroll settings updated successfully")

    @app.put("/payroll/settings/paye")
    async def update_paye(request: Request):
        body = await request.json()
        errors = [] if state["lenient"] else _paye_errors(body)
        if errors:
            return _error(400, "Invalid PAYE settings", errors)
        state["paye"] = body
        return _envelope(body, "PAYE settings updated successfully")

    return app


@pytest.fixture()
def payroll_state() -> dict[str, Any]:
    return default_state()


@pytest.fixture()
def transport(payroll_state) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=create_payroll_app(payroll_state))


@pytest.fixture()
async def client(transport) -> PayrollApiClient:
    async with PayrollApiClient(TEST_BASE_URL, token=TEST_TOKEN, transport=transport) as api_client:
        yield api_client


@pytest.fixture()
def record_console() -> Console:
    return Console(record=True, width=200, force_terminal=False, color_system=None)


@pytest.fixture()
def runner(client, record_console, tmp_path) -> PayrollSettingsRunner:
    return PayrollSettingsRunner(client, console=record_console, delay_sec=0, output_dir=tmp_path)
