"""Settings payloads sent by the test cases.

Every builder returns a fresh deep structure so a test can tweak its copy
without leaking into the next one. The top tax bracket is open ended, which
goes over the wire as ``"max": null``.
"""

from __future__ import annotations

from typing import Any

CURRENT_SETTINGS_PATH = "/payroll/settings/current"
UPDATE_SETTINGS_PATH = "/payroll/settings/update"
PAYE_SETTINGS_PATH = "/payroll/settings/paye"
DEFAULT_SETTINGS_PATH = "/payroll/settings/default"

ROUND_TRIP_CYCLE = "bi-weekly"


def tax_brackets() -> list[dict[str, Any]]:
    return [
        {"min": 0, "max": 800000, "rate": 0.00, "description": "Tax Free Threshold"},
        {"min": 800001, "max": 3000000, "rate": 0.15, "description": "First Bracket"},
        {"min": 3000001, "max": 12000000, "rate": 0.18, "description": "Second Bracket"},
        {"min": 12000001, "max": 25000000, "rate": 0.21, "description": "Third Bracket"},
        {"min": 25000001, "max": 50000000, "rate": 0.23, "description": "Fourth Bracket"},
        {"min": 50000001, "max": None, "rate": 0.25, "description": "Top Bracket"},
    ]


def valid_paye_settings() -> dict[str, Any]:
    return {
        "taxYear": 2026,
        "taxBrackets": tax_brackets(),
        "statutoryRates": {
            "employeePension": 0.08,
            "employerPension": 0.10,
            "nhf": 0.025,
            "nhis": 0.05,
            "nsitf": 0.01,
            "itf": 0.01,
        },
        "reliefs": {"rentRelief": 0.20, "rentReliefCap": 500000},
    }


def valid_payroll_settings() -> dict[str, Any]:
    return {
        "payrollCycle": "monthly",
        "approvalWorkflow": {"enabled": True, "requiredApprovals": 2, "approvers": []},
        "taxSettings": valid_paye_settings(),
        "paymentSettings": {
            "defaultBank": "bank_1",
            "paymentMethods": ["bank_transfer"],
            "processingDays": 3,
            "autoGeneratePaymentFiles": True,
        },
        "notificationSettings": {
            "onPayrollProcess": True,
            "onApprovalRequired": True,
            "onPaymentProcessed": True,
            "recipients": [],
        },
        "systemSettings": {
            "autoBackup": True,
            "backupFrequency": "weekly",
            "dataRetentionMonths": 36,
        },
    }


def invalid_payroll_settings() -> dict[str, Any]:
    # Unknown cycle, too many approvals, stale tax year and a rate above 1.
    return {
        "payrollCycle": "invalid-cycle",
        "approvalWorkflow": {"enabled": True, "requiredApprovals": 10, "approvers": []},
        "taxSettings": {
            "taxYear": 1999,
            "taxBrackets": [
                {"min": 100, "max": 50000, "rate": 2.0},
                {"min": 50001, "max": 200000, "rate": 0.3},
            ],
        },
    }


def invalid_paye_settings() -> dict[str, Any]:
    return {
        "taxYear": 1990,
        "taxBrackets": [
            {"min": 50000, "max": 100000, "rate": 1.5},
            {"min": 100001, "max": 200000, "rate": 0.3},
        ],
    }


def gapped_bracket_settings() -> dict[str, Any]:
    payload = valid_payroll_settings()
    # nothing covers 100001-199999
    payload["taxSettings"]["taxBrackets"] = [
        {"min": 0, "max": 100000, "rate": 0.0},
        {"min": 200000, "max": 300000, "rate": 0.1},
    ]
    return payload


def empty_bracket_settings() -> dict[str, Any]:
    payload = valid_payroll_settings()
    payload["taxSettings"]["taxBrackets"] = []
    return payload


def round_trip_settings() -> dict[str, Any]:
    payload = valid_payroll_settings()
    payload["payrollCycle"] = ROUND_TRIP_CYCLE
    payload["approvalWorkflow"] = {"enabled": False, "requiredApprovals": 1, "approvers": []}
    return payload
